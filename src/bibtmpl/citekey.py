"""Citekey generation.

Priority order:

1. The item's own Zotero key (``key`` or ``id``) when ``use_zotero_keys``.
2. The configured template, rendered in citekey mode. Older bracket templates
   (``[auth:lower][year]``) are converted first.
3. ``<author><year>`` as a last resort.
"""

from __future__ import annotations

import hashlib
import logging
import re
from typing import Any, Optional

import msgspec
from pydantic import BaseModel, Field

from bibtmpl.core import TemplateEngine
from bibtmpl.engine.filters import DEFAULT_REGISTRY
from bibtmpl.engine.renderer import sanitize_citekey
from bibtmpl.exceptions import CitekeyError
from bibtmpl.values import to_value

log = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "{{author|lowercase}}{{year}}"

_LEGACY_FIELD = re.compile(r"\[([a-zA-Z0-9_]+)((?::[a-zA-Z0-9(),]+)*)\]")
_LEGACY_ABBR = re.compile(r"^abbr\((\d+)\)$")
_LEGACY_WORDS = re.compile(r"^words\((\d+)\)$")
_YEAR = re.compile(r"\b(\d{4})\b")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_NAME_SPLIT = re.compile(r"[\s,\-.:;()&/]+")
_NON_KEY = re.compile(r"[^a-z0-9_-]", re.IGNORECASE)


class CitekeyOptions(BaseModel):
    """How citekeys are generated."""

    template: str = Field(default=DEFAULT_TEMPLATE, description="Citekey template")
    use_zotero_keys: bool = Field(
        default=True, description="Prefer the item's existing Zotero key"
    )
    min_length: int = Field(
        default=6, ge=0, description="Shorter keys get a three-digit suffix"
    )


def convert_legacy_template(template: str) -> str:
    """Convert ``[field:mod:mod]`` bracket syntax into ``{{field|mod|mod}}``.

    ``auth`` maps to ``author``, ``abbr(3)`` to ``abbr3`` and ``words(N)`` on
    ``title``/``shorttitle`` to the matching filter.
    """

    def convert(match: re.Match[str]) -> str:
        field = match.group(1).lower()
        if field == "auth":
            field = "author"
        filters = []
        for mod in filter(None, match.group(2)[1:].split(":")):
            abbr = _LEGACY_ABBR.match(mod)
            if abbr:
                filters.append(f"abbr{abbr.group(1)}")
            elif _LEGACY_WORDS.match(mod) and field == "title":
                filters.append("titleword")
            elif _LEGACY_WORDS.match(mod) and field == "shorttitle":
                filters.append("shorttitle")
            else:
                filters.append(mod)
        piped = "".join(f"|{f}" for f in filters)
        return f"{{{{{field}{piped}}}}}"

    return _LEGACY_FIELD.sub(convert, template)


def _last_name(author: Any) -> str:
    name = ""
    if isinstance(author, dict):
        name = author.get("family") or author.get("lastName") or ""
        if not name and isinstance(author.get("literal"), str):
            parts = [p for p in _NAME_SPLIT.split(author["literal"]) if p]
            name = parts[0] if parts else ""
    elif isinstance(author, str):
        name = author.split(",", 1)[0] if "," in author else author.split(" ")[0]
        name = name.strip()
    return _NON_KEY.sub("", str(name).lower())


def _authors(citation: dict[str, Any]) -> list[Any]:
    authors = citation.get("author")
    if isinstance(authors, list) and authors:
        return authors
    creators = citation.get("creators")
    if isinstance(creators, list):
        return [
            c for c in creators if isinstance(c, dict) and c.get("creatorType") == "author"
        ]
    return []


def extract_author(citation: dict[str, Any]) -> str:
    """First author's lower-cased family name, or ``unknown``."""
    authors = _authors(citation)
    creators = citation.get("creators")
    if authors:
        name = _last_name(authors[0])
    elif isinstance(creators, list) and creators:
        name = _last_name(creators[0])
    else:
        name = ""
    return name or "unknown"


def extract_year(citation: dict[str, Any]) -> str:
    """Publication year as four digits, or ``""`` when none is found."""
    issued = citation.get("issued")
    if isinstance(issued, dict):
        parts = issued.get("date-parts")
        if isinstance(parts, list) and parts and isinstance(parts[0], list) and parts[0]:
            leading = _LEADING_INT.match(str(parts[0][0]))
            year = int(leading.group(1)) if leading else 0
            if 1000 < year < 3000:
                return str(year)

    candidates = [citation.get("year")]
    if isinstance(issued, dict):
        candidates.append(issued.get("literal"))
    candidates.extend([citation.get("date"), issued if isinstance(issued, str) else None])
    for candidate in candidates:
        if candidate is None or isinstance(candidate, (dict, list)):
            continue
        match = _YEAR.search(str(candidate))
        if match:
            return match.group(1)
    return ""


def _short_title(title: str) -> str:
    return DEFAULT_REGISTRY.bind("shorttitle")(title)


def prepare_citekey_variables(citation: dict[str, Any]) -> dict[str, Any]:
    """Citation fields plus the derived ``author``, ``year``, ``shorttitle``, ``authors``."""
    title = citation.get("title") or ""
    variables = dict(citation)
    variables.update(
        author=extract_author(citation),
        year=extract_year(citation),
        title=title,
        shorttitle=_short_title(title) if isinstance(title, str) else "",
        authors=_authors(citation),
    )
    return variables


def _stable_suffix(citation: dict[str, Any]) -> str:
    digest = hashlib.sha256(msgspec.json.encode(citation, order="sorted")).hexdigest()
    return f"{int(digest, 16) % 1000:03d}"


def generate_citekey(
    citation: Any,
    options: Optional[CitekeyOptions] = None,
    engine: Optional[TemplateEngine] = None,
) -> str:
    """Generate a citekey for ``citation`` (a CSL-JSON or Zotero item).

    Raises:
        CitekeyError: no citation data, or the template rendered to nothing.
        TemplateSyntaxError: the configured template is malformed.
    """
    if not citation:
        raise CitekeyError("Cannot generate citekey: no citation data")
    config = options or CitekeyOptions()
    data = to_value(citation)
    if not isinstance(data, dict):
        raise CitekeyError("Cannot generate citekey: citation must be a mapping")

    if config.use_zotero_keys:
        key = data.get("key") or data.get("id")
        if isinstance(key, str) and key.strip():
            return key.strip()

    if config.template.strip():
        if engine is None:
            from bibtmpl import get_engine

            engine = get_engine()
        template = convert_legacy_template(config.template)
        citekey = engine.render(
            template, prepare_citekey_variables(data), sanitize_for_citekey=True
        )
        if not citekey:
            raise CitekeyError(f"Citekey template rendered an empty key: {template!r}")
        if len(citekey) < config.min_length:
            citekey += _stable_suffix(data)
        return citekey

    log.warning("No citekey template configured, using author-year fallback")
    fallback = sanitize_citekey(extract_author(data) + (extract_year(data) or "nd"))
    if not fallback:
        raise CitekeyError("Cannot generate citekey from citation data")
    return fallback
