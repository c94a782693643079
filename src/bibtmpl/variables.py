"""Build the template context for a citation.

The resulting mapping is what filename, citekey, note-body and frontmatter
templates are rendered against: every citation field as-is, plus derived
contributor lists, attachment links and related-note links.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Optional

from pydantic import BaseModel

from bibtmpl.values import to_value


class Contributor(BaseModel):
    """A person or institution credited on a citation."""

    role: str = "author"
    family: Optional[str] = None
    given: Optional[str] = None
    literal: Optional[str] = None

    @property
    def full_name(self) -> str:
        if self.literal:
            return self.literal
        family = self.family or ""
        given = self.given or ""
        if family and given:
            return f"{given} {family}"
        return family or given

    @property
    def short_name(self) -> str:
        """``J. Doe`` style, or the literal name for institutions."""
        family = (self.family or "").strip()
        given = (self.given or "").strip()
        literal = (self.literal or "").strip()
        if literal:
            return literal
        if family:
            return f"{given[0].upper()}. {family}" if given else family
        return given


def format_authors(contributors: Iterable[Contributor]) -> str:
    """``A. Smith``, ``A. Smith and B. Jones`` or ``A. Smith et al.``"""
    names = [c.short_name for c in contributors if c.role == "author"]
    names = [n for n in names if n]
    if not names:
        return ""
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} and {names[1]}"
    return f"{names[0]} et al."


def contributor_lists(contributors: Iterable[Contributor]) -> dict[str, list[Any]]:
    """Per-role lists: ``<role>s``, ``<role>s_family``, ``<role>s_given``, ``<role>s_raw``."""
    by_role: dict[str, list[Contributor]] = {}
    for contributor in contributors:
        by_role.setdefault(contributor.role or "author", []).append(contributor)

    result: dict[str, list[Any]] = {}
    for role, members in by_role.items():
        result[f"{role}s_raw"] = [m.model_dump(exclude_none=True) for m in members]
        result[f"{role}s"] = [n for n in (m.full_name for m in members) if n]
        result[f"{role}s_family"] = [
            n for n in (m.family or m.literal or "" for m in members) if n
        ]
        result[f"{role}s_given"] = [n for n in (m.given or "" for m in members) if n]
    return result


def attachment_variables(attachment_path: Optional[str]) -> dict[str, str]:
    if not attachment_path or not attachment_path.strip():
        return {"pdflink": "", "attachment": "", "raw_pdflink": "", "quoted_attachment": ""}

    if attachment_path.endswith(".pdf"):
        label = "PDF"
    elif attachment_path.endswith(".epub"):
        label = "EPUB"
    else:
        label = "attachment"
    attachment = f"[[{attachment_path}|{label}]]"
    return {
        "pdflink": attachment_path,
        "attachment": attachment,
        "raw_pdflink": attachment_path,
        "quoted_attachment": f'"{attachment}"',
    }


def link_variables(related_note_paths: Optional[Iterable[str]]) -> dict[str, Any]:
    paths = list(related_note_paths or [])
    links = [f"[[{p}]]" for p in paths]
    return {"links": links, "linkPaths": paths, "links_string": ", ".join(links)}


def build_template_variables(
    citation: Any,
    contributors: Iterable[Contributor | dict] = (),
    attachment_path: Optional[str] = None,
    related_note_paths: Optional[Iterable[str]] = None,
    today: Optional[date] = None,
) -> dict[str, Any]:
    """Build the full template context for ``citation``.

    Args:
        citation: CSL-JSON-like mapping (any shape :func:`to_value` accepts).
        contributors: Contributors (models or plain dicts).
        attachment_path: Vault path of the main attachment, if any.
        related_note_paths: Vault paths of related notes.
        today: Date used for ``currentDate`` (default: today).

    Returns:
        A plain mapping ready to render against.
    """
    fields = to_value(citation or {})
    if not isinstance(fields, dict):
        raise TypeError("citation must be a mapping")
    people = [
        c if isinstance(c, Contributor) else Contributor.model_validate(c) for c in contributors
    ]

    variables: dict[str, Any] = {
        "currentDate": (today or date.today()).isoformat(),
        "authors": format_authors(people),
    }
    variables.update(fields)
    variables.update(contributor_lists(people))
    variables["citekey"] = fields.get("id") or ""
    variables.update(attachment_variables(attachment_path))
    variables.update(link_variables(related_note_paths))
    return variables
