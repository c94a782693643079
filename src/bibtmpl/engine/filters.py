"""Filter registry - named, pure text transforms applied via ``{{value|name}}``.

Each filter is registered as a factory: it receives the filter's ``:``
separated arguments (already split, as strings) and returns a ``str -> str``
function. Binding happens at parse time so that unknown names and bad
arguments surface as syntax errors before anything is resolved.

Case-changing filters only touch ASCII letters; other characters pass
through unchanged.
"""

from __future__ import annotations

import math
import re
import string
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Callable, Iterable, Iterator
from urllib.parse import quote, unquote

from bibtmpl.ast.nodes import FilterCall
from bibtmpl.exceptions import FilterArgumentError, UnknownFilterError
from bibtmpl.values import format_number

FilterFn = Callable[[str], str]
FilterFactory = Callable[..., FilterFn]

STOP_WORDS = frozenset(
    """
    a an the and or but on in at to for with of from by as into like near
    over past since upon about above across after against along among around
    before behind below beneath beside between beyond concerning considering
    despite down during except following inside minus onto opposite out
    outside per plus regarding round save through toward towards under
    underneath unlike until up versus via within without
    """.split()
)

# Families such as abbr3 / truncate20 take their single argument from the name
_NUMBERED_NAME = re.compile(r"^([a-z]+?)(\d+)$")

_HTML_TAG = re.compile(r"<[^>]+>")
_EDGE_PUNCT = re.compile(r"^\W+|\W+$")
_WORD_START = re.compile(r"(?:^|(?<=\s))[a-z]")

_TO_UPPER = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)
_TO_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)
_NON_ALNUM = re.compile(r"[^a-z0-9]")

# Leading numeric prefix; anything after it is ignored
_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))")
_FIXED_CONTEXT = Context(prec=200)


@dataclass(frozen=True)
class FilterSpec:
    """Registration record for one filter."""

    name: str
    factory: FilterFactory
    min_args: int = 0
    max_args: int = 0
    usage: str = ""
    description: str = ""
    numbered: bool = False


def _int_arg(name: str, value: str, *, minimum: int | None = None) -> int:
    try:
        number = int(value)
    except ValueError:
        raise FilterArgumentError(name, f"expected an integer, got '{value}'") from None
    if minimum is not None and number < minimum:
        raise FilterArgumentError(name, f"expected an integer >= {minimum}, got {number}")
    return number


def _significant_words(text: str, stop_words: frozenset[str]) -> tuple[list[str], list[str]]:
    words = [_EDGE_PUNCT.sub("", w) for w in _HTML_TAG.sub("", text).split()]
    words = [w for w in words if w]
    return words, [w for w in words if w.lower() not in stop_words]


# --------------------------------------------------------------------------- #
# Filter factories
# --------------------------------------------------------------------------- #


def upper() -> FilterFn:
    return lambda text: text.translate(_TO_UPPER)


def lower() -> FilterFn:
    return lambda text: text.translate(_TO_LOWER)


def capitalize() -> FilterFn:
    return lambda text: _WORD_START.sub(lambda m: m.group(0).translate(_TO_UPPER), text)


def sentence() -> FilterFn:
    return lambda text: text[:1].translate(_TO_UPPER) + text[1:]


def trim() -> FilterFn:
    return lambda text: text.strip()


def titleword(stop_words: frozenset[str] = STOP_WORDS) -> FilterFactory:
    def factory() -> FilterFn:
        def apply(text: str) -> str:
            words, significant = _significant_words(text, stop_words)
            for word in significant:
                if len(word) >= 4:
                    return word
            return words[0] if words else ""

        return apply

    return factory


def shorttitle(stop_words: frozenset[str] = STOP_WORDS) -> FilterFactory:
    """First three significant words run together, lower-cased, alphanumerics only."""

    def factory() -> FilterFn:
        def apply(text: str) -> str:
            words, significant = _significant_words(text, stop_words)
            joined = "".join((significant or words)[:3]).translate(_TO_LOWER)
            return _NON_ALNUM.sub("", joined)

        return apply

    return factory


def abbr(count: str = "1") -> FilterFn:
    n = _int_arg("abbr", count, minimum=1)
    return lambda text: text[:n]


def truncate(length: str = "30") -> FilterFn:
    n = _int_arg("truncate", length, minimum=0)
    return lambda text: text[:n]


def ellipsis(length: str = "30") -> FilterFn:
    n = _int_arg("ellipsis", length, minimum=0)
    return lambda text: text[:n] + "..." if len(text) > n else text


def prefix(value: str) -> FilterFn:
    return lambda text: value + text


def suffix(value: str) -> FilterFn:
    return lambda text: text + value


def pad(width: str, fill: str = " ") -> FilterFn:
    n = _int_arg("pad", width, minimum=0)
    if len(fill) != 1:
        raise FilterArgumentError("pad", f"fill must be a single character, got '{fill}'")
    return lambda text: text.rjust(n, fill)


def slice_(start: str, end: str | None = None) -> FilterFn:
    begin = _int_arg("slice", start)
    stop = _int_arg("slice", end) if end is not None else None
    return lambda text: text[begin:stop]


def replace(find: str, replacement: str = "") -> FilterFn:
    if not find:
        raise FilterArgumentError("replace", "search text must not be empty")
    return lambda text: text.replace(find, replacement)


def _to_fixed(value: float, digits: int) -> str:
    # exact binary value, ties rounded away from zero
    if abs(value) >= 1e21 or math.isinf(value):
        return format_number(value)
    fixed = Decimal(value).quantize(
        Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP, context=_FIXED_CONTEXT
    )
    return format(fixed, "f")


def number(precision: str | None = None) -> FilterFn:
    """Canonical number form, or ``precision`` fixed decimals.

    Text that does not start with a number is returned unchanged.
    """
    digits = _int_arg("number", precision, minimum=0) if precision is not None else None
    if digits is not None and digits > 100:
        raise FilterArgumentError("number", f"precision must be <= 100, got {digits}")

    def apply(text: str) -> str:
        match = _FLOAT_PREFIX.match(text)
        if not match:
            return text
        value = float(match.group(1)) + 0.0
        if digits is None:
            return format_number(value)
        return _to_fixed(value, digits)

    return apply


def urlencode() -> FilterFn:
    # same unreserved set as encodeURIComponent
    return lambda text: quote(text, safe="-_.!~*'()")


def urldecode() -> FilterFn:
    return lambda text: unquote(text)


# --------------------------------------------------------------------------- #
# Registry
# --------------------------------------------------------------------------- #


@dataclass
class FilterRegistry:
    """Maps filter names to factories and binds them to arguments."""

    specs: dict[str, FilterSpec] = field(default_factory=dict)
    frozen: bool = False

    def register(
        self,
        name: str,
        factory: FilterFactory,
        *,
        min_args: int = 0,
        max_args: int = 0,
        usage: str = "",
        description: str = "",
        numbered: bool = False,
    ) -> None:
        """Register a filter factory under ``name`` (replacing any previous one).

        With ``numbered=True`` the filter is also reachable as ``<name><N>``,
        the digits becoming its first argument (``abbr3`` == ``abbr:3``).
        """
        if self.frozen:
            raise RuntimeError("Cannot register filters on a frozen registry")
        if not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", name):
            raise ValueError(f"Invalid filter name: '{name}'")
        self.specs[name] = FilterSpec(
            name=name,
            factory=factory,
            min_args=min_args,
            max_args=max_args,
            usage=usage or name,
            description=description,
            numbered=numbered,
        )

    def freeze(self) -> "FilterRegistry":
        self.frozen = True
        return self

    def copy(self) -> "FilterRegistry":
        """Return an unfrozen copy that can be extended."""
        return FilterRegistry(specs=dict(self.specs))

    def __contains__(self, name: str) -> bool:
        try:
            self._lookup(name)
        except UnknownFilterError:
            return False
        return True

    def __iter__(self) -> Iterator[FilterSpec]:
        return iter(sorted(self.specs.values(), key=lambda s: s.name))

    def names(self) -> list[str]:
        return sorted(self.specs)

    def _lookup(self, name: str) -> tuple[FilterSpec, tuple[str, ...]]:
        spec = self.specs.get(name)
        if spec is not None:
            return spec, ()
        match = _NUMBERED_NAME.match(name)
        if match:
            spec = self.specs.get(match.group(1))
            if spec is not None and spec.numbered:
                return spec, (match.group(2),)
        raise UnknownFilterError(name)

    def bind(self, expression: str) -> FilterCall:
        """Bind one pipe segment such as ``upper`` or ``truncate:20``.

        Raises:
            UnknownFilterError: the name is not registered.
            FilterArgumentError: wrong number or shape of arguments.
        """
        name, *args = expression.split(":")
        name = name.strip()
        spec, implied = self._lookup(name)
        if implied and args:
            raise FilterArgumentError(name, "numbered form takes no further arguments")
        all_args = implied + tuple(args)
        if not spec.min_args <= len(all_args) <= spec.max_args:
            if spec.min_args == spec.max_args:
                expected = str(spec.min_args)
            else:
                expected = f"{spec.min_args} to {spec.max_args}"
            raise FilterArgumentError(
                name, f"expected {expected} argument(s), got {len(all_args)}"
            )
        fn = spec.factory(*all_args)
        return FilterCall(name=name, args=tuple(args), fn=fn)

    def apply(self, text: str, expressions: Iterable[str]) -> str:
        """Bind and apply a chain of filters, left to right."""
        for expression in expressions:
            text = self.bind(expression)(text)
        return text


def build_default_registry(stop_words: Iterable[str] | None = None) -> FilterRegistry:
    """Build the standard filter set.

    ``stop_words`` replaces the word list used by ``titleword`` and
    ``shorttitle``.
    """
    stops = frozenset(w.lower() for w in stop_words) if stop_words is not None else STOP_WORDS

    registry = FilterRegistry()
    reg = registry.register
    reg("uppercase", upper, description="Upper-case ASCII letters")
    reg("upper", upper, description="Alias of uppercase")
    reg("lowercase", lower, description="Lower-case ASCII letters")
    reg("lower", lower, description="Alias of lowercase")
    reg("capitalize", capitalize, description="Upper-case the first letter of each word")
    reg("title", capitalize, description="Alias of capitalize")
    reg("sentence", sentence, description="Upper-case the first character")
    reg("trim", trim, description="Strip surrounding whitespace")
    reg(
        "titleword",
        titleword(stops),
        description="First word of 4+ characters that is not a stop word",
    )
    reg("shorttitle", shorttitle(stops), description="First three significant words")
    reg(
        "abbr",
        abbr,
        max_args=1,
        numbered=True,
        usage="abbr[N]",
        description="First N characters (default 1)",
    )
    reg(
        "truncate",
        truncate,
        max_args=1,
        numbered=True,
        usage="truncate[:N]",
        description="First N characters (default 30)",
    )
    reg(
        "ellipsis",
        ellipsis,
        max_args=1,
        usage="ellipsis[:N]",
        description="Truncate to N characters and append '...' (default 30)",
    )
    reg("prefix", prefix, min_args=1, max_args=1, usage="prefix:TEXT", description="Prepend TEXT")
    reg("suffix", suffix, min_args=1, max_args=1, usage="suffix:TEXT", description="Append TEXT")
    reg(
        "pad",
        pad,
        min_args=1,
        max_args=2,
        usage="pad:WIDTH[:CHAR]",
        description="Left-pad to WIDTH with CHAR (default space)",
    )
    reg(
        "slice",
        slice_,
        min_args=1,
        max_args=2,
        usage="slice:START[:END]",
        description="Substring between START and END",
    )
    reg(
        "replace",
        replace,
        min_args=1,
        max_args=2,
        usage="replace:FIND[:REPLACEMENT]",
        description="Replace every FIND with REPLACEMENT",
    )
    reg(
        "number",
        number,
        max_args=1,
        usage="number[:PRECISION]",
        description="Canonical number, or PRECISION fixed decimals",
    )
    reg("urlencode", urlencode, description="Percent-encode like encodeURIComponent")
    reg("urldecode", urldecode, description="Decode percent-encoding")
    return registry


DEFAULT_REGISTRY = build_default_registry().freeze()
