"""Value model for template contexts.

A context is a tree of plain builtins: ``None``, ``bool``, ``int``/``float``,
``str``, ``list`` and ``dict`` with string keys. Anything else the caller
hands in (tuples, dataclasses, msgspec structs, pydantic models, dates) is
normalised into that shape once, before rendering, by :func:`to_value`.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Union

import msgspec

Value = Union[None, bool, int, float, str, list["Value"], dict[str, "Value"]]


class _Missing:
    """Sentinel for a path that did not resolve."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def _enc_hook(obj: Any) -> Any:
    # pydantic models and other objects exposing a dict dump
    dump = getattr(obj, "model_dump", None)
    if callable(dump):
        return dump(mode="json")
    if hasattr(obj, "__dict__"):
        return {k: v for k, v in vars(obj).items() if not k.startswith("_")}
    raise NotImplementedError(f"Unsupported context value: {type(obj).__name__}")


def to_value(obj: Any) -> Value:
    """Normalise arbitrary caller data into a :data:`Value` tree.

    Mapping keys are converted to strings. Raises ``TypeError`` for objects
    that have no sensible builtin representation.
    """
    try:
        return msgspec.to_builtins(obj, enc_hook=_enc_hook, str_keys=True)
    except NotImplementedError as exc:
        raise TypeError(str(exc)) from exc


def is_falsy(value: Any) -> bool:
    """Return True for the falsy set: absent, null, false, zero, "" and []."""
    if value is MISSING or value is None or value is False:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value == 0 or (isinstance(value, float) and math.isnan(value))
    if isinstance(value, (str, list)):
        return len(value) == 0
    return False


def _shortest_decimal(value: float) -> str:
    # shortest round-trip digits; exponent notation below 1e-6 and from 1e21
    sign, digits, exponent = Decimal(repr(value)).normalize().as_tuple()
    mantissa = "".join(map(str, digits))
    k = len(mantissa)
    n = exponent + k
    if k <= n <= 21:
        text = mantissa + "0" * (n - k)
    elif 0 < n <= 21:
        text = f"{mantissa[:n]}.{mantissa[n:]}"
    elif -6 < n <= 0:
        text = "0." + "0" * -n + mantissa
    else:
        e = n - 1
        head = mantissa if k == 1 else f"{mantissa[0]}.{mantissa[1:]}"
        text = f"{head}e{'+' if e >= 0 else '-'}{abs(e)}"
    return "-" + text if sign else text


def format_number(value: int | float) -> str:
    """Canonical decimal form.

    Integral floats drop their ``.0``; very large and very small magnitudes
    use ``1e+21`` / ``1e-7`` exponent notation.
    """
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value == 0:
            return "0"
        return _shortest_decimal(value)
    return str(value)


def stringify(value: Any) -> str:
    """Convert a resolved value into the text inserted into the output."""
    if value is MISSING or value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    return msgspec.json.encode(value).decode("utf-8")
