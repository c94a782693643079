"""bibtmpl Exceptions

Custom exceptions for the template engine and its collaborators.
"""

from __future__ import annotations


class BibtmplError(Exception):
    """Base exception for all bibtmpl errors."""

    def __init__(self, message: str, exit_code: int = 1) -> None:
        self.message = message
        self.exit_code = exit_code
        super().__init__(message)


class TemplateSyntaxError(BibtmplError):
    """Raised when a template cannot be parsed.

    Carries the offset of the offending tag in the source along with the
    1-based line and column derived from it.
    """

    def __init__(
        self,
        message: str,
        source: str = "",
        offset: int | None = None,
        tag: str | None = None,
    ):
        self.reason = message
        self.offset = offset
        self.tag = tag
        self.line, self.column = _line_and_column(source, offset)
        if offset is not None:
            message = f"{message} (line {self.line}, column {self.column})"
        super().__init__(message)


class SectionMismatchError(TemplateSyntaxError):
    """Raised when a close tag names a different path than its open tag."""

    def __init__(
        self, opened: str, closed: str, source: str = "", offset: int | None = None
    ):
        self.opened = opened
        self.closed = closed
        super().__init__(
            f"Section '{opened}' closed by '{{{{/{closed}}}}}'; "
            f"expected '{{{{/{opened}}}}}'",
            source,
            offset,
            tag=f"/{closed}",
        )


class UnterminatedSectionError(TemplateSyntaxError):
    """Raised when the template ends while a section is still open."""

    def __init__(self, path: str, source: str = "", offset: int | None = None):
        self.path = path
        super().__init__(
            f"Unterminated section '{path}': missing '{{{{/{path}}}}}'",
            source,
            offset,
            tag=path,
        )


class UnexpectedCloseError(TemplateSyntaxError):
    """Raised when a close tag appears with no open section."""

    def __init__(self, path: str, source: str = "", offset: int | None = None):
        self.path = path
        super().__init__(
            f"Unexpected close tag '{{{{/{path}}}}}' with no open section",
            source,
            offset,
            tag=f"/{path}",
        )


class UnknownFilterError(TemplateSyntaxError):
    """Raised when a variable pipes into a filter that is not registered."""

    def __init__(self, name: str, source: str = "", offset: int | None = None):
        self.name = name
        super().__init__(f"Unknown filter: '{name}'", source, offset, tag=name)


class FilterArgumentError(TemplateSyntaxError):
    """Raised when a registered filter is given unusable arguments."""

    def __init__(
        self, name: str, detail: str, source: str = "", offset: int | None = None
    ):
        self.name = name
        self.detail = detail
        super().__init__(
            f"Invalid arguments for filter '{name}': {detail}", source, offset, tag=name
        )


class CitekeyError(BibtmplError):
    """Raised when a citekey cannot be generated."""

    pass


def _line_and_column(source: str, offset: int | None) -> tuple[int, int]:
    if offset is None:
        return 0, 0
    line = source.count("\n", 0, offset) + 1
    column = offset - (source.rfind("\n", 0, offset) + 1) + 1
    return line, column
