"""Custom exceptions for diffreader."""
from __future__ import annotations


class DiffReaderError(Exception):
    """Base exception for diffreader."""
    pass


class ConfigError(DiffReaderError):
    """Configuration errors."""
    pass


class DiffParseError(DiffReaderError):
    """Strict-mode diff parsing errors.

    Carries enough location detail for a caller to point at the offending
    fragment: the file being parsed, the enclosing hunk header and the
    1-based line number within the parsed text.
    """

    def __init__(
        self,
        message: str,
        *,
        fragment: str,
        file_path: str | None = None,
        hunk_header: str | None = None,
        line_number: int | None = None,
    ):
        self.message = message
        self.fragment = fragment
        self.file_path = file_path
        self.hunk_header = hunk_header
        self.line_number = line_number
        super().__init__(self._format())

    def _format(self) -> str:
        location = []
        if self.file_path is not None:
            location.append(f"file {self.file_path!r}")
        if self.hunk_header is not None:
            location.append(f"hunk {self.hunk_header!r}")
        if self.line_number is not None:
            location.append(f"line {self.line_number}")
        where = f" ({', '.join(location)})" if location else ""
        return f"{self.message}{where}: {self.fragment!r}"

    def __reduce__(self):
        # Keyword-only fields must survive pickling across worker processes
        return (
            _rebuild_parse_error,
            (
                type(self),
                self.message,
                self.fragment,
                self.file_path,
                self.hunk_header,
                self.line_number,
            ),
        )


def _rebuild_parse_error(
    error_cls: type[DiffParseError],
    message: str,
    fragment: str,
    file_path: str | None,
    hunk_header: str | None,
    line_number: int | None,
) -> DiffParseError:
    return error_cls(
        message,
        fragment=fragment,
        file_path=file_path,
        hunk_header=hunk_header,
        line_number=line_number,
    )


class InvalidDiffFormatError(DiffParseError):
    """Input is not recognizable as a git diff."""
    pass


class MalformedHunkHeaderError(DiffParseError):
    """An @@ header does not match the range grammar."""
    pass


class UnexpectedContentError(DiffParseError):
    """A hunk content line starts with an unknown marker."""
    pass


class NumstatParseError(DiffReaderError):
    """Malformed `git diff --numstat` row."""
    pass
