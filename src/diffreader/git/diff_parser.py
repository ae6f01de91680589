"""Git diff parser for diffreader."""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from diffreader.exceptions import (
    DiffParseError,
    InvalidDiffFormatError,
    MalformedHunkHeaderError,
    UnexpectedContentError,
)
from diffreader.models import ChangeType, DiffHunk, DiffLine, FileDiff, LineType

if TYPE_CHECKING:
    from diffreader.config import DiffReaderConfig

logger = logging.getLogger(__name__)

# Minimum parts expected in a "diff --git a/path b/path" line
_MIN_DIFF_LINE_PARTS = 4
_RANGE_COUNT = 2
_DEFAULT_RANGE_COUNT = 1

# Git diff header patterns, tested in this order
_GIT_DIFF_HEADER_PREFIX = "diff --git"
_INDEX_PREFIX = "index "
_OLD_FILE_PREFIX = "--- "
_NEW_FILE_PREFIX = "+++ "
_HUNK_HEADER_PREFIX = "@@ "
_BINARY_PREFIX = "Binary files"
_NEW_FILE_MODE_PREFIX = "new file mode"
_DELETED_FILE_MODE_PREFIX = "deleted file mode"
_RENAME_PREFIXES = ("rename from ", "rename to ")

_HUNK_MARKER = "@@"
_DEV_NULL = "/dev/null"

# Line boundaries; the \x1c-\x1e separators that str.splitlines() also breaks on are content
_LINE_TERMINATORS = "\n\r\x0b\x0c\x85\u2028\u2029"
_LINE_BREAK_RE = re.compile("\r\n|[" + _LINE_TERMINATORS + "]")


def split_diff_lines(diff_text: str) -> list[str]:
    """Trim surrounding line terminators and split text into lines."""
    trimmed = diff_text.strip(_LINE_TERMINATORS)
    if not trimmed:
        return []
    return _LINE_BREAK_RE.split(trimmed)


def _parse_git_path(path: str) -> str:
    """Extract the path from a ---/+++ file header component.

    Handles both:
    - Unquoted: b/path or a/path
    - Quoted: "b/path" or "a/path"
    """
    if len(path) > 1 and path.startswith('"') and path.endswith('"'):
        path = path[1:-1]

    if path.startswith("a/") or path.startswith("b/"):
        path = path[2:]

    return path


def _parse_diff_header_paths(line: str) -> tuple[str, str] | None:
    """Return (old, new) paths from a 'diff --git a/old b/new' line.

    Tokens are split on single spaces; the third and fourth lose their
    two-character a/ and b/ prefixes. Returns None when fewer than four
    tokens are present.
    """
    parts = line.split(" ")
    if len(parts) < _MIN_DIFF_LINE_PARTS:
        return None
    return parts[2][2:], parts[3][2:]


def _extract_file_header_path(line: str) -> str:
    """Drop the '--- '/'+++ ' prefix and any tab-delimited timestamp."""
    return line[len(_OLD_FILE_PREFIX):].split("\t", 1)[0].strip(" ")


def _parse_int(token: str) -> int | None:
    digits = token[1:] if token[:1] in ("+", "-") else token
    if not digits or not digits.isascii() or not digits.isdigit():
        return None
    return int(token)


def _parse_range(token: str, sign: str) -> tuple[int, int] | None:
    """Parse '-start[,count]' or '+start[,count]'."""
    if not token.startswith(sign):
        return None
    start_text, _, count_text = token[1:].partition(",")
    start = _parse_int(start_text)
    if start is None:
        return None
    count = _parse_int(count_text) if count_text else None
    return start, _DEFAULT_RANGE_COUNT if count is None else count


def parse_hunk_header(line: str) -> DiffHunk | None:
    """Parse an '@@ -a[,b] +c[,d] @@ [context]' line into an empty hunk.

    An omitted or non-numeric count defaults to 1. Returns None when the
    line does not match the range grammar.
    """
    trimmed = line.strip(" \t")
    if not trimmed.startswith(_HUNK_MARKER):
        return None

    parts = trimmed.split(_HUNK_MARKER, 2)
    if len(parts) < 3:
        return None

    ranges = parts[1].strip(" \t").split(" ")
    if len(ranges) != _RANGE_COUNT:
        return None

    old_range = _parse_range(ranges[0], "-")
    new_range = _parse_range(ranges[1], "+")
    if old_range is None or new_range is None:
        return None

    context = parts[2].strip(" \t") or None
    return DiffHunk(
        old_start=old_range[0],
        old_count=old_range[1],
        new_start=new_range[0],
        new_count=new_range[1],
        context=context,
        header_line=line,
    )


@dataclass
class _HunkBuilder:
    """Accumulates lines for the open hunk and tracks both line cursors."""
    header: DiffHunk
    old_cursor: int
    new_cursor: int
    lines: list[DiffLine] = field(default_factory=list)

    @classmethod
    def open(cls, header: DiffHunk) -> _HunkBuilder:
        return cls(header=header, old_cursor=header.old_start, new_cursor=header.new_start)

    def add(self, line_type: LineType, content: str, raw_line: str) -> None:
        old_number: int | None = None
        new_number: int | None = None

        if line_type is LineType.CONTEXT:
            old_number, new_number = self.old_cursor, self.new_cursor
            self.old_cursor += 1
            self.new_cursor += 1
        elif line_type is LineType.ADDITION:
            new_number = self.new_cursor
            self.new_cursor += 1
        elif line_type is LineType.DELETION:
            old_number = self.old_cursor
            self.old_cursor += 1

        self.lines.append(
            DiffLine(
                type=line_type,
                old_line_number=old_number,
                new_line_number=new_number,
                content=content,
                raw_line=raw_line,
            )
        )

    def build(self) -> DiffHunk:
        return self.header.model_copy(update={"lines": tuple(self.lines)})


@dataclass
class _FileBuilder:
    """Mutable view of the file being scanned; owns the open hunk, if any."""
    file_path: str
    old_path: str | None = None
    change_type: ChangeType = ChangeType.MODIFIED
    is_binary: bool = False
    is_new: bool = False
    is_deleted: bool = False
    is_renamed: bool = False
    old_mode: str | None = None
    new_mode: str | None = None
    header_lines: list[str] = field(default_factory=list)
    hunks: list[DiffHunk] = field(default_factory=list)
    raw_lines: list[str] = field(default_factory=list)
    hunk: _HunkBuilder | None = None

    def close_hunk(self) -> None:
        if self.hunk is not None:
            self.hunks.append(self.hunk.build())
            self.hunk = None

    def build(self, keep_raw_diff: bool = False) -> FileDiff:
        self.close_hunk()
        return FileDiff(
            file_path=self.file_path,
            old_path=self.old_path,
            change_type=self.change_type,
            is_binary=self.is_binary,
            is_new=self.is_new,
            is_deleted=self.is_deleted,
            is_renamed=self.is_renamed,
            old_mode=self.old_mode,
            new_mode=self.new_mode,
            header_lines=tuple(self.header_lines),
            hunks=() if self.is_binary else tuple(self.hunks),
            raw_diff="\n".join(self.raw_lines) if keep_raw_diff else None,
        )


def _classify(raw_line: str) -> tuple[LineType, str] | None:
    """Map a content line's marker to its type and stripped content.

    Returns None for an unrecognized marker.
    """
    marker, content = raw_line[0], raw_line[1:]
    if marker == " ":
        return LineType.CONTEXT, content
    if marker == "+":
        return LineType.ADDITION, content
    if marker == "-":
        return LineType.DELETION, content
    if marker == "\\":
        return LineType.NO_NEWLINE_MARKER, content
    return None


class DiffParser:
    """Parser for git unified diff output."""

    def __init__(
        self,
        strict: bool = False,
        warn_on_parse_error: bool = False,
        keep_raw_diff: bool = False,
    ):
        """Initialize the parser.

        Args:
            strict: If True, raise DiffParseError subclasses for malformed
                constructs instead of skipping them.
            warn_on_parse_error: If True, log skipped constructs as warnings
                rather than debug messages.
            keep_raw_diff: If True, populate FileDiff.raw_diff with the raw
                text of each file block.
        """
        self.strict = strict
        self.warn_on_parse_error = warn_on_parse_error
        self.keep_raw_diff = keep_raw_diff
        self.diagnostics: list[tuple[int, str]] = []
        self._record_level: int | None = None

    def collect_diagnostics(self, level: int) -> None:
        """Keep diagnostics at or above level in self.diagnostics instead of logging them.

        Worker processes have no handlers installed, so the pipeline ships
        these (level, message) pairs back for the parent to log.
        """
        self._record_level = level

    @classmethod
    def from_config(cls, config: DiffReaderConfig) -> DiffParser:
        return cls(
            strict=config.strict,
            warn_on_parse_error=config.warn_on_parse_error,
            keep_raw_diff=config.keep_raw_diff,
        )

    def parse(self, diff_text: str) -> list[FileDiff]:
        """Parse git diff output into an ordered list of file diffs."""
        return list(self.iter_files(diff_text))

    def iter_files(self, diff_text: str) -> Iterator[FileDiff]:
        """Parse git diff output, yielding each file once it is complete."""
        lines = split_diff_lines(diff_text)
        seen_file = False
        for file_diff in self.scan_lines(lines):
            seen_file = True
            yield file_diff

        if self.strict and not seen_file:
            for number, line in enumerate(lines, start=1):
                if line:
                    raise InvalidDiffFormatError(
                        "No 'diff --git' header found",
                        fragment=line,
                        line_number=number,
                    )

    def parse_file(self, diff_text: str, path: str) -> FileDiff | None:
        """Parse diff output and return the entry for one path, if present."""
        return find_file(self.iter_files(diff_text), path)

    def parse_parallel(
        self,
        diff_text: str,
        max_workers: int | None = None,
        min_parallel_blocks: int = 2,
    ) -> list[FileDiff]:
        """Parse per-file blocks in worker processes; same result as parse()."""
        from diffreader.git.pipeline import parse_parallel

        return parse_parallel(
            diff_text,
            parser=self,
            max_workers=max_workers,
            min_parallel_blocks=min_parallel_blocks,
        )

    def scan_lines(
        self,
        lines: Sequence[str],
        first_line_number: int = 1,
    ) -> Iterator[FileDiff]:
        """Run the header/content state machine over pre-split lines.

        Args:
            lines: Lines as produced by split_diff_lines().
            first_line_number: Line number of lines[0], used in diagnostics.
        """
        current: _FileBuilder | None = None

        for number, line in enumerate(lines, start=first_line_number):
            if line.startswith(_GIT_DIFF_HEADER_PREFIX):
                if current is not None:
                    yield current.build(self.keep_raw_diff)
                current = self._start_file(line, number)
                current.raw_lines.append(line)
                continue

            if current is not None:
                current.raw_lines.append(line)

            # Empty strings never carry a diff marker
            if not line:
                continue

            if current is None:
                self._handle_orphan_line(line, number)
            else:
                self._handle_line(current, line, number)

        if current is not None:
            yield current.build(self.keep_raw_diff)

    def _start_file(self, line: str, number: int) -> _FileBuilder:
        paths = _parse_diff_header_paths(line)
        if paths is None:
            self._skip(
                InvalidDiffFormatError,
                "Malformed 'diff --git' header",
                line,
                line_number=number,
            )
            paths = ("", "")

        old_path, new_path = paths
        return _FileBuilder(
            file_path=new_path,
            old_path=old_path if old_path != new_path else None,
            header_lines=[line],
        )

    def _handle_orphan_line(self, line: str, number: int) -> None:
        """Lines seen before any 'diff --git' header are dropped."""
        if line.startswith(_HUNK_HEADER_PREFIX):
            self._skip(
                MalformedHunkHeaderError,
                "Hunk header outside of a file",
                line,
                line_number=number,
            )
        else:
            self._log(logging.DEBUG, "Dropping line %d outside of a file: %.60s", number, line)

    def _handle_line(self, current: _FileBuilder, line: str, number: int) -> None:  # noqa: PLR0912
        """Apply one line to the open file.

        A '--- a/<path>' header loses its a/ prefix before it is compared
        with file_path, so a plain modification never reports an old_path;
        only a genuinely different pre-change name does.
        """
        if line.startswith(_INDEX_PREFIX):
            current.header_lines.append(line)

        elif line.startswith(_OLD_FILE_PREFIX):
            current.header_lines.append(line)
            path = _extract_file_header_path(line)
            if path == _DEV_NULL:
                current.change_type = ChangeType.ADDED
                current.is_new = True
            else:
                path = _parse_git_path(path)
                if current.old_path is None and path != current.file_path:
                    current.old_path = path

        elif line.startswith(_NEW_FILE_PREFIX):
            current.header_lines.append(line)
            if _extract_file_header_path(line) == _DEV_NULL:
                current.change_type = ChangeType.DELETED
                current.is_deleted = True

        elif line.startswith(_HUNK_HEADER_PREFIX):
            current.close_hunk()
            header = parse_hunk_header(line)
            if header is None:
                self._skip(
                    MalformedHunkHeaderError,
                    "Malformed hunk header",
                    line,
                    file_path=current.file_path,
                    line_number=number,
                )
            else:
                current.hunk = _HunkBuilder.open(header)

        elif line.startswith(_BINARY_PREFIX):
            current.hunk = None
            current.hunks.clear()
            current.is_binary = True
            current.header_lines.append(line)

        elif line.startswith(_NEW_FILE_MODE_PREFIX):
            current.change_type = ChangeType.ADDED
            current.is_new = True
            current.new_mode = line.rsplit(" ", 1)[-1]
            current.header_lines.append(line)

        elif line.startswith(_DELETED_FILE_MODE_PREFIX):
            current.change_type = ChangeType.DELETED
            current.is_deleted = True
            current.old_mode = line.rsplit(" ", 1)[-1]
            current.header_lines.append(line)

        elif line.startswith(_RENAME_PREFIXES):
            current.change_type = ChangeType.RENAMED
            current.is_renamed = True
            current.header_lines.append(line)

        elif current.hunk is not None:
            self._add_content_line(current, current.hunk, line, number)

        else:
            self._log(
                logging.DEBUG,
                "Dropping line %d outside of a hunk in %s: %.60s",
                number,
                current.file_path,
                line,
            )

    def _add_content_line(
        self,
        current: _FileBuilder,
        hunk: _HunkBuilder,
        line: str,
        number: int,
    ) -> None:
        classified = _classify(line)
        if classified is None:
            self._skip(
                UnexpectedContentError,
                "Unrecognized line marker",
                line,
                file_path=current.file_path,
                hunk_header=hunk.header.header_line,
                line_number=number,
            )
            # Malformed tool output: keep it as context
            classified = (LineType.CONTEXT, line)

        line_type, content = classified
        hunk.add(line_type, content, line)

    def _skip(
        self,
        error_cls: type[DiffParseError],
        message: str,
        fragment: str,
        **location: str | int | None,
    ) -> None:
        """Raise in strict mode; otherwise log and let the caller degrade."""
        if self.strict:
            raise error_cls(message, fragment=fragment, **location)

        level = logging.WARNING if self.warn_on_parse_error else logging.DEBUG
        self._log(level, "%s (line %s): %.60s", message, location.get("line_number"), fragment)

    def _log(self, level: int, msg: str, *args: object) -> None:
        if self._record_level is None:
            logger.log(level, msg, *args)
        elif level >= self._record_level:
            self.diagnostics.append((level, msg % args))


def find_file(diffs: Iterable[FileDiff], path: str) -> FileDiff | None:
    """Return the first file diff whose new or old path equals path."""
    for file_diff in diffs:
        if file_diff.file_path == path or file_diff.old_path == path:
            return file_diff
    return None


def parse_diff(diff_text: str, *, strict: bool = False) -> list[FileDiff]:
    """Parse git diff output with a default-configured parser."""
    return DiffParser(strict=strict).parse(diff_text)
