"""Domain entities for diffreader."""
from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath

from pydantic import BaseModel


class ChangeType(str, Enum):
    """Canonical label for a file's change within a diff."""
    MODIFIED = "modified"
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"


class LineType(str, Enum):
    """Classification of a content line inside a hunk."""
    CONTEXT = "context"
    ADDITION = "addition"
    DELETION = "deletion"
    NO_NEWLINE_MARKER = "no_newline_marker"

    @property
    def is_change(self) -> bool:
        return self in (LineType.ADDITION, LineType.DELETION)


class DiffLine(BaseModel):
    """Represents one classified line inside a hunk."""
    type: LineType
    old_line_number: int | None = None
    new_line_number: int | None = None
    content: str
    raw_line: str

    model_config = {"frozen": True}

    @property
    def is_addition(self) -> bool:
        return self.type is LineType.ADDITION

    @property
    def is_deletion(self) -> bool:
        return self.type is LineType.DELETION

    @property
    def is_context(self) -> bool:
        return self.type is LineType.CONTEXT

    @property
    def is_change(self) -> bool:
        return self.type.is_change

    @property
    def display_line_number(self) -> int | None:
        """Line number to show next to the line, preferring the new side."""
        if self.new_line_number is not None:
            return self.new_line_number
        return self.old_line_number


class HunkStats(BaseModel):
    """Line counts for a single hunk."""
    additions: int
    deletions: int
    context: int
    total: int

    model_config = {"frozen": True}

    @property
    def net_change(self) -> int:
        return self.additions - self.deletions

    @property
    def total_changes(self) -> int:
        return self.additions + self.deletions

    @property
    def has_changes(self) -> bool:
        return self.total_changes > 0


class DiffHunk(BaseModel):
    """Represents one contiguous change region of a file."""
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    context: str | None = None
    header_line: str
    lines: tuple[DiffLine, ...] = ()

    model_config = {"frozen": True}

    def _count(self, line_type: LineType) -> int:
        return sum(1 for line in self.lines if line.type is line_type)

    @property
    def additions_count(self) -> int:
        return self._count(LineType.ADDITION)

    @property
    def deletions_count(self) -> int:
        return self._count(LineType.DELETION)

    @property
    def context_count(self) -> int:
        return self._count(LineType.CONTEXT)

    @property
    def has_changes(self) -> bool:
        return self.additions_count > 0 or self.deletions_count > 0

    @property
    def is_addition_only(self) -> bool:
        return self.additions_count > 0 and self.deletions_count == 0

    @property
    def is_deletion_only(self) -> bool:
        return self.deletions_count > 0 and self.additions_count == 0

    @property
    def is_mixed(self) -> bool:
        return self.additions_count > 0 and self.deletions_count > 0

    @property
    def old_end(self) -> int:
        return self.old_start + self.old_count - 1

    @property
    def new_end(self) -> int:
        return self.new_start + self.new_count - 1

    @property
    def stats(self) -> HunkStats:
        return HunkStats(
            additions=self.additions_count,
            deletions=self.deletions_count,
            context=self.context_count,
            total=len(self.lines),
        )


class DiffStats(BaseModel):
    """Line counts for a whole file diff."""
    additions: int
    deletions: int
    context: int
    hunks: int
    is_binary: bool = False

    model_config = {"frozen": True}

    @property
    def net_change(self) -> int:
        return self.additions - self.deletions

    @property
    def total_changes(self) -> int:
        return self.additions + self.deletions

    @property
    def total_lines(self) -> int:
        return self.additions + self.deletions + self.context

    @property
    def has_changes(self) -> bool:
        return self.total_changes > 0 or self.is_binary

    @property
    def addition_percentage(self) -> float:
        """Share of changed lines that are additions, from 0.0 to 1.0."""
        if self.total_changes == 0:
            return 0.0
        return self.additions / self.total_changes

    @property
    def deletion_percentage(self) -> float:
        """Share of changed lines that are deletions, from 0.0 to 1.0."""
        if self.total_changes == 0:
            return 0.0
        return self.deletions / self.total_changes


class FileDiff(BaseModel):
    """Represents one file's change within a diff stream."""
    file_path: str
    old_path: str | None = None
    change_type: ChangeType = ChangeType.MODIFIED
    is_binary: bool = False
    is_new: bool = False
    is_deleted: bool = False
    is_renamed: bool = False
    old_mode: str | None = None
    new_mode: str | None = None
    header_lines: tuple[str, ...] = ()
    hunks: tuple[DiffHunk, ...] = ()
    raw_diff: str | None = None

    model_config = {"frozen": True}

    @property
    def all_lines(self) -> list[DiffLine]:
        return [line for hunk in self.hunks for line in hunk.lines]

    @property
    def added_lines(self) -> list[DiffLine]:
        return [line for line in self.all_lines if line.is_addition]

    @property
    def deleted_lines(self) -> list[DiffLine]:
        return [line for line in self.all_lines if line.is_deletion]

    @property
    def context_lines(self) -> list[DiffLine]:
        return [line for line in self.all_lines if line.is_context]

    @property
    def additions_count(self) -> int:
        return sum(hunk.additions_count for hunk in self.hunks)

    @property
    def deletions_count(self) -> int:
        return sum(hunk.deletions_count for hunk in self.hunks)

    @property
    def context_count(self) -> int:
        return sum(hunk.context_count for hunk in self.hunks)

    @property
    def total_lines(self) -> int:
        return sum(len(hunk.lines) for hunk in self.hunks)

    @property
    def net_change(self) -> int:
        return self.additions_count - self.deletions_count

    @property
    def total_changes(self) -> int:
        return self.additions_count + self.deletions_count

    @property
    def has_changes(self) -> bool:
        return self.total_changes > 0 or self.is_binary

    @property
    def file_name(self) -> str:
        return PurePosixPath(self.file_path).name

    @property
    def directory_path(self) -> str | None:
        """Parent directory of the file, or None for top-level files."""
        parent = str(PurePosixPath(self.file_path).parent)
        return None if parent in ("", ".") else parent

    @property
    def file_extension(self) -> str:
        return PurePosixPath(self.file_path).suffix.lstrip(".")

    @property
    def display_path(self) -> str:
        if self.is_renamed and self.old_path:
            return f"{self.old_path} → {self.file_path}"
        return self.file_path

    @property
    def stats(self) -> DiffStats:
        return DiffStats(
            additions=self.additions_count,
            deletions=self.deletions_count,
            context=self.context_count,
            hunks=len(self.hunks),
            is_binary=self.is_binary,
        )
