"""Aggregate statistics across parsed file diffs."""
from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable

from pydantic import BaseModel, Field

from diffreader.exceptions import NumstatParseError
from diffreader.models import ChangeType, FileDiff

logger = logging.getLogger(__name__)

# "<added>\t<deleted>\t<path>"; renames may add more tab-separated fields
_MIN_NUMSTAT_FIELDS = 3
_BINARY_NUMSTAT_COUNT = "-"


class DiffSummary(BaseModel):
    """Totals for a whole diff stream."""
    files: int = 0
    additions: int = 0
    deletions: int = 0
    binary_files: int = 0
    change_types: dict[ChangeType, int] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def net_change(self) -> int:
        return self.additions - self.deletions

    @property
    def total_changes(self) -> int:
        return self.additions + self.deletions


def summarize(diffs: Iterable[FileDiff]) -> DiffSummary:
    """Sum per-file addition and deletion counts."""
    files = additions = deletions = binary_files = 0
    change_types: Counter[ChangeType] = Counter()

    for file_diff in diffs:
        files += 1
        additions += file_diff.additions_count
        deletions += file_diff.deletions_count
        if file_diff.is_binary:
            binary_files += 1
        change_types[file_diff.change_type] += 1

    return DiffSummary(
        files=files,
        additions=additions,
        deletions=deletions,
        binary_files=binary_files,
        change_types=dict(change_types),
    )


def _parse_count(token: str) -> int | None:
    if token.isascii() and token.isdigit():
        return int(token)
    return None


def parse_numstat(numstat_output: str, strict: bool = False) -> DiffSummary:
    """Summarize `git diff --numstat` output.

    Binary files are reported by git as '-' counts and are tallied as binary
    files with no line changes. Malformed rows are skipped unless strict.
    """
    files = additions = deletions = binary_files = 0

    for number, line in enumerate(numstat_output.splitlines(), start=1):
        if not line.strip():
            continue

        fields = line.split("\t")
        if len(fields) < _MIN_NUMSTAT_FIELDS:
            fields = line.split()
        if len(fields) < _MIN_NUMSTAT_FIELDS:
            if strict:
                raise NumstatParseError(f"Malformed numstat row at line {number}: {line!r}")
            logger.debug("Skipping malformed numstat row %d: %.60s", number, line)
            continue

        added_text, deleted_text = fields[0].strip(), fields[1].strip()
        if added_text == _BINARY_NUMSTAT_COUNT and deleted_text == _BINARY_NUMSTAT_COUNT:
            files += 1
            binary_files += 1
            continue

        added = _parse_count(added_text)
        deleted = _parse_count(deleted_text)
        if added is None or deleted is None:
            if strict:
                raise NumstatParseError(f"Non-numeric numstat counts at line {number}: {line!r}")
            logger.debug("Skipping numstat row %d with bad counts: %.60s", number, line)
            continue

        files += 1
        additions += added
        deletions += deleted

    return DiffSummary(
        files=files,
        additions=additions,
        deletions=deletions,
        binary_files=binary_files,
    )
