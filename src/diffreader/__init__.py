"""diffreader - Structured parsing of git unified diff output."""
from diffreader.git import DiffParser, find_file, parse_diff, parse_parallel
from diffreader.models import ChangeType, DiffHunk, DiffLine, DiffStats, FileDiff, LineType

__version__ = "0.1.0"

__all__ = [
    "ChangeType",
    "DiffHunk",
    "DiffLine",
    "DiffParser",
    "DiffStats",
    "FileDiff",
    "LineType",
    "find_file",
    "parse_diff",
    "parse_parallel",
]
