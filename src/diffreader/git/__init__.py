"""Git diff parsing for diffreader."""
from diffreader.git.diff_parser import DiffParser, find_file, parse_diff, parse_hunk_header
from diffreader.git.pipeline import parse_parallel

__all__ = ["DiffParser", "find_file", "parse_diff", "parse_hunk_header", "parse_parallel"]
