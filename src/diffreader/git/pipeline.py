"""Parallel diff parsing over per-file blocks with ordered reassembly."""

from __future__ import annotations

import logging
import os
from concurrent.futures import FIRST_COMPLETED, Future, ProcessPoolExecutor, wait
from dataclasses import dataclass

from diffreader.git.diff_parser import DiffParser, split_diff_lines
from diffreader.git.diff_parser import logger as parser_logger
from diffreader.models import FileDiff

_BLOCK_HEADER_PREFIX = "diff --git"


@dataclass(frozen=True)
class BlockWorkItem:
    """One 'diff --git' block scheduled for a parser worker."""

    sequence: int
    first_line_number: int
    lines: tuple[str, ...]
    strict: bool = False
    warn_on_parse_error: bool = False
    keep_raw_diff: bool = False
    log_level: int = logging.WARNING


@dataclass(frozen=True)
class ParsedBlockResult:
    """Parser output for a single block."""

    work_item: BlockWorkItem
    files: tuple[FileDiff, ...] = ()
    diagnostics: tuple[tuple[int, str], ...] = ()


def split_file_blocks(lines: list[str]) -> list[tuple[int, tuple[str, ...]]]:
    """Group lines into blocks that each start at a 'diff --git' header.

    Lines before the first header form their own leading block so that the
    same diagnostics fire as in a sequential scan. Returns
    (first_line_number, lines) pairs.
    """
    blocks: list[tuple[int, tuple[str, ...]]] = []
    start = 0
    for index, line in enumerate(lines):
        if line.startswith(_BLOCK_HEADER_PREFIX) and index > start:
            blocks.append((start + 1, tuple(lines[start:index])))
            start = index
    if start < len(lines):
        blocks.append((start + 1, tuple(lines[start:])))
    return blocks


def build_block_work_items(
    diff_text: str,
    parser: DiffParser | None = None,
) -> list[BlockWorkItem]:
    """Build ordered work items from diff text."""

    parser = parser or DiffParser()
    work_items: list[BlockWorkItem] = []
    blocks = split_file_blocks(split_diff_lines(diff_text))
    for sequence, (first_line_number, lines) in enumerate(blocks):
        work_items.append(
            BlockWorkItem(
                sequence=sequence,
                first_line_number=first_line_number,
                lines=lines,
                strict=parser.strict,
                warn_on_parse_error=parser.warn_on_parse_error,
                keep_raw_diff=parser.keep_raw_diff,
                log_level=parser_logger.getEffectiveLevel(),
            )
        )
    return work_items


def parse_block(work_item: BlockWorkItem) -> ParsedBlockResult:
    """Parse one work item in a worker process."""

    parser = DiffParser(
        strict=work_item.strict,
        warn_on_parse_error=work_item.warn_on_parse_error,
        keep_raw_diff=work_item.keep_raw_diff,
    )
    parser.collect_diagnostics(work_item.log_level)
    files = tuple(parser.scan_lines(work_item.lines, work_item.first_line_number))
    return ParsedBlockResult(
        work_item=work_item,
        files=files,
        diagnostics=tuple(parser.diagnostics),
    )


def _emit_diagnostics(result: ParsedBlockResult) -> None:
    for level, message in result.diagnostics:
        parser_logger.log(level, "%s", message)


def parse_blocks_pipeline(
    work_items: list[BlockWorkItem],
    *,
    max_workers: int | None = None,
) -> list[ParsedBlockResult]:
    """Parse blocks through process workers, returning results in sequence order."""

    if not work_items:
        return []

    worker_count = max_workers or (os.cpu_count() or 1)
    worker_count = max(worker_count, 1)
    max_in_flight = max(worker_count * 2, 1)

    pending = iter(work_items)
    in_flight: dict[Future[ParsedBlockResult], int] = {}
    # Finished futures by sequence; a failure surfaces only when its turn comes
    buffered: dict[int, Future[ParsedBlockResult]] = {}
    parsed_results: list[ParsedBlockResult] = []
    exhausted = False
    next_sequence = 0

    with ProcessPoolExecutor(max_workers=worker_count) as executor:
        try:
            while True:
                while not exhausted and len(in_flight) < max_in_flight:
                    item = next(pending, None)
                    if item is None:
                        exhausted = True
                        break
                    future = executor.submit(parse_block, item)
                    in_flight[future] = item.sequence

                if not in_flight:
                    break

                done_futures, _ = wait(tuple(in_flight), return_when=FIRST_COMPLETED)
                for future in done_futures:
                    sequence = in_flight.pop(future)
                    buffered[sequence] = future

                while next_sequence in buffered:
                    result = buffered.pop(next_sequence).result()
                    _emit_diagnostics(result)
                    parsed_results.append(result)
                    next_sequence += 1
        except Exception:
            for future in in_flight:
                future.cancel()
            raise

    return parsed_results


def parse_parallel(
    diff_text: str,
    *,
    parser: DiffParser | None = None,
    max_workers: int | None = None,
    min_parallel_blocks: int = 2,
) -> list[FileDiff]:
    """Parse diff text across worker processes.

    The result equals ``parser.parse(diff_text)``. Small inputs and
    single-worker runs are parsed in-process.
    """
    parser = parser or DiffParser()
    work_items = build_block_work_items(diff_text, parser)

    if max_workers == 1 or len(work_items) < max(min_parallel_blocks, 2):
        return parser.parse(diff_text)

    results = parse_blocks_pipeline(work_items, max_workers=max_workers)
    return [file_diff for result in results for file_diff in result.files]
