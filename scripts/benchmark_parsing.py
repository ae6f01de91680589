#!/usr/bin/env python3
"""Benchmark sequential vs parallel diff parsing on synthetic diffs.

This harness is local-only and intentionally opt-in. It is not part of normal
test runs and is meant to produce reproducible performance numbers for docs.
"""

from __future__ import annotations

import argparse
import json
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from diffreader.git import DiffParser
from diffreader.git.pipeline import parse_parallel
from diffreader.stats import summarize

_DEFAULT_FILE_COUNT = 5_000
_DEFAULT_HUNKS_PER_FILE = 4
_DEFAULT_LINES_PER_HUNK = 12
_BINARY_EVERY = 50


@dataclass(frozen=True)
class FixtureSummary:
    files: int
    hunks_per_file: int
    lines_per_hunk: int
    bytes: int


@dataclass(frozen=True)
class RunMetrics:
    profile: str
    files_parsed: int
    additions: int
    deletions: int
    duration_s: float
    throughput_per_s: float


def _throughput(units: int, duration_s: float) -> float:
    if duration_s <= 0:
        return 0.0
    return units / duration_s


def _file_block(index: int, hunks: int, lines_per_hunk: int) -> list[str]:
    path = f"pkg_{index % 97}/module_{index}.py"
    block = [
        f"diff --git a/{path} b/{path}",
        f"index {index:07x}..{index + 1:07x} 100644",
    ]
    if index % _BINARY_EVERY == 0:
        block.append(f"Binary files a/{path} and b/{path} differ")
        return block

    block.extend([f"--- a/{path}", f"+++ b/{path}"])
    start = 1
    for hunk in range(hunks):
        block.append(
            f"@@ -{start},{lines_per_hunk} +{start},{lines_per_hunk + 1} @@ def helper_{hunk}():"
        )
        for offset in range(lines_per_hunk):
            if offset == lines_per_hunk // 2:
                block.append(f"-    value = {offset}")
                block.append(f"+    value = {offset} + {index}")
                block.append(f"+    extra_{offset} = True")
            else:
                block.append(f"     line_{offset} = {hunk}")
        start += lines_per_hunk * 3
    return block


def generate_fixture(
    *, files: int, hunks_per_file: int, lines_per_hunk: int
) -> tuple[str, FixtureSummary]:
    lines: list[str] = []
    for index in range(files):
        lines.extend(_file_block(index, hunks_per_file, lines_per_hunk))
    text = "\n".join(lines) + "\n"
    return text, FixtureSummary(
        files=files,
        hunks_per_file=hunks_per_file,
        lines_per_hunk=lines_per_hunk,
        bytes=len(text.encode("utf-8")),
    )


def run_sequential(diff_text: str) -> RunMetrics:
    started = time.perf_counter()
    diffs = DiffParser().parse(diff_text)
    duration_s = time.perf_counter() - started
    summary = summarize(diffs)
    return RunMetrics(
        profile="sequential",
        files_parsed=summary.files,
        additions=summary.additions,
        deletions=summary.deletions,
        duration_s=duration_s,
        throughput_per_s=_throughput(summary.files, duration_s),
    )


def run_parallel(diff_text: str, *, workers: int) -> RunMetrics:
    started = time.perf_counter()
    diffs = parse_parallel(diff_text, max_workers=workers)
    duration_s = time.perf_counter() - started
    summary = summarize(diffs)
    return RunMetrics(
        profile=f"parallel_{workers}",
        files_parsed=summary.files,
        additions=summary.additions,
        deletions=summary.deletions,
        duration_s=duration_s,
        throughput_per_s=_throughput(summary.files, duration_s),
    )


def _metrics_to_dict(metrics: RunMetrics) -> dict[str, Any]:
    return {
        "profile": metrics.profile,
        "files_parsed": metrics.files_parsed,
        "additions": metrics.additions,
        "deletions": metrics.deletions,
        "duration_s": metrics.duration_s,
        "throughput_files_per_s": metrics.throughput_per_s,
    }


def _speedup(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    return numerator / denominator


def _print_run(metrics: RunMetrics) -> None:
    print(f"\n[{metrics.profile}]")
    print(f"  files: {metrics.files_parsed} (+{metrics.additions} / -{metrics.deletions})")
    print(
        "  parse: "
        f"{metrics.duration_s:.3f}s "
        f"({metrics.throughput_per_s:,.1f} files/s)"
    )


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Benchmark diffreader sequential vs parallel parsing.",
    )
    parser.add_argument(
        "--files",
        type=int,
        default=_DEFAULT_FILE_COUNT,
        help=f"Number of file blocks to generate (default: {_DEFAULT_FILE_COUNT}).",
    )
    parser.add_argument(
        "--hunks",
        type=int,
        default=_DEFAULT_HUNKS_PER_FILE,
        help=f"Hunks per file (default: {_DEFAULT_HUNKS_PER_FILE}).",
    )
    parser.add_argument(
        "--lines",
        type=int,
        default=_DEFAULT_LINES_PER_HUNK,
        help=f"Context lines per hunk (default: {_DEFAULT_LINES_PER_HUNK}).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=max(os.cpu_count() or 1, 1),
        help="Worker process count for the parallel run.",
    )
    parser.add_argument(
        "--output-json",
        type=Path,
        default=None,
        help="Write raw benchmark results to JSON.",
    )
    return parser.parse_args()


def _validate_args(args: argparse.Namespace) -> None:
    if args.files <= 0:
        raise ValueError("--files must be > 0")
    if args.hunks <= 0:
        raise ValueError("--hunks must be > 0")
    if args.lines <= 1:
        raise ValueError("--lines must be > 1")
    if args.workers <= 0:
        raise ValueError("--workers must be > 0")


def main() -> int:
    args = parse_args()

    try:
        _validate_args(args)
    except ValueError as exc:
        print(f"error: {exc}")
        return 2

    diff_text, fixture = generate_fixture(
        files=args.files,
        hunks_per_file=args.hunks,
        lines_per_hunk=args.lines,
    )
    print(f"[fixture] files={fixture.files} bytes={fixture.bytes:,}")

    sequential = run_sequential(diff_text)
    _print_run(sequential)
    parallel = run_parallel(diff_text, workers=args.workers)
    _print_run(parallel)

    if parallel.files_parsed != sequential.files_parsed:
        print("error: parallel run disagrees with sequential run")
        return 1

    results: dict[str, Any] = {
        "fixture": {
            "files": fixture.files,
            "hunks_per_file": fixture.hunks_per_file,
            "lines_per_hunk": fixture.lines_per_hunk,
            "bytes": fixture.bytes,
        },
        "config": {"workers": args.workers},
        "sequential": _metrics_to_dict(sequential),
        "parallel": _metrics_to_dict(parallel),
        "speedup_x": _speedup(sequential.duration_s, parallel.duration_s),
    }

    if args.output_json is not None:
        args.output_json.parent.mkdir(parents=True, exist_ok=True)
        args.output_json.write_text(json.dumps(results, indent=2))
        print(f"\n[output] wrote JSON results to {args.output_json}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
