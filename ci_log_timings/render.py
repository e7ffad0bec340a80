# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Plain-text rendering for timing records and the job-duration report."""

from __future__ import annotations

from typing import Iterable, Sequence, TextIO

from .engine import TimingRecord
from .exceptions import TimingExtractionError

# Label column width; longer labels are not truncated.
LABEL_WIDTH = 28


def format_timing_row(record: TimingRecord) -> str:
    """`stage1-rustc                \t 123.45`"""
    return f"{record.label:<{LABEL_WIDTH}}\t{record.duration:7.2f}"


def format_extraction_diagnostic(error: TimingExtractionError) -> str:
    """Error message followed by the offending log line, verbatim."""
    return f"{error}\n{error.line}\n"


def write_timing_rows(records: Iterable[TimingRecord], out: TextIO) -> int:
    """Write one row per record as it arrives; returns the number written.

    Rows are flushed one by one so whatever was emitted before a fatal error is visible.
    """
    n = 0
    for record in records:
        out.write(format_timing_row(record) + "\n")
        out.flush()
        n += 1
    return n


def format_tsv_row(cells: Sequence[object]) -> str:
    return "\t".join(str(c) for c in cells)
