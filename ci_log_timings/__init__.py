# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
CI build timing breakdown library.

This package contains the implementation for:
- per-step timing extraction from a raw build log (banner line -> timing line pairing)
- a per-job duration report for recent AppVeyor builds

Public API is re-exported from:
- `ci_log_timings.engine` for timing extraction
- `ci_log_timings.render` for row formatting
- `ci_log_timings.exceptions` for error types
"""

from .engine import (  # noqa: F401
    HeaderState,
    TimingExtractor,
    TimingRecord,
    extract_timings,
    extract_timings_from_log_file,
    extract_timings_from_numbered_lines,
    extract_timings_from_text,
)
from .exceptions import (  # noqa: F401
    MissingHeaderError,
    TimingExtractionError,
    TimingValueError,
)
from .render import format_timing_row  # noqa: F401

__all__ = [
    "HeaderState",
    "MissingHeaderError",
    "TimingExtractionError",
    "TimingExtractor",
    "TimingRecord",
    "TimingValueError",
    "extract_timings",
    "extract_timings_from_log_file",
    "extract_timings_from_numbered_lines",
    "extract_timings_from_text",
    "format_timing_row",
]
