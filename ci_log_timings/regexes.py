# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Regex catalog for `ci_log_timings`.

Goal: keep regexes *discoverable* and *stable*.

Conventions:
- TIMING_*  : elapsed-time measurements inside a build log
- HEADER_*  : step banner lines (ordered priority table)
- JOB_*     : AppVeyor job-name classification for the job-duration report

This module is intentionally "boring":
- no side effects
- no imports from other `ci_log_timings` modules (avoid cycles)
"""

from __future__ import annotations

import re
from typing import Dict, FrozenSet, NamedTuple, Pattern, Tuple

#
# =============================================================================
# TIMING_* (elapsed-time measurements)
# =============================================================================
#

# Two phrasings for the same quantity, e.g.:
#   "    Finished release [optimized] target(s) in 123.45 secs"
#   "test result: ok. 12 passed; 0 failed; finished in 5.00"
# Exactly one group participates per match.
TIMING_RE: Pattern[str] = re.compile(r"\b([0-9]+\.[0-9]+) secs\b|\bfinished in ([0-9]+\.[0-9]+)\b")

#
# =============================================================================
# HEADER_* (step banners)
# =============================================================================
#


class HeaderRule(NamedTuple):
    """One banner pattern plus the label template it produces (`$1`, `$2`, ... placeholders)."""

    pattern: Pattern[str]
    template: str


# Label template placeholders: `$1` expands to capture group 1 of the rule's pattern.
HEADER_TEMPLATE_PLACEHOLDER_RE: Pattern[str] = re.compile(r"\$(\d+)")

# ORDER MATTERS: first match wins. Several entries overlap on purpose, e.g.
# "Building stage1 compiler artifacts" also matches the generic "artifacts" rule below it.
HEADER_RULES: Tuple[HeaderRule, ...] = (
    HeaderRule(re.compile(r"Attempting with retry: make prepare"), "make-prepare"),
    HeaderRule(re.compile(r"Doctest: bootstrap"), "pytest/bootstrap"),
    HeaderRule(re.compile(r"Building stage(\d) compiler artifacts"), "stage$1-rustc"),
    HeaderRule(re.compile(r"Building rustdoc for stage(\d)"), "stage$1-rustdoc"),
    HeaderRule(re.compile(r"Building stage(\d) ([\w-]+) artifacts"), "stage$1-$2"),
    HeaderRule(re.compile(r"Building stage(\d) tool ([\w-]+)"), "stage$1-$2"),
    HeaderRule(re.compile(r"Compiling bootstrap v0\.0\.0"), "bootstrap"),
    HeaderRule(re.compile(r"Building LLVM"), "llvm"),
    # Windows paths in the banner: `test [run-pass] run-pass\...`
    HeaderRule(re.compile(r"test \[[\w-]+\] ([\w-]+)\\"), "test/$1"),
    HeaderRule(re.compile(r"Testing ([\w-]+) stage(\d)"), "stage$2-test-$1"),
    HeaderRule(re.compile(r"Running build\\[^\\]+\\stage\d-([\w-]+)\\"), "test/lib$1"),
    HeaderRule(re.compile(r"Documenting stage\d ([\w-]+)"), "doc/$1"),
    HeaderRule(re.compile(r"doc tests for:"), "test/docs"),
)

# The linkchecker step prints two timing lines under one banner; the second one
# belongs to the link-check test run itself.
HEADER_CONTINUATION_SENTINEL: str = "stage0-linkchecker"
HEADER_CONTINUATION_SUCCESSOR: str = "test/linkchecker"

#
# =============================================================================
# JOB_* (AppVeyor job matrix)
# =============================================================================
#

JOB_PR_NUMBER_RE: Pattern[str] = re.compile(r"Auto merge of #([0-9]+)")

# Indices into this tuple are what JOB_MATRIX_COLUMNS keys are built from.
JOB_NAME_RULES: Tuple[Pattern[str], ...] = (
    re.compile(r"--build=x86_64-pc-windows-msvc\b"),  # 0
    re.compile(r"--build=i686-pc-windows-msvc\b"),  # 1
    re.compile(r"--build=x86_64-pc-windows-gnu\b"),  # 2
    re.compile(r"--build=i686-pc-windows-gnu\b"),  # 3
    re.compile(r"\bcheck-aux\b"),  # 4
    re.compile(r"\bcargotest\b"),  # 5
    re.compile(r"\bpython x.py test\b"),  # 6
    re.compile(r"\bpython x.py dist\b"),  # 7
    re.compile(r"\bDEPLOY_ALT=1\b"),  # 8
)

# Exact set of matching JOB_NAME_RULES indices -> report column name.
# Insertion order is the report column order.
JOB_MATRIX_COLUMNS: Dict[FrozenSet[int], str] = {
    frozenset({0, 6}): "check-64-msvc",
    frozenset({1, 6}): "check-32-msvc",
    frozenset({0, 4}): "check-aux",
    frozenset({0, 5, 6}): "cargotest",
    frozenset({3, 6}): "check-32-gnu",
    frozenset({2, 6}): "check-64-gnu",
    frozenset({0, 7}): "dist-64-msvc",
    frozenset({1, 7}): "dist-32-msvc",
    frozenset({3, 7}): "dist-32-gnu",
    frozenset({2, 7}): "dist-64-gnu",
    frozenset({0, 7, 8}): "dist-alt",
}
