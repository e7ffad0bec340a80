# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Build-log timing extraction (single pass, no lookahead).

A CI build log announces each step with a free-text banner and prints the step's
elapsed time some lines later. This module walks the log once and pairs every
timing line with the banner that precedes it:

    Building stage1 compiler artifacts (x86_64-pc-windows-msvc -> x86_64-pc-windows-msvc)
    ...
        Finished release [optimized] target(s) in 1234.56 secs

yields `TimingRecord(label="stage1-rustc", duration=1234.56)`.

Banner patterns and label templates live in `ci_log_timings/regexes.py`.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, Optional, TextIO, Tuple

from .exceptions import MissingHeaderError, TimingValueError
from .regexes import (
    HEADER_CONTINUATION_SENTINEL,
    HEADER_CONTINUATION_SUCCESSOR,
    HEADER_RULES,
    HEADER_TEMPLATE_PLACEHOLDER_RE,
    TIMING_RE,
)

logger = logging.getLogger(__name__)


class HeaderPhase(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


@dataclass(frozen=True)
class HeaderState:
    """Pending step label: either IDLE or PENDING(label).

    Build through `idle()` / `pending()`; IDLE carries no label and PENDING always has one.
    """

    phase: HeaderPhase = HeaderPhase.IDLE
    label: str = ""

    def __post_init__(self) -> None:
        if self.phase is HeaderPhase.IDLE and self.label:
            raise ValueError(f"idle header state cannot carry a label: {self.label!r}")
        if self.phase is HeaderPhase.PENDING and not self.label:
            raise ValueError("pending header state needs a non-empty label")

    @classmethod
    def idle(cls) -> "HeaderState":
        return cls(HeaderPhase.IDLE, "")

    @classmethod
    def pending(cls, label: str) -> "HeaderState":
        return cls(HeaderPhase.PENDING, str(label))

    @property
    def is_pending(self) -> bool:
        return self.phase is HeaderPhase.PENDING

    def after_timing(self) -> "HeaderState":
        """State after a timing value has been emitted against this label.

        The sentinel step hands over to its successor label instead of going idle.
        """
        if self.label == HEADER_CONTINUATION_SENTINEL:
            return HeaderState.pending(HEADER_CONTINUATION_SUCCESSOR)
        return HeaderState.idle()


@dataclass(frozen=True)
class TimingRecord:
    """One (step label, seconds) pair."""

    label: str
    duration: float
    line_number: int = field(default=0, compare=False)  # 1-based line of the timing value

    def as_tuple(self) -> Tuple[str, float]:
        return (self.label, self.duration)


def expand_label_template(template: str, match: "re.Match[str]") -> str:
    """Substitute `$N` placeholders with capture group N (verbatim; missing groups -> "")."""

    def repl(m: "re.Match[str]") -> str:
        idx = int(m.group(1))
        if idx > (match.re.groups or 0):
            return ""
        return match.group(idx) or ""

    return HEADER_TEMPLATE_PLACEHOLDER_RE.sub(repl, template)


def match_timing(line: str) -> Optional[str]:
    """Return the captured numeric text if the line carries a timing value."""
    m = TIMING_RE.search(line or "")
    if not m:
        return None
    # Exactly one slot participates.
    return next(g for g in m.groups() if g is not None)


def match_header(line: str) -> Optional[str]:
    """Return the expanded label of the first matching banner rule (table order)."""
    for rule in HEADER_RULES:
        m = rule.pattern.search(line or "")
        if m:
            return expand_label_template(rule.template, m)
    return None


class TimingExtractor:
    """Correlate banner lines with the timing lines that follow them.

    One instance scans one stream. `process()` is lazy: records come out as soon as
    their timing line is read, so a fatal error leaves earlier records already delivered.
    """

    def __init__(self) -> None:
        self.state: HeaderState = HeaderState.idle()

    def feed(self, line_number: int, line: str) -> Optional[TimingRecord]:
        """Advance the state machine by one line.

        Raises:
            MissingHeaderError: timing line with no pending banner.
            TimingValueError: the captured timing text is not a float.
        """
        value_text = match_timing(line)
        if value_text is not None:
            if not self.state.is_pending:
                raise MissingHeaderError(line_number=line_number, line=line)
            try:
                value = float(value_text)
            except ValueError as e:
                raise TimingValueError(line_number=line_number, line=line, value=value_text) from e
            record = TimingRecord(label=self.state.label, duration=value, line_number=int(line_number))
            self.state = self.state.after_timing()
            if self.state.is_pending:
                logger.debug("line %d: %s continues as %s", line_number, record.label, self.state.label)
            return record

        # Banner-shaped text while a step is in flight is ignored.
        if self.state.is_pending:
            return None

        label = match_header(line)
        if label is not None:
            logger.debug("line %d: header %s", line_number, label)
            self.state = HeaderState.pending(label)
        return None

    def process(self, numbered_lines: Iterable[Tuple[int, str]]) -> Iterator[TimingRecord]:
        for line_number, line in numbered_lines:
            record = self.feed(line_number, line)
            if record is not None:
                yield record
        if self.state.is_pending:
            logger.debug("end of input: discarding pending header %s", self.state.label)


def extract_timings_from_numbered_lines(numbered_lines: Iterable[Tuple[int, str]]) -> Iterator[TimingRecord]:
    return TimingExtractor().process(numbered_lines)


def extract_timings(lines: Iterable[str]) -> Iterator[TimingRecord]:
    """Extract timing records from plain lines (numbered from 1)."""
    return TimingExtractor().process(enumerate(lines, start=1))


#
# Line sources
# =============================================================================
#


def iter_stream_lines(stream: TextIO) -> Iterator[Tuple[int, str]]:
    """Yield (1-based line number, line without trailing newline) pairs."""
    for line_number, raw in enumerate(stream, start=1):
        yield line_number, raw.rstrip("\r\n")


def iter_binary_stream_lines(buffer: BinaryIO) -> Iterator[Tuple[int, str]]:
    """Like `iter_log_lines`, for an already-open byte stream (e.g. `sys.stdin.buffer`)."""
    text = io.TextIOWrapper(buffer, encoding="utf-8", errors="replace", newline="\n")
    try:
        yield from iter_stream_lines(text)
    finally:
        # Leave the caller's byte stream open.
        text.detach()


def iter_log_lines(log_path: Path) -> Iterator[Tuple[int, str]]:
    """Yield numbered lines from a raw log file (undecodable bytes are replaced)."""
    with Path(log_path).open("r", encoding="utf-8", errors="replace", newline="\n") as f:
        yield from iter_stream_lines(f)


def extract_timings_from_log_file(log_path: Path) -> Iterator[TimingRecord]:
    return extract_timings_from_numbered_lines(iter_log_lines(log_path))


def extract_timings_from_text(text: str) -> Iterator[TimingRecord]:
    return extract_timings_from_numbered_lines(iter_stream_lines(io.StringIO(text or "", newline="\n")))
