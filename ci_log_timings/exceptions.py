# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Error types for ci_log_timings.

These are intentionally lightweight so the CLI can catch specific error classes
without importing the engine or the API client.
"""

from __future__ import annotations


class TimingExtractionError(Exception):
    def __init__(self, *, line_number: int, line: str, message: str):
        super().__init__(message)
        self.line_number = int(line_number)
        self.line = str(line or "")


class MissingHeaderError(TimingExtractionError):
    """A timing line showed up while no step banner was pending."""

    def __init__(self, *, line_number: int, line: str):
        super().__init__(
            line_number=line_number,
            line=line,
            message=f"missing header for timing at line {int(line_number)}",
        )


class TimingValueError(TimingExtractionError):
    """The captured timing value did not parse as a float."""

    def __init__(self, *, line_number: int, line: str, value: str):
        super().__init__(
            line_number=line_number,
            line=line,
            message=f"unparseable timing value {value!r} at line {int(line_number)}",
        )
        self.value = str(value or "")


class AppVeyorAPIError(Exception):
    """Base for job-report failures; `endpoint` is relative to the project URL (e.g. "/history")."""

    def __init__(self, *, status_code: int, endpoint: str, message: str):
        super().__init__(message)
        self.status_code = int(status_code)
        self.endpoint = str(endpoint or "")


class AppVeyorAuthError(AppVeyorAPIError):
    """HTTP 401: missing or rejected bearer token."""


class AppVeyorForbiddenError(AppVeyorAPIError):
    """HTTP 403."""


class AppVeyorNotFoundError(AppVeyorAPIError):
    """HTTP 404, e.g. an unknown project or build version."""


class AppVeyorRequestError(AppVeyorAPIError):
    """Anything else: other HTTP errors, bad JSON, unexpected response shape.

    `status_code` is 0 when no response arrived at all (connection error, timeout).
    """
