# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""AppVeyor API client + per-job duration report.

For every successful build in a project's history, report how long each job of
the fixed Windows job matrix took (whole seconds, `-1` when the build had no job
for a column). Jobs are classified by which JOB_NAME_RULES match their name.
"""

# Standard library imports
import logging
import os
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Sequence

# Third-party imports
import requests

# Local imports
from .exceptions import (
    AppVeyorAPIError,
    AppVeyorAuthError,
    AppVeyorForbiddenError,
    AppVeyorNotFoundError,
    AppVeyorRequestError,
)
from .regexes import JOB_MATRIX_COLUMNS, JOB_NAME_RULES, JOB_PR_NUMBER_RE

# Module-level logger
_logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://ci.appveyor.com/api/projects"
DEFAULT_PROJECT = "rust-lang/rust"
DEFAULT_TIMEOUT_S = 20
DEFAULT_RECORDS_NUMBER = 100
# Pause between per-build requests so we stay polite to the API.
DEFAULT_REQUEST_DELAY_S = 0.25

UNKNOWN_PR_NUMBER = "?????"
MISSING_DURATION = -1

REPORT_LEADING_COLUMNS = ("Build ID", "Build number", "PR number", "Start time")
REPORT_JOB_COLUMNS = tuple(JOB_MATRIX_COLUMNS.values())

# AppVeyor emits 7 fractional digits (e.g. 2018-01-10T12:34:56.1234567+00:00); normalize to microseconds.
_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_utc_timestamp(value: str) -> datetime:
    s = str(value or "").strip().replace("Z", "+00:00")
    s = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), s, count=1)
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class Job:
    name: str
    started: datetime
    finished: datetime

    @property
    def seconds_elapsed(self) -> int:
        # Whole-second timestamps, matching what the CI dashboard shows.
        return int(self.finished.timestamp() // 1) - int(self.started.timestamp() // 1)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Job":
        return cls(
            name=str(d.get("name", "") or ""),
            started=parse_utc_timestamp(d["started"]),
            finished=parse_utc_timestamp(d["finished"]),
        )


@dataclass(frozen=True)
class Build:
    build_id: int
    version: str
    started: str
    message: str
    status: str
    jobs: List[Job] = field(default_factory=list)

    @property
    def pr_number(self) -> str:
        m = JOB_PR_NUMBER_RE.search(self.message or "")
        return m.group(1) if m else UNKNOWN_PR_NUMBER

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Build":
        # History entries carry jobs without timestamps; only /build/<version> has them.
        jobs: List[Job] = []
        for j in d.get("jobs") or []:
            if isinstance(j, dict) and j.get("started") and j.get("finished"):
                jobs.append(Job.from_dict(j))
        return cls(
            build_id=int(d.get("buildId", 0) or 0),
            version=str(d.get("version", "") or ""),
            started=str(d.get("started", "") or ""),
            message=str(d.get("message", "") or ""),
            status=str(d.get("status", "") or ""),
            jobs=jobs,
        )


def classify_job_name(name: str) -> Optional[str]:
    """Map a job name to its report column (exact rule-set match), or None."""
    hits: FrozenSet[int] = frozenset(i for i, rx in enumerate(JOB_NAME_RULES) if rx.search(name or ""))
    return JOB_MATRIX_COLUMNS.get(hits)


def job_durations(jobs: Sequence[Job]) -> Dict[str, int]:
    """Column -> seconds for one build (MISSING_DURATION where no job classified)."""
    out: Dict[str, int] = {col: MISSING_DURATION for col in REPORT_JOB_COLUMNS}
    for job in jobs:
        col = classify_job_name(job.name)
        if col is not None:
            out[col] = job.seconds_elapsed
    return out


class AppVeyorAPIClient:
    """AppVeyor REST client with automatic token detection and error handling.

    Token priority: --token arg > APPVEYOR_TOKEN env > ~/.config/appveyor-token
    """

    @staticmethod
    def get_appveyor_token_from_file() -> Optional[str]:
        try:
            token_file = Path.home() / ".config" / "appveyor-token"
            if token_file.exists():
                return token_file.read_text().strip() or None
        except OSError:
            pass
        return None

    def __init__(
        self,
        token: Optional[str] = None,
        project: str = DEFAULT_PROJECT,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = DEFAULT_TIMEOUT_S,
    ):
        self.token = token or os.environ.get("APPVEYOR_TOKEN") or self.get_appveyor_token_from_file()
        self.project = str(project).strip("/")
        self.base_url = base_url.rstrip("/")
        self.timeout = int(timeout)
        self.headers = {"Accept": "application/json"}
        if self.token:
            self.headers["Authorization"] = f"Bearer {self.token}"
        self._rest_calls_total: int = 0

    def has_token(self) -> bool:
        return self.token is not None

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET `<base_url>/<project><endpoint>` and decode JSON.

        Raises:
            AppVeyorAuthError / AppVeyorForbiddenError / AppVeyorNotFoundError for 401/403/404,
            AppVeyorRequestError for everything else that goes wrong.
        """
        url = f"{self.base_url}/{self.project}{endpoint}"
        t0 = time.monotonic()
        try:
            response = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise AppVeyorRequestError(status_code=0, endpoint=endpoint, message=f"AppVeyor API request failed for {endpoint}: {e}") from e
        finally:
            self._rest_calls_total += 1
            _logger.debug("GET %s (%.2fs)", endpoint, time.monotonic() - t0)

        status = int(response.status_code)
        if status == 401:
            raise AppVeyorAuthError(status_code=status, endpoint=endpoint, message="AppVeyor API returned 401 Unauthorized. Check your token.")
        if status == 403:
            raise AppVeyorForbiddenError(status_code=status, endpoint=endpoint, message="AppVeyor API returned 403 Forbidden. Token may lack permissions.")
        if status == 404:
            raise AppVeyorNotFoundError(status_code=status, endpoint=endpoint, message=f"AppVeyor API returned 404 Not Found for {endpoint}")
        if status >= 400:
            raise AppVeyorRequestError(status_code=status, endpoint=endpoint, message=f"AppVeyor API returned HTTP {status} for {endpoint}")
        try:
            return response.json()
        except ValueError as e:
            raise AppVeyorRequestError(status_code=status, endpoint=endpoint, message=f"AppVeyor API returned invalid JSON for {endpoint}") from e

    def get_history(self, start_build_id: Optional[int] = None, records_number: int = DEFAULT_RECORDS_NUMBER) -> List[Build]:
        """Most recent builds, newest first (older than start_build_id when given)."""
        params: Dict[str, Any] = {"recordsNumber": int(records_number)}
        if start_build_id is not None:
            params["startBuildId"] = int(start_build_id)
        data = self.get("/history", params=params)
        builds = data.get("builds") if isinstance(data, dict) else None
        if not isinstance(builds, list):
            raise AppVeyorRequestError(status_code=200, endpoint="/history", message="AppVeyor history response has no builds list")
        return [Build.from_dict(b) for b in builds if isinstance(b, dict)]

    def get_build_jobs(self, version: str) -> List[Job]:
        """Jobs (with start/finish times) of one build, looked up by build version."""
        endpoint = f"/build/{version}"
        data = self.get(endpoint)
        build = data.get("build") if isinstance(data, dict) else None
        if not isinstance(build, dict):
            raise AppVeyorRequestError(status_code=200, endpoint=endpoint, message=f"AppVeyor build response has no build object for {version}")
        return Build.from_dict(build).jobs

    def get_rest_call_count(self) -> int:
        return int(self._rest_calls_total)


def iter_job_duration_rows(
    client: AppVeyorAPIClient,
    *,
    start_build_id: Optional[int] = None,
    delay_s: float = DEFAULT_REQUEST_DELAY_S,
) -> Iterator[List[object]]:
    """Yield one report row per successful build: leading columns + one duration per job column."""
    for build in client.get_history(start_build_id=start_build_id):
        if build.status != "success":
            _logger.info("skipping build %s (%s)", build.version, build.status)
            continue
        durations = job_durations(client.get_build_jobs(build.version))
        row: List[object] = [build.build_id, build.version, build.pr_number, build.started]
        row.extend(durations[col] for col in REPORT_JOB_COLUMNS)
        yield row
        if delay_s > 0:
            time.sleep(delay_s)


def report_header() -> List[str]:
    return list(REPORT_LEADING_COLUMNS) + list(REPORT_JOB_COLUMNS)


__all__ = [
    "AppVeyorAPIClient",
    "AppVeyorAPIError",
    "Build",
    "Job",
    "classify_job_name",
    "iter_job_duration_rows",
    "job_durations",
    "parse_utc_timestamp",
    "report_header",
]
