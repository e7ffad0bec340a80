"""
Pytest tests for the ci_log_timings CLI.

Run from the repo root:
    pytest ci_log_timings/test_cli.py -v
"""

import io
import logging
import sys

import pytest

from ci_log_timings import appveyor, cli


LOG_TEXT = (
    "Attempting with retry: make prepare\n"
    "    Finished dev [unoptimized] target(s) in 12.50 secs\n"
    "Building stage1 compiler artifacts (x86_64-pc-windows-msvc -> x86_64-pc-windows-msvc)\n"
    "   Compiling rustc v0.0.0\n"
    "    Finished release [optimized] target(s) in 1234.56 secs\n"
)


# ============================================================================
# log
# ============================================================================

def test_log_prints_one_row_per_record(tmp_path, capsys):
    log = tmp_path / "build.log"
    log.write_text(LOG_TEXT)
    assert cli._cli(["log", str(log)]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == [
        f"{'make-prepare':<28}\t  12.50",
        f"{'stage1-rustc':<28}\t1234.56",
    ]


def test_log_missing_header_exits_nonzero_after_partial_output(tmp_path, capsys, caplog):
    log = tmp_path / "build.log"
    log.write_text(LOG_TEXT + "   9.99 secs\n")
    with caplog.at_level(logging.ERROR):
        assert cli._cli(["log", str(log)]) == 1
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 2
    assert "missing header for timing at line 6" in caplog.text
    assert "   9.99 secs" in caplog.text


def test_log_by_job_id(tmp_path, capsys, monkeypatch):
    monkeypatch.chdir(tmp_path)
    root = tmp_path / "raw-log-text"
    root.mkdir()
    (root / "59975400792.log").write_text("Building LLVM\nfinished in 3.00\n")
    assert cli._cli(["log", "59975400792", "--logs-root", str(root)]) == 0
    assert capsys.readouterr().out.splitlines() == [f"{'llvm':<28}\t   3.00"]


def test_log_missing_file(tmp_path, caplog):
    with caplog.at_level(logging.ERROR):
        assert cli._cli(["log", str(tmp_path / "nope.log")]) == 2
    assert "file not found" in caplog.text


def test_log_directory_is_rejected(tmp_path, caplog):
    with caplog.at_level(logging.ERROR):
        assert cli._cli(["log", str(tmp_path)]) == 2
    assert "not a file" in caplog.text


def _fake_stdin(data: bytes):
    # Strict ASCII text layer: only the byte buffer underneath may be read.
    return io.TextIOWrapper(io.BytesIO(data), encoding="ascii", errors="strict")


def test_log_from_stdin(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", _fake_stdin(b"Doctest: bootstrap\nfinished in 5.00\n"))
    assert cli._cli(["log", "-"]) == 0
    assert capsys.readouterr().out.splitlines() == [f"{'pytest/bootstrap':<28}\t   5.00"]


def test_log_from_stdin_replaces_undecodable_bytes(monkeypatch, capsys):
    """stdin is decoded like a log file: UTF-8 with replacement, whatever the locale says."""
    monkeypatch.setattr(sys, "stdin", _fake_stdin(b"Building LLVM\n\xff\xfe junk\n1.00 secs\n"))
    assert cli._cli(["log", "-"]) == 0
    assert capsys.readouterr().out.splitlines() == [f"{'llvm':<28}\t   1.00"]


def test_log_from_stdin_missing_header_reports_line(monkeypatch, capsys, caplog):
    monkeypatch.setattr(sys, "stdin", _fake_stdin(b"\xff\n   2.00 secs\n"))
    with caplog.at_level(logging.ERROR):
        assert cli._cli(["log", "-"]) == 1
    assert capsys.readouterr().out == ""
    assert "missing header for timing at line 2" in caplog.text


@pytest.mark.parametrize(
    "argv, verbose",
    [
        (["log", "x.log"], False),
        (["-v", "log", "x.log"], True),
        (["log", "x.log", "-v"], True),
        (["log", "--verbose", "x.log"], True),
        (["-v", "jobs"], True),
        (["jobs", "-v", "42"], True),
        (["jobs"], False),
    ],
)
def test_verbose_flag_accepted_before_and_after_subcommand(argv, verbose):
    assert cli._build_parser().parse_args(argv).verbose is verbose


def test_log_verbose_emits_debug_records(tmp_path, caplog):
    log = tmp_path / "build.log"
    log.write_text("Building LLVM\n1.00 secs\nDoctest: bootstrap\n")
    with caplog.at_level(logging.DEBUG, logger="ci_log_timings"):
        assert cli._cli(["log", str(log), "-v"]) == 0
    assert "line 1: header llvm" in caplog.text
    assert "discarding pending header pytest/bootstrap" in caplog.text
    assert "1 timing records" in caplog.text


def test_default_raw_log_dir_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv("CI_LOG_TIMINGS_CACHE_DIR", str(tmp_path))
    assert cli._default_raw_log_dir() == tmp_path / "raw-log-text"
    monkeypatch.delenv("CI_LOG_TIMINGS_CACHE_DIR")
    assert cli._default_raw_log_dir().parts[-2:] == ("ci-log-timings", "raw-log-text")


def test_subcommand_is_required(capsys):
    with pytest.raises(SystemExit):
        cli._cli([])


# ============================================================================
# jobs
# ============================================================================

class _FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        return self._payload


def _fake_appveyor_get(url, headers=None, params=None, timeout=None):
    if url.endswith("/history"):
        return _FakeResponse(
            {
                "builds": [
                    {
                        "buildId": 101,
                        "version": "1.0.7",
                        "started": "2018-01-10T10:00:00+00:00",
                        "message": "Auto merge of #47000 - foo:bar, r=baz",
                        "status": "success",
                        "jobs": [],
                    },
                    {
                        "buildId": 100,
                        "version": "1.0.6",
                        "started": "2018-01-10T09:00:00+00:00",
                        "message": "Auto merge of #46999",
                        "status": "failed",
                        "jobs": [],
                    },
                ]
            }
        )
    return _FakeResponse(
        {
            "build": {
                "buildId": 101,
                "version": "1.0.7",
                "started": "2018-01-10T10:00:00+00:00",
                "message": "",
                "status": "success",
                "jobs": [
                    {
                        "name": "Environment: RUST_CONFIGURE_ARGS=--build=x86_64-pc-windows-msvc, SCRIPT=python x.py test",
                        "started": "2018-01-10T10:00:00.0000000+00:00",
                        "finished": "2018-01-10T12:00:00.0000000+00:00",
                    }
                ],
            }
        }
    )


def test_jobs_prints_header_and_successful_builds_only(monkeypatch, capsys):
    monkeypatch.setattr(appveyor.requests, "get", _fake_appveyor_get)
    assert cli._cli(["jobs", "--token", "t0k", "--delay", "0"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0].split("\t")[:5] == ["Build ID", "Build number", "PR number", "Start time", "check-64-msvc"]
    assert len(out) == 2
    cells = out[1].split("\t")
    assert cells[:5] == ["101", "1.0.7", "47000", "2018-01-10T10:00:00+00:00", "7200"]
    assert cells[5:] == ["-1"] * 10


def test_jobs_without_token(monkeypatch, caplog):
    monkeypatch.delenv("APPVEYOR_TOKEN", raising=False)
    monkeypatch.setattr(appveyor.AppVeyorAPIClient, "get_appveyor_token_from_file", staticmethod(lambda: None))
    with caplog.at_level(logging.ERROR):
        assert cli._cli(["jobs"]) == 1
    assert "no AppVeyor token" in caplog.text


def test_jobs_api_error(monkeypatch, caplog):
    monkeypatch.setattr(appveyor.requests, "get", lambda *a, **kw: _FakeResponse({}, status_code=401))
    with caplog.at_level(logging.ERROR):
        assert cli._cli(["jobs", "--token", "bad", "--delay", "0"]) == 1
    assert "401" in caplog.text
