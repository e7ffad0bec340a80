#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Module entrypoint for `ci_log_timings`.

Usage:
  - `python3 -m ci_log_timings log build.log`
  - `python3 -m ci_log_timings jobs --token <token> [previous-build-id]`
"""

from __future__ import annotations

from .cli import _cli


if __name__ == "__main__":
    raise SystemExit(_cli())
