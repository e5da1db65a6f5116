# This file is part of lsst-ser.
#
# Developed for the LSST Data Management System.
# This product includes software developed by the LSST Project
# (https://www.lsst.org).
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

__all__ = ("TICKS_PER_SECOND", "UNIX_EPOCH_TICKS", "ticks_to_time", "time_to_ticks")

import decimal

import astropy.time

TICKS_PER_SECOND: int = 10_000_000
"""Number of SER timestamp ticks (100 ns intervals) in one second."""

UNIX_EPOCH_TICKS: int = 621_355_968_000_000_000
"""Ticks between 0001-01-01T00:00:00 and the Unix epoch."""


def ticks_to_time(ticks: int) -> astropy.time.Time | None:
    """Convert a SER timestamp to an Astropy time.

    Parameters
    ----------
    ticks
        Number of 100 ns intervals since 0001-01-01T00:00:00 UTC.

    Returns
    -------
    time
        The corresponding UTC time, or `None` if ``ticks`` is zero (which SER
        writers use for "not recorded").
    """
    if ticks == 0:
        return None
    seconds, remainder = divmod(int(ticks) - UNIX_EPOCH_TICKS, TICKS_PER_SECOND)
    # Splitting into two doubles keeps the full 100 ns precision.
    return astropy.time.Time(
        float(seconds), remainder / TICKS_PER_SECOND, format="unix", scale="utc", precision=7
    )


def time_to_ticks(time: astropy.time.Time) -> int:
    """Convert an Astropy time to a SER timestamp.

    This is the inverse of `ticks_to_time`, rounded to the nearest tick.
    """
    seconds = time.utc.to_value("unix", subfmt="decimal")
    ticks = (seconds * TICKS_PER_SECOND).to_integral_value(rounding=decimal.ROUND_HALF_EVEN)
    return int(ticks) + UNIX_EPOCH_TICKS
