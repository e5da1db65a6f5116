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

import unittest

import astropy.time

from lsst.ser import UNIX_EPOCH_TICKS, ticks_to_time, time_to_ticks


class TimeTestCase(unittest.TestCase):
    """Tests for converting SER ticks to and from Astropy times."""

    def test_unix_epoch(self) -> None:
        time = ticks_to_time(UNIX_EPOCH_TICKS)
        assert time is not None
        self.assertEqual(time.isot, "1970-01-01T00:00:00.0000000")
        self.assertEqual(time_to_ticks(time), UNIX_EPOCH_TICKS)

    def test_round_trip(self) -> None:
        """Test that sub-microsecond precision survives a round trip."""
        ticks = 638_400_000_001_234_567
        time = ticks_to_time(ticks)
        assert time is not None
        self.assertEqual(time_to_ticks(time), ticks)
        expected = astropy.time.Time("2024-01-04T21:20:00.1234567", format="isot", scale="utc")
        self.assertLess(abs((time - expected).sec), 1e-7)

    def test_unset(self) -> None:
        self.assertIsNone(ticks_to_time(0))


if __name__ == "__main__":
    unittest.main()
