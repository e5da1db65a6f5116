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

import json
import os
import tempfile
import unittest

import numpy as np
from click.testing import CliRunner

from lsst.ser.cli import main
from lsst.ser.tests import make_header_bytes, make_ser_bytes, make_test_header


class CliTestCase(unittest.TestCase):
    """Tests for the ser-io command-line tools."""

    def setUp(self) -> None:
        self.runner = CliRunner()
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.header = make_test_header(frame_count=2)
        rng = np.random.default_rng(3)
        frames = [rng.integers(0, 256, size=self.header.image_frame_size, dtype=np.uint8) for _ in range(2)]
        self.data = make_ser_bytes(self.header, frames, [638_400_000_000_000_000, 638_400_000_000_100_000])
        self.filename = os.path.join(self.tmpdir.name, "input.ser")
        with open(self.filename, "wb") as stream:
            stream.write(self.data)

    def test_info(self) -> None:
        result = self.runner.invoke(main, ["info", self.filename])
        self.assertEqual(result.exit_code, 0, msg=result.output)
        self.assertIn("Image size: 5 x 3", result.output)
        self.assertIn("Frame count: 2", result.output)
        self.assertIn("Frame size: 30", result.output)
        self.assertIn("Bytes per pixel: 2", result.output)
        self.assertIn("Bayer: RGGB", result.output)
        self.assertIn("Endianness: big", result.output)
        self.assertIn("Instrument: ZWO ASI462MC", result.output)
        self.assertIn("First frame: 2024-01-04T21:20:00.0000000", result.output)

    def test_info_json(self) -> None:
        result = self.runner.invoke(main, ["info", "--json", self.filename])
        self.assertEqual(result.exit_code, 0, msg=result.output)
        data = json.loads(result.output)
        self.assertEqual(data["image_width"], 5)
        self.assertEqual(data["bayer"], 8)
        self.assertEqual(data["bayer_name"], "RGGB")
        self.assertEqual(data["endianness"], "big")
        self.assertEqual(data["image_frame_size"], 30)

    def test_info_invalid(self) -> None:
        filename = os.path.join(self.tmpdir.name, "bad.ser")
        with open(filename, "wb") as stream:
            stream.write(make_header_bytes(frame_count=10) + bytes(4))
        result = self.runner.invoke(main, ["info", filename])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("Could not open", result.output)

    def test_copy(self) -> None:
        output = os.path.join(self.tmpdir.name, "output.ser")
        result = self.runner.invoke(main, ["copy", "--strict", self.filename, output])
        self.assertEqual(result.exit_code, 0, msg=result.output)
        self.assertIn("Copied 2 frames", result.output)
        with open(output, "rb") as stream:
            self.assertEqual(stream.read(), self.data)
        result = self.runner.invoke(main, ["copy", self.filename, output])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("Could not write", result.output)


if __name__ == "__main__":
    unittest.main()
