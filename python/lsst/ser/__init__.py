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

"""Reading and writing SER files.

A SER file holds a sequence of raw, uncompressed image frames, as recorded by
planetary and lunar video capture software.  It has the following layout:

- A fixed 178-byte header (see `SerHeader`) that starts with the literal
  ``LUCAM-RECORDER`` and declares the frame geometry and count.

- ``frame_count`` frames of ``bytes_per_pixel * image_width * image_height``
  bytes each, with no padding between them.

- An optional trailer of one little-endian 64-bit UTC timestamp per frame, in
  ticks (100 ns intervals since 0001-01-01).

All header integers are little-endian; the byte order declared in the header
applies only to 16-bit pixel data.  Use `SerFile` to read and `SerWriter` to
write.
"""

from ._common import *
from ._file import *
from ._header import *
from ._time import *
from ._writer import *
