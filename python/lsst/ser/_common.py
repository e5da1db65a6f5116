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

__all__ = (
    "HEADER_SIZE",
    "SIGNATURE",
    "TEXT_FIELD_SIZE",
    "FrameCountError",
    "FrameSizeError",
    "InvalidSerFileError",
)

HEADER_SIZE: int = 178
"""Size of the fixed SER header, in bytes."""

SIGNATURE: bytes = b"LUCAM-RECORDER"
"""Literal that every SER file must start with."""

TEXT_FIELD_SIZE: int = 40
"""Size of each of the observer, instrument, and telescope header slots."""


class InvalidSerFileError(RuntimeError):
    """The error type raised when the bytes of a SER file are not consistent
    with the layout its header declares.
    """


class FrameSizeError(ValueError):
    """The error type raised when a frame written to a `SerWriter` does not
    have the number of bytes its header declares.
    """


class FrameCountError(ValueError):
    """The error type raised by a strict `SerWriter` when the number of frames
    or timestamps written does not match the header's frame count.
    """
