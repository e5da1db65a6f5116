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

"""Helpers for constructing synthetic SER files in tests."""

from __future__ import annotations

__all__ = ("make_header_bytes", "make_ser_bytes", "make_test_header")

import struct
from collections.abc import Sequence

import numpy as np

from .._header import Bayer, Endianness, SerHeader


def make_header_bytes(
    *,
    image_width: int = 2,
    image_height: int = 2,
    pixel_depth_per_plane: int = 8,
    frame_count: int = 1,
    bayer: int = 0,
    endianness: int = 0,
    lu_id: int = 0,
    observer: bytes = b"",
    instrument: bytes = b"",
    telescope: bytes = b"",
    date_time: int = 0,
    date_time_utc: int = 0,
    signature: bytes = b"LUCAM-RECORDER",
) -> bytes:
    """Pack a raw 178-byte header without going through `SerHeader`.

    Text fields are zero-padded (or truncated) to 40 bytes.
    """
    return struct.pack(
        "<14s7I40s40s40s2Q",
        signature,
        lu_id,
        bayer,
        endianness,
        image_width,
        image_height,
        pixel_depth_per_plane,
        frame_count,
        observer,
        instrument,
        telescope,
        date_time,
        date_time_utc,
    )


def make_ser_bytes(
    header: bytes | SerHeader,
    frames: Sequence[bytes | np.ndarray] = (),
    timestamps: Sequence[int] = (),
) -> bytes:
    """Concatenate a header, frames, and a timestamp trailer."""
    if isinstance(header, SerHeader):
        header = header.encode()
    parts = [header]
    parts.extend(np.ascontiguousarray(frame).tobytes() for frame in frames)
    parts.extend(struct.pack("<Q", ts) for ts in timestamps)
    return b"".join(parts)


def make_test_header(frame_count: int = 3, **kwargs: object) -> SerHeader:
    """Make a small 16-bit color header with every field set."""
    defaults: dict[str, object] = dict(
        image_width=5,
        image_height=3,
        pixel_depth_per_plane=12,
        bayer=Bayer.RGGB,
        endianness=Endianness.BIG,
        observer="Observer",
        instrument="ZWO ASI462MC",
        telescope="C11 EdgeHD",
        date_time=638_000_000_000_000_000,
        date_time_utc=637_999_964_000_000_000,
    )
    defaults.update(kwargs)
    return SerHeader(frame_count=frame_count, **defaults)  # type: ignore[arg-type]
