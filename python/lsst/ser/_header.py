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

"""Codec for the fixed-size header at the start of every SER file."""

from __future__ import annotations

__all__ = (
    "HEADER_DTYPE",
    "Bayer",
    "BayerPattern",
    "Endianness",
    "SerHeader",
    "SerHeaderModel",
    "UnrecognizedBayer",
)

import dataclasses
import enum
from typing import Annotated, Any, final

import numpy as np
import pydantic

from ._common import HEADER_SIZE, SIGNATURE, TEXT_FIELD_SIZE, InvalidSerFileError

HEADER_DTYPE = np.dtype(
    [
        ("signature", f"S{len(SIGNATURE)}"),
        ("lu_id", "<u4"),
        ("bayer", "<u4"),
        ("endianness", "<u4"),
        ("image_width", "<u4"),
        ("image_height", "<u4"),
        ("pixel_depth_per_plane", "<u4"),
        ("frame_count", "<u4"),
        ("observer", f"S{TEXT_FIELD_SIZE}"),
        ("instrument", f"S{TEXT_FIELD_SIZE}"),
        ("telescope", f"S{TEXT_FIELD_SIZE}"),
        ("date_time", "<u8"),
        ("date_time_utc", "<u8"),
    ]
)
"""Packed numpy structured dtype describing the on-disk header layout.

All integers are little-endian, regardless of the byte order the header
declares for 16-bit pixel data.
"""

assert HEADER_DTYPE.itemsize == HEADER_SIZE


class Bayer(enum.IntEnum):
    """Color-filter-array layouts with a standard SER color code."""

    MONO = 0
    RGGB = 8
    GRBG = 9
    GBRG = 10
    BGGR = 11
    CYYM = 16
    YCMY = 17
    YMCY = 18
    MYYC = 19
    RGB = 100
    BGR = 101

    @classmethod
    def from_code(cls, code: int) -> BayerPattern:
        """Look up the layout for a raw color code.

        Parameters
        ----------
        code
            Unsigned 32-bit color code from a SER header.

        Returns
        -------
        pattern
            The matching enumeration member, or an `UnrecognizedBayer` that
            carries ``code`` verbatim if there is no such member.
        """
        try:
            return cls(code)
        except ValueError:
            return UnrecognizedBayer(code)


@final
@dataclasses.dataclass(frozen=True)
class UnrecognizedBayer:
    """A color code that does not correspond to any `Bayer` member.

    These are preserved rather than rejected so they can be written back
    unchanged.
    """

    value: int
    """The raw color code."""

    @property
    def name(self) -> str:
        return f"UNRECOGNIZED({self.value})"

    def __str__(self) -> str:
        return self.name


type BayerPattern = Bayer | UnrecognizedBayer


class Endianness(enum.StrEnum):
    """Byte order declared for 16-bit pixel data.

    This is metadata only; pixel bytes are never reordered based on it.
    """

    LITTLE = "little"
    BIG = "big"

    @classmethod
    def from_code(cls, code: int) -> Endianness:
        """Interpret the header's endianness code (zero means little-endian)."""
        return cls.LITTLE if code == 0 else cls.BIG

    def to_code(self) -> int:
        """Return the integer code written to the header."""
        match self:
            case self.LITTLE:
                return 0
            case self.BIG:
                return 1
        raise AssertionError("Invalid enum value.")

    def to_numpy_prefix(self) -> str:
        """Return the numpy byte-order character for this value."""
        return "<" if self is Endianness.LITTLE else ">"


def _decode_text(raw: bytes) -> str:
    # numpy has already stripped the trailing NUL padding.
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return ""


def _encode_text(text: str) -> bytes:
    raw = text.encode("utf-8")
    if len(raw) > TEXT_FIELD_SIZE:
        # Drop any multi-byte character split by the truncation.
        raw = raw[:TEXT_FIELD_SIZE].decode("utf-8", errors="ignore").encode("utf-8")
    return raw


@final
@dataclasses.dataclass(frozen=True)
class SerHeader:
    """The decoded content of a SER file header.

    Notes
    -----
    The derived sizes (`bytes_per_pixel`, `image_frame_size`,
    `image_data_bytes`) are always computed from the stored fields, never
    stored themselves.  The unused ``LuID`` field is not represented; it is
    discarded on read and written as zero.

    Text fields are stored NUL-padded in fixed 40-byte slots, so trailing NUL
    characters are not preserved: they are stripped on decode, along with the
    padding.  Any other text of at most 40 UTF-8 bytes round-trips exactly.
    """

    image_width: int
    """Width of each frame, in pixels."""

    image_height: int
    """Height of each frame, in pixels."""

    pixel_depth_per_plane: int
    """Number of significant bits per pixel per color plane."""

    frame_count: int
    """Number of frames the file claims to contain."""

    bayer: BayerPattern = Bayer.MONO
    """Color-filter-array layout of the raw pixels."""

    endianness: Endianness = Endianness.LITTLE
    """Declared byte order of 16-bit pixel data."""

    observer: str = ""
    """Name of the observer (at most 40 bytes of UTF-8 are stored)."""

    instrument: str = ""
    """Name of the camera (at most 40 bytes of UTF-8 are stored)."""

    telescope: str = ""
    """Name of the telescope (at most 40 bytes of UTF-8 are stored)."""

    date_time: int = 0
    """Start of capture in local time, in ticks."""

    date_time_utc: int = 0
    """Start of capture in UTC, in ticks."""

    @property
    def bytes_per_pixel(self) -> int:
        """Number of bytes used to store each pixel (1 or 2)."""
        return 2 if self.pixel_depth_per_plane > 8 else 1

    @property
    def image_frame_size(self) -> int:
        """Number of bytes in each frame."""
        return self.bytes_per_pixel * self.image_width * self.image_height

    @property
    def image_data_bytes(self) -> int:
        """Number of bytes in all frames together."""
        return self.image_frame_size * self.frame_count

    @property
    def pixel_dtype(self) -> np.dtype:
        """Numpy dtype of a single pixel, labelled with the declared byte
        order when pixels are 16-bit.
        """
        if self.bytes_per_pixel == 1:
            return np.dtype(np.uint8)
        return np.dtype(f"{self.endianness.to_numpy_prefix()}u2")

    def replace(self, **kwargs: Any) -> SerHeader:
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **kwargs)

    @classmethod
    def decode(cls, data: bytes | np.ndarray) -> SerHeader:
        """Decode a header from its on-disk form.

        Parameters
        ----------
        data
            Exactly `HEADER_SIZE` bytes.

        Returns
        -------
        header
            Decoded header.

        Raises
        ------
        InvalidSerFileError
            Raised if ``data`` has the wrong size or does not start with the
            SER signature.
        """
        data = bytes(data)
        if len(data) != HEADER_SIZE:
            raise InvalidSerFileError(f"SER header must be {HEADER_SIZE} bytes, not {len(data)}.")
        if data[: len(SIGNATURE)] != SIGNATURE:
            raise InvalidSerFileError(
                f"Bad SER signature {data[: len(SIGNATURE)]!r} (expected {SIGNATURE!r})."
            )
        record = np.frombuffer(data, dtype=HEADER_DTYPE, count=1)[0]
        return cls(
            image_width=int(record["image_width"]),
            image_height=int(record["image_height"]),
            pixel_depth_per_plane=int(record["pixel_depth_per_plane"]),
            frame_count=int(record["frame_count"]),
            bayer=Bayer.from_code(int(record["bayer"])),
            endianness=Endianness.from_code(int(record["endianness"])),
            observer=_decode_text(bytes(record["observer"])),
            instrument=_decode_text(bytes(record["instrument"])),
            telescope=_decode_text(bytes(record["telescope"])),
            date_time=int(record["date_time"]),
            date_time_utc=int(record["date_time_utc"]),
        )

    def encode(self) -> bytes:
        """Encode the header into its on-disk form.

        Returns
        -------
        data
            Exactly `HEADER_SIZE` bytes.  Text fields are truncated (on a
            character boundary) or zero-padded to fill their slots exactly.

        Raises
        ------
        OverflowError
            Raised if an integer field does not fit in its slot.
        """
        record = np.zeros((), dtype=HEADER_DTYPE)
        record["signature"] = SIGNATURE
        record["lu_id"] = 0
        record["bayer"] = self.bayer.value
        record["endianness"] = self.endianness.to_code()
        record["image_width"] = self.image_width
        record["image_height"] = self.image_height
        record["pixel_depth_per_plane"] = self.pixel_depth_per_plane
        record["frame_count"] = self.frame_count
        record["observer"] = _encode_text(self.observer)
        record["instrument"] = _encode_text(self.instrument)
        record["telescope"] = _encode_text(self.telescope)
        record["date_time"] = self.date_time
        record["date_time_utc"] = self.date_time_utc
        return record.tobytes()

    def to_model(self) -> SerHeaderModel:
        """Convert to a Pydantic model for JSON serialization."""
        return SerHeaderModel(
            image_width=self.image_width,
            image_height=self.image_height,
            pixel_depth_per_plane=self.pixel_depth_per_plane,
            frame_count=self.frame_count,
            bayer=self.bayer.value,
            endianness=self.endianness,
            observer=self.observer,
            instrument=self.instrument,
            telescope=self.telescope,
            date_time=self.date_time,
            date_time_utc=self.date_time_utc,
        )

    @classmethod
    def from_model(cls, model: SerHeaderModel) -> SerHeader:
        """Construct from a Pydantic model."""
        return cls(
            image_width=model.image_width,
            image_height=model.image_height,
            pixel_depth_per_plane=model.pixel_depth_per_plane,
            frame_count=model.frame_count,
            bayer=Bayer.from_code(model.bayer),
            endianness=model.endianness,
            observer=model.observer,
            instrument=model.instrument,
            telescope=model.telescope,
            date_time=model.date_time,
            date_time_utc=model.date_time_utc,
        )


_UInt32 = Annotated[int, pydantic.Field(ge=0, lt=1 << 32)]
_UInt64 = Annotated[int, pydantic.Field(ge=0, lt=1 << 64)]


class SerHeaderModel(pydantic.BaseModel):
    """Pydantic model used to represent a `SerHeader` as JSON."""

    image_width: _UInt32
    image_height: _UInt32
    pixel_depth_per_plane: _UInt32
    frame_count: _UInt32
    bayer: _UInt32 = 0
    endianness: Endianness = Endianness.LITTLE
    observer: str = ""
    instrument: str = ""
    telescope: str = ""
    date_time: _UInt64 = 0
    date_time_utc: _UInt64 = 0

    @pydantic.computed_field  # type: ignore[prop-decorator]
    @property
    def bayer_name(self) -> str:
        """Name of the color-filter-array layout."""
        return Bayer.from_code(self.bayer).name

    @pydantic.computed_field  # type: ignore[prop-decorator]
    @property
    def image_frame_size(self) -> int:
        """Number of bytes in each frame."""
        return SerHeader.from_model(self).image_frame_size
