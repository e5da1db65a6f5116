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

__all__ = ("SerFile",)

import operator
from collections.abc import Iterator
from logging import getLogger
from types import TracebackType
from typing import Self

import astropy.time
import numpy as np

from lsst.resources import ResourcePath, ResourcePathExpression

from ._common import HEADER_SIZE, InvalidSerFileError
from ._header import SerHeader
from ._time import ticks_to_time

_LOG = getLogger(__name__)


class SerFile:
    """Read-only, random-access view of a SER file.

    Parameters
    ----------
    buffer
        One-dimensional `numpy.uint8` array holding the full contents of the
        file, usually a read-only memory map.
    name, optional
        Name of the file, used only in error and log messages.

    Notes
    -----
    Most code should use `open` rather than constructing instances directly.

    Frames returned by `read_frame` and `read_frame_array` are views into
    ``buffer``, not copies.  They hold their own reference to it, so they stay
    valid after the `SerFile` is closed, but they are read-only whenever the
    buffer is (which is always the case for buffers created by `open`).
    """

    def __init__(self, buffer: np.ndarray, *, name: str = "<buffer>"):
        self._name = name
        file_size = buffer.size
        if file_size < HEADER_SIZE:
            raise InvalidSerFileError(
                f"File {name!r} is {file_size} bytes, shorter than the {HEADER_SIZE}-byte SER header."
            )
        self._header = SerHeader.decode(buffer[:HEADER_SIZE])
        data_end = HEADER_SIZE + self._header.image_data_bytes
        if file_size < data_end:
            # TODO: add an option to read the complete frames of a truncated
            # file.
            raise InvalidSerFileError(
                f"File {name!r} is {file_size} bytes, but its header declares "
                f"{self._header.frame_count} frames of {self._header.image_frame_size} bytes each."
            )
        trailer_size = 8 * self._header.frame_count
        if trailer_size and file_size >= data_end + trailer_size:
            self._timestamps = np.frombuffer(
                buffer, dtype="<u8", count=self._header.frame_count, offset=data_end
            ).astype(np.uint64)
        else:
            _LOG.debug("File %r has no timestamp trailer.", name)
            self._timestamps = np.zeros(0, dtype=np.uint64)
        self._timestamps.flags.writeable = False
        self._buffer: np.ndarray | None = buffer

    @classmethod
    def open(cls, path: ResourcePathExpression, *, memory_map: bool = True) -> SerFile:
        """Open a SER file.

        Parameters
        ----------
        path
            File to read; convertible to `lsst.resources.ResourcePath`.
        memory_map, optional
            Whether to memory-map local files.  If `False`, or if the file is
            not local, its entire contents are read into memory up front.

        Returns
        -------
        ser_file
            The opened file.  May be used as a context manager to close it.

        Raises
        ------
        InvalidSerFileError
            Raised if the file is too short for its header or declared frames,
            or does not start with the SER signature.
        OSError
            Raised if the file cannot be read or mapped.
        """
        path = ResourcePath(path, forceDirectory=False)
        buffer: np.ndarray
        if memory_map and path.isLocal:
            file_size = path.size()
            if file_size < HEADER_SIZE:
                # numpy refuses to map empty files, so check before mapping.
                raise InvalidSerFileError(
                    f"File {str(path)!r} is {file_size} bytes, shorter than the "
                    f"{HEADER_SIZE}-byte SER header."
                )
            buffer = np.memmap(path.ospath, dtype=np.uint8, mode="r").view(np.ndarray)
        else:
            buffer = np.frombuffer(path.read(), dtype=np.uint8)
        result = cls(buffer, name=str(path))
        _LOG.debug(
            "Opened SER file %r: %d frames of %d x %d pixels.",
            str(path),
            result.header.frame_count,
            result.header.image_width,
            result.header.image_height,
        )
        return result

    @classmethod
    def from_bytes(cls, data: bytes) -> SerFile:
        """Construct from the in-memory contents of a SER file."""
        return cls(np.frombuffer(data, dtype=np.uint8))

    @property
    def name(self) -> str:
        """Name of the file."""
        return self._name

    @property
    def header(self) -> SerHeader:
        """The decoded file header."""
        return self._header

    @property
    def timestamps(self) -> np.ndarray:
        """UTC timestamp of each frame, in ticks (`numpy.uint64`, read-only).

        Empty if the file has no (complete) timestamp trailer.
        """
        return self._timestamps

    @property
    def has_timestamps(self) -> bool:
        """Whether the file has a timestamp trailer."""
        return self._timestamps.size != 0

    @property
    def closed(self) -> bool:
        """Whether `close` has been called."""
        return self._buffer is None

    def read_frame(self, index: int) -> np.ndarray:
        """Return the raw bytes of a frame.

        Parameters
        ----------
        index
            Zero-based frame index.

        Returns
        -------
        frame
            One-dimensional `numpy.uint8` view of exactly
            ``header.image_frame_size`` bytes.

        Raises
        ------
        IndexError
            Raised if ``index`` is negative or not less than the frame count.
        TypeError
            Raised if ``index`` is not an integer.
        """
        if self._buffer is None:
            raise ValueError(f"SER file {self._name!r} is closed.")
        index = operator.index(index)
        if not 0 <= index < self._header.frame_count:
            raise IndexError(
                f"Invalid frame index {index} for a file with {self._header.frame_count} frames."
            )
        frame_size = self._header.image_frame_size
        offset = HEADER_SIZE + index * frame_size
        return self._buffer[offset : offset + frame_size]

    def read_frame_array(self, index: int) -> np.ndarray:
        """Return a frame as a 2-d array of pixels.

        Parameters
        ----------
        index
            Zero-based frame index.

        Returns
        -------
        array
            ``(image_height, image_width)`` view of the frame's bytes, with
            dtype `SerHeader.pixel_dtype`.  Bytes are not reordered; the
            dtype carries the declared byte order instead.
        """
        frame = self.read_frame(index)
        return frame.view(self._header.pixel_dtype).reshape(
            self._header.image_height, self._header.image_width
        )

    def frame_time(self, index: int) -> astropy.time.Time | None:
        """Return the UTC time of a frame from the timestamp trailer.

        Raises
        ------
        IndexError
            Raised if ``index`` is out of range or the file has no timestamp
            trailer.
        """
        index = operator.index(index)
        if not 0 <= index < self._timestamps.size:
            raise IndexError(f"No timestamp for frame {index} in {self._name!r}.")
        return ticks_to_time(int(self._timestamps[index]))

    def close(self) -> None:
        """Release this object's reference to the file contents.

        Frames already returned remain valid.
        """
        if self._buffer is not None:
            _LOG.debug("Closing SER file %r.", self._name)
        self._buffer = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def __len__(self) -> int:
        return self._header.frame_count

    def __iter__(self) -> Iterator[np.ndarray]:
        for index in range(self._header.frame_count):
            yield self.read_frame(index)

    def __repr__(self) -> str:
        return f"SerFile({self._name!r}, frame_count={self._header.frame_count})"
