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

__all__ = ("SerWriter", "SerWriterOptions")

import dataclasses
import os
from collections.abc import Buffer, Iterator, Sequence
from contextlib import contextmanager
from logging import getLogger
from typing import IO, ClassVar

import numpy as np

from ._common import FrameCountError, FrameSizeError
from ._header import SerHeader

_LOG = getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class SerWriterOptions:
    """Configuration options for `SerWriter`."""

    enforce_frame_count: bool = False
    """Whether to raise `FrameCountError` when the number of frames or
    timestamps written does not match the header's frame count.

    When `False` (default), mismatches are permitted and only logged as
    warnings, leaving the caller responsible for consistency.
    """

    DEFAULT: ClassVar[SerWriterOptions]
    """Default options (frame count mismatches are only logged)."""

    STRICT: ClassVar[SerWriterOptions]
    """Options that reject frame count mismatches."""


SerWriterOptions.DEFAULT = SerWriterOptions()
SerWriterOptions.STRICT = SerWriterOptions(enforce_frame_count=True)


class SerWriter:
    """Sequential writer for SER files.

    Parameters
    ----------
    stream
        Binary sink to write to.  The writer does not close it.
    header
        Header to write.  Its frame size is used to validate frames.
    options, optional
        Writer options; defaults to `SerWriterOptions.DEFAULT`.

    Notes
    -----
    The header is written immediately on construction.  Frames are then
    appended in call order with `write_frame`, and the session ends with
    `write_timestamps` (or `finish`, if there is no timestamp trailer).  No
    further writes are accepted after that.
    """

    def __init__(self, stream: IO[bytes], header: SerHeader, options: SerWriterOptions | None = None):
        stream.write(header.encode())
        self._stream = stream
        self._header = header
        self._options = options if options is not None else SerWriterOptions.DEFAULT
        self._frames_written = 0
        self._finished = False

    @classmethod
    @contextmanager
    def open(
        cls,
        filename: str | os.PathLike[str],
        header: SerHeader,
        options: SerWriterOptions | None = None,
    ) -> Iterator[SerWriter]:
        """Create a writer for a new file.

        Parameters
        ----------
        filename
            Name of the file to write to.  Must not already exist.
        header
            Header to write.
        options, optional
            Writer options.

        Returns
        -------
        context
            A context manager that returns a `SerWriter` when entered, and
            calls `finish` when exited without an exception.  If an exception
            is raised (including by `finish`), the partially-written file is
            removed.
        """
        with open(filename, "xb") as stream:
            try:
                writer = cls(stream, header, options)
                yield writer
                writer.finish()
            except BaseException:
                stream.close()
                os.remove(filename)
                raise

    @property
    def header(self) -> SerHeader:
        """The header this writer was constructed with."""
        return self._header

    @property
    def frames_written(self) -> int:
        """Number of frames written so far."""
        return self._frames_written

    @property
    def finished(self) -> bool:
        """Whether the session has ended."""
        return self._finished

    def write_frame(self, frame: Buffer | np.ndarray) -> None:
        """Append a frame.

        Parameters
        ----------
        frame
            Raw frame bytes; any object supporting the buffer protocol.
            Arrays are written as their raw bytes in C order, so 16-bit pixels
            must already have the header's declared byte order.

        Raises
        ------
        FrameSizeError
            Raised if the frame's size in bytes is not the header's frame size.
            Nothing is written in this case.
        FrameCountError
            Raised if the header's frame count has already been reached and
            `SerWriterOptions.enforce_frame_count` is set.
        """
        self._check_not_finished()
        if isinstance(frame, np.ndarray):
            frame = np.ascontiguousarray(frame).reshape(-1).view(np.uint8)
        view = memoryview(frame)
        if view.nbytes != self._header.image_frame_size:
            raise FrameSizeError(
                f"Cannot write a frame with {view.nbytes} bytes when the header specifies "
                f"{self._header.image_frame_size} bytes."
            )
        if self._options.enforce_frame_count and self._frames_written >= self._header.frame_count:
            raise FrameCountError(f"Header declares only {self._header.frame_count} frames.")
        self._stream.write(view)
        self._frames_written += 1

    def write_timestamps(self, timestamps: Sequence[int] | np.ndarray) -> None:
        """Write the timestamp trailer and end the session.

        Parameters
        ----------
        timestamps
            UTC time of each frame, in ticks, in frame order.

        Raises
        ------
        FrameCountError
            Raised if the number of timestamps or frames written does not
            match the header's frame count and
            `SerWriterOptions.enforce_frame_count` is set.  Nothing is written
            and the session is not finished in this case.
        """
        self._check_not_finished()
        data = np.asarray(timestamps, dtype="<u8")
        if self._options.enforce_frame_count and self._frames_written != self._header.frame_count:
            raise FrameCountError(
                f"Cannot write timestamps after {self._frames_written} frames for a header that declares "
                f"{self._header.frame_count} frames."
            )
        if self._options.enforce_frame_count and data.size != self._header.frame_count:
            raise FrameCountError(
                f"Got {data.size} timestamps for a header that declares {self._header.frame_count} frames."
            )
        if data.size != self._header.frame_count:
            _LOG.warning(
                "Writing %d timestamps for a header that declares %d frames.",
                data.size,
                self._header.frame_count,
            )
        self._stream.write(data.tobytes())
        self.finish()

    def finish(self) -> None:
        """End the session without (further) timestamps.

        Calling this more than once has no effect.

        Raises
        ------
        FrameCountError
            Raised if fewer frames than the header declares were written and
            `SerWriterOptions.enforce_frame_count` is set.
        """
        if self._finished:
            return
        self._finished = True
        if self._frames_written != self._header.frame_count:
            message = (
                f"Wrote {self._frames_written} frames for a header that declares "
                f"{self._header.frame_count} frames."
            )
            if self._options.enforce_frame_count:
                raise FrameCountError(message)
            _LOG.warning(message)
        _LOG.debug("Finished writing %d SER frames.", self._frames_written)

    def _check_not_finished(self) -> None:
        if self._finished:
            raise RuntimeError("SER writer session has already finished.")
