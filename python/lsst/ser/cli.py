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

"""Command-line tools for inspecting and copying SER files."""

from __future__ import annotations

__all__ = ("main",)

import logging

import click

from ._common import InvalidSerFileError
from ._file import SerFile
from ._time import ticks_to_time
from ._writer import SerWriter, SerWriterOptions


def _format_ticks(ticks: int) -> str:
    time = ticks_to_time(ticks)
    if time is None:
        return "not recorded"
    return f"{time.isot} ({ticks})"


def _open_or_fail(filename: str) -> SerFile:
    try:
        return SerFile.open(filename)
    except (InvalidSerFileError, OSError) as err:
        raise click.ClickException(f"Could not open {filename!r}: {err}") from err


@click.group("ser-io")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging level for the lsst.ser package.",
)
def main(log_level: str) -> None:
    """Inspect and copy SER video files."""
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("lsst.ser").setLevel(log_level.upper())


@main.command("info")
@click.argument("filename", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the header as JSON.")
def info(filename: str, as_json: bool) -> None:
    """Print the header of a SER file."""
    with _open_or_fail(filename) as ser:
        header = ser.header
        if as_json:
            click.echo(header.to_model().model_dump_json(indent=2))
            return
        click.echo(f"Image size: {header.image_width} x {header.image_height}")
        click.echo(f"Frame count: {header.frame_count}")
        click.echo(f"Frame size: {header.image_frame_size}")
        click.echo(f"Pixel depth per plane: {header.pixel_depth_per_plane}")
        click.echo(f"Bytes per pixel: {header.bytes_per_pixel}")
        click.echo(f"Bayer: {header.bayer.name}")
        click.echo(f"Endianness: {header.endianness.value}")
        click.echo(f"Observer: {header.observer}")
        click.echo(f"Instrument: {header.instrument}")
        click.echo(f"Telescope: {header.telescope}")
        click.echo(f"Date/time: {_format_ticks(header.date_time)}")
        click.echo(f"Date/time (UTC): {_format_ticks(header.date_time_utc)}")
        if ser.has_timestamps:
            click.echo(f"First frame: {_format_ticks(int(ser.timestamps[0]))}")
            click.echo(f"Last frame: {_format_ticks(int(ser.timestamps[-1]))}")
        else:
            click.echo("Timestamps: none")


@main.command("copy")
@click.argument("input_filename", type=click.Path(exists=True, dir_okay=False))
@click.argument("output_filename", type=click.Path(dir_okay=False))
@click.option("--strict", is_flag=True, help="Fail if frame or timestamp counts disagree with the header.")
def copy(input_filename: str, output_filename: str, strict: bool) -> None:
    """Copy a SER file frame by frame."""
    options = SerWriterOptions.STRICT if strict else SerWriterOptions.DEFAULT
    with _open_or_fail(input_filename) as ser:
        try:
            with SerWriter.open(output_filename, ser.header, options) as writer:
                for frame in ser:
                    writer.write_frame(frame)
                if ser.has_timestamps:
                    writer.write_timestamps(ser.timestamps)
        except OSError as err:
            raise click.ClickException(f"Could not write {output_filename!r}: {err}") from err
        click.echo(f"Copied {writer.frames_written} frames to {output_filename}.")


if __name__ == "__main__":
    main()
