"""Flags and helpers shared by the porter-helm3 actions."""

from argparse import SUPPRESS, ArgumentParser
import pathlib
import sys

import aiofiles

from porter_helm3.exceptions import InputException


def add_input_flags(args: ArgumentParser) -> None:
    """Add the flag for reading mixin input from a file."""
    args.add_argument(
        "--file",
        "-f",
        type=pathlib.Path,
        default=None,
        help="Path to the mixin input, read from stdin when not set",
    )


async def read_input(file: pathlib.Path | None) -> str:
    """Return the mixin input from the file or stdin."""
    if file is None:
        return sys.stdin.read()
    try:
        async with aiofiles.open(file) as input_file:
            return await input_file.read()
    except OSError as err:
        raise InputException(f"Unable to read input file {file}: {err}") from err


def add_common_flags(args: ArgumentParser) -> None:
    """Add flags accepted by every action.

    Porter passes `--debug` after the command name.
    """
    args.add_argument(
        "--debug",
        action="store_true",
        default=SUPPRESS,
        help="Enable debug logging, same as --log-level=DEBUG",
    )
