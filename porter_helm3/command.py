"""Library for issuing commands using asyncio and returning the result.

The output of a command is not captured: the subprocess writes directly to
the stdout and stderr of this process so the user sees helm progress as it
happens. The caller waits until the subprocess exits, with no timeout.
"""

import asyncio
from dataclasses import dataclass
import logging
import os
import shlex
import subprocess

from .exceptions import CommandException

_LOGGER = logging.getLogger(__name__)


# No public API
__all__: list[str] = []


@dataclass(frozen=True)
class CommandResult:
    """The outcome of a completed command."""

    cmd: list[str]
    """Array of command line arguments that were run."""

    returncode: int
    """Exit status of the process."""


@dataclass
class Command:
    """An instance of a command to run."""

    cmd: list[str]
    """Array of command line arguments."""

    exc: type[CommandException] = CommandException
    """Exception to throw in case of an error."""

    env: dict[str, str] | None = None
    """Environment variables for the subprocess."""

    @property
    def string(self) -> str:
        """Render the command as a single string."""
        return " ".join([shlex.quote(arg) for arg in self.cmd])

    def __str__(self) -> str:
        """Render as a debug string."""
        return self.string

    async def run(self) -> CommandResult:
        """Run the command to completion, returning its exit status.

        Failing to start the process raises the command exception. A non-zero
        exit status is returned as-is.
        """
        _LOGGER.debug("Running command: %s", self)
        env = {
            **os.environ,
            **(self.env if self.env else {}),
        }
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.cmd,
                stdin=subprocess.DEVNULL,
                env=env,
            )
        except OSError as err:
            raise self.exc(f"could not execute command, {self}: {err}") from err
        try:
            returncode = await proc.wait()
        finally:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
        _LOGGER.debug("Command '%s' exited with return code %d", self, returncode)
        return CommandResult(cmd=list(self.cmd), returncode=returncode)


async def run(cmd: Command) -> CommandResult:
    """Run the specified command, raising an exception on a non-zero exit."""
    result = await cmd.run()
    if result.returncode:
        raise cmd.exc(
            f"Command '{cmd}' failed with return code {result.returncode}",
            returncode=result.returncode,
        )
    return result
