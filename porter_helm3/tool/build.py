"""Porter-helm3 build action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import pathlib
from typing import cast

import aiofiles

from porter_helm3 import build, config
from porter_helm3.exceptions import ConfigException

from .common import add_common_flags, add_input_flags, read_input

_LOGGER = logging.getLogger(__name__)


class BuildAction:
    """Porter-helm3 build action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "build",
                help="Generate Dockerfile lines for the bundle invocation image",
                description="""Print the Dockerfile lines that install helm3,
                    kubectl and the configured chart repositories into the
                    invocation image.""",
            ),
        )
        add_common_flags(args)
        add_input_flags(args)
        args.add_argument(
            "--output-file",
            type=str,
            default="/dev/stdout",
            help="Output file for the results of the command",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        file: pathlib.Path | None,
        output_file: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        payload = await read_input(file)
        effective_config, platforms = await config.resolve(payload)
        content = "".join(
            f"{line}\n" for line in build.emit(effective_config, platforms)
        )
        try:
            async with aiofiles.open(output_file, mode="w") as output:
                await output.write(content)
        except OSError as err:
            raise ConfigException(
                f"Unable to write output file {output_file}: {err}"
            ) from err
