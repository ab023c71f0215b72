"""Porter-helm3 version action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from importlib import metadata
from typing import cast

from porter_helm3.version import CLIENT_VERSION_CONSTRAINT

from .common import add_common_flags

PACKAGE_NAME = "porter-helm3"


class VersionAction:
    """Print the mixin version."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "version",
                help="Print the mixin version",
                description="Print the mixin version and supported helm clients.",
            ),
        )
        add_common_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        print(f"{PACKAGE_NAME} v{metadata.version(PACKAGE_NAME)}")
        print(f"helm client {CLIENT_VERSION_CONSTRAINT}")
