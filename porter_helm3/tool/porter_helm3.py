"""Command line tool for the porter helm3 mixin."""

import argparse
import asyncio
import logging
import sys
import traceback
from typing import Any

import yaml

from porter_helm3.exceptions import CommandException, MixinException
from . import build, install, version

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Porter mixin for installing helm3 charts in a bundle.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging, same as --log-level=DEBUG",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    build.BuildAction.register(subparsers)
    install.InstallAction.register(subparsers)
    version.VersionAction.register(subparsers)
    return parser


def main() -> None:
    """Porter-helm3 command line tool main entry point."""

    def str_presenter(dumper: yaml.Dumper, data: Any) -> Any:
        """Represent multi-line yaml strings as you'd expect.

        See https://github.com/yaml/pyyaml/issues/240
        """
        return dumper.represent_scalar(
            "tag:yaml.org,2002:str", data, style="|" if data.count("\n") > 0 else None
        )

    yaml.add_representer(str, str_presenter)

    parser = _make_parser()
    args = parser.parse_args()

    log_level = "DEBUG" if args.debug else args.log_level
    if log_level:
        logging.basicConfig(level=log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except MixinException as err:
        if log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("porter-helm3 error: ", err, file=sys.stderr)
        if isinstance(err, CommandException) and err.returncode:
            sys.exit(err.returncode)
        sys.exit(1)


if __name__ == "__main__":
    main()
