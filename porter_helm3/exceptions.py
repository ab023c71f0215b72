"""Exceptions related to porter-helm3."""

__all__ = [
    "MixinException",
    "InputException",
    "ConfigException",
    "CommandException",
    "HelmException",
    "OutputException",
]


class MixinException(Exception):
    """Generic base exception used for this library."""


class InputException(MixinException):
    """Raised when the input files or values are not formatted as expected."""


class ConfigException(MixinException):
    """Raised when the host environment or mixin config file is unusable."""


class CommandException(MixinException):
    """Raised when there is a failure running a subcommand."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class HelmException(CommandException):
    """Raised when there is a failure running a helm command."""


class OutputException(MixinException):
    """Raised when one or more step outputs could not be resolved."""
