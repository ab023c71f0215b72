"""Test helpers for porter-helm3 tools."""

from porter_helm3.command import Command, CommandResult, run

PORTER_HELM3_BIN = "porter-helm3"


async def run_command(args: list[str], env: dict[str, str] | None = None) -> CommandResult:
    return await run(Command([PORTER_HELM3_BIN] + args, env=env))
