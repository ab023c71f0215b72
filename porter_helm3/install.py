"""Library for running `helm3 upgrade --install` for a porter install step.

The step is read from the mixin input:
```yaml
install:
- helm3:
    description: "Install MySQL"
    name: porter-ci-mysql
    chart: bitnami/mysql
    version: 6.14.2
    namespace: porter-ci
    replace: true
    set:
      db.name: wordpress
    outputs:
    - name: mysql-root-password
      secret: porter-ci-mysql
      key: mysql-root-password
```

The arguments are always emitted in the same order, with `--set` values
sorted by key, so the same step always produces the same command line.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
import logging
from pathlib import Path
import sys
from typing import Any, TextIO

from mashumaro import field_options

from . import command
from .command import CommandResult
from .config import BaseModel
from .exceptions import HelmException, InputException, OutputException
from .kube import ClusterClient, KubernetesClusterClient
from .outputs import OUTPUTS_DIR, HelmOutput, resolve_outputs, write_outputs

__all__ = [
    "InstallArguments",
    "InstallStep",
    "InstallAction",
    "build_args",
    "parse_step",
    "install",
]

_LOGGER = logging.getLogger(__name__)


HELM_BIN = "helm3"


def _raw_string(value: Any) -> str:
    """Return a scalar from yaml as the string helm expects on the command line."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _raw_strings(values: dict[str, Any] | None) -> dict[str, str]:
    return {str(key): _raw_string(value) for key, value in (values or {}).items()}


_TRUE_VALUES = frozenset({"y", "yes", "true", "on"})
_FALSE_VALUES = frozenset({"n", "no", "false", "off", ""})


def _raw_bool(value: Any) -> bool:
    """Return a flag from a yaml 1.1 boolean scalar kept as text."""
    if isinstance(value, bool):
        return value
    text = _raw_string(value).lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"'{value}' is not a boolean")


def _flag(alias: str | None = None) -> Any:
    return field(
        metadata=field_options(alias=alias, deserialize=_raw_bool), default=False
    )


@dataclass
class InstallArguments(BaseModel):
    """Arguments of a helm3 install step."""

    name: str = ""
    """The name of the helm release."""

    chart: str = ""
    """The chart reference, e.g. `stable/mysql`."""

    description: str = ""
    """Description of the step shown by porter."""

    namespace: str = ""
    """The namespace of the release, created if missing."""

    repo: str = ""
    """Repository of the chart."""

    version: str = field(
        metadata=field_options(deserialize=_raw_string), default=""
    )
    """The chart version."""

    replace: bool = _flag()
    wait: bool = _flag()
    devel: bool = _flag()
    dependency_update: bool = _flag(alias="dependencyupdate")
    no_hooks: bool = _flag(alias="nohooks")

    upsert: bool = _flag()
    """Install or upgrade in place. Every install is run as an upgrade."""

    set_values: dict[str, str] = field(
        metadata=field_options(alias="set", deserialize=_raw_strings),
        default_factory=dict,
    )
    """Chart values passed with `--set`."""

    values: list[str] = field(default_factory=list)
    """Values files passed with `--values`, in order."""

    username: str = ""
    password: str = ""

    outputs: list[HelmOutput] = field(default_factory=list)
    """Outputs resolved from the cluster after the release is installed."""


@dataclass
class InstallStep(BaseModel):
    """A step in the install action handled by this mixin."""

    helm3: InstallArguments


@dataclass
class InstallAction(BaseModel):
    """The document passed to the mixin for the install command."""

    steps: list[InstallStep] = field(
        metadata=field_options(alias="install"), default_factory=list
    )


def build_args(step: InstallArguments) -> list[str]:
    """Return the helm command line arguments for the install step."""
    if not step.name:
        raise InputException("install step is missing the release name")
    if not step.chart:
        raise InputException(f"install step '{step.name}' is missing the chart")

    args = ["upgrade", "--install", step.name, step.chart]
    if step.namespace:
        args.extend(["--namespace", step.namespace])
    if step.version:
        args.extend(["--version", step.version])
    if step.replace:
        args.append("--replace")
    if step.wait:
        args.append("--wait")
    if step.devel:
        args.append("--devel")
    for values_file in step.values:
        args.extend(["--values", values_file])
    if step.dependency_update:
        args.append("--dependency-update")
    if step.no_hooks:
        args.append("--no-hooks")
    # Delete the release on failure
    args.append("--atomic")
    args.append("--create-namespace")
    for key in sorted(step.set_values):
        args.extend(["--set", f"{key}={step.set_values[key]}"])
    return args


def parse_step(payload: str | bytes) -> InstallArguments:
    """Parse the single helm3 step from the install input."""
    action = InstallAction.parse_yaml(payload, "Install input")
    if len(action.steps) != 1:
        raise InputException(f"expected a single step, but got {len(action.steps)}")
    return action.steps[0].helm3


async def install(
    payload: str | bytes,
    out: TextIO | None = None,
    client_factory: Callable[[], ClusterClient] = KubernetesClusterClient.from_kubeconfig,
    outputs_dir: Path = OUTPUTS_DIR,
) -> CommandResult:
    """Run the install step and write its outputs.

    The command line is written to `out` before helm runs. A failed helm
    command raises `HelmException` with the helm exit status.
    """
    if out is None:
        out = sys.stdout
    step = parse_step(payload)
    args = build_args(step)
    client = client_factory() if step.outputs else None

    cmd = command.Command([HELM_BIN, *args], exc=HelmException)
    print(" ".join(cmd.cmd), file=out, flush=True)
    result = await command.run(cmd)

    if client is None:
        return result
    results = resolve_outputs(client, step.namespace, step.outputs)
    await write_outputs(results.values, outputs_dir)
    if results.errors:
        raise OutputException(
            "Release installed but outputs could not be resolved: "
            + ", ".join(f"{name} ({err})" for name, err in results.errors.items())
        )
    return result
