"""Library for resolving step outputs from the cluster after an install.

Outputs are read from Secrets in the release namespace rather than from the
helm command output, for example:
```yaml
outputs:
- name: mysql-root-password
  secret: mysql
  key: mysql-root-password
```
Each output is resolved on its own. A failed output does not undo the
release that was already installed.
"""

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path

import aiofiles
import aiofiles.os

from .config import BaseModel
from .exceptions import MixinException, OutputException
from .kube import ClusterClient

__all__ = [
    "HelmOutput",
    "OutputResults",
    "resolve_outputs",
    "check_output_name",
    "write_outputs",
]

_LOGGER = logging.getLogger(__name__)


OUTPUTS_DIR = Path("/cnab/app/porter/outputs")


def check_output_name(name: str) -> None:
    """Raise `OutputException` unless the name is a plain file name."""
    if name in ("", ".", "..") or "/" in name or os.sep in name:
        raise OutputException(f"Output name '{name}' is not a valid file name")


@dataclass
class HelmOutput(BaseModel):
    """An output of a step read from a key in a Secret."""

    name: str
    """The name of the output."""

    secret: str = ""
    """The name of the Secret in the release namespace."""

    key: str = ""
    """The key within the Secret data."""


@dataclass
class OutputResults:
    """Values of the resolved outputs and errors for the failed ones."""

    values: dict[str, bytes] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)


def resolve_outputs(
    client: ClusterClient, namespace: str, outputs: list[HelmOutput]
) -> OutputResults:
    """Resolve each output from the cluster independently."""
    results = OutputResults()
    for output in outputs:
        try:
            check_output_name(output.name)
            if not output.secret or not output.key:
                raise OutputException(
                    f"Output '{output.name}' requires both a secret and a key"
                )
            value = client.get_secret_value(namespace, output.secret, output.key)
        except MixinException as err:
            _LOGGER.error("Unable to resolve output '%s': %s", output.name, err)
            results.errors[output.name] = str(err)
            continue
        results.values[output.name] = value
    return results


async def write_outputs(values: dict[str, bytes], outputs_dir: Path) -> None:
    """Write each output value to a file named after the output."""
    for name, value in values.items():
        _LOGGER.debug("Writing output %s", name)
        check_output_name(name)
        try:
            await aiofiles.os.makedirs(outputs_dir, exist_ok=True)
            async with aiofiles.open(outputs_dir / name, mode="wb") as output_file:
                await output_file.write(value)
        except OSError as err:
            raise OutputException(f"unable to write output '{name}': {err}") from err
