"""Library for generating the Dockerfile lines of an invocation image.

The lines prepare the image for running helm: environment variables for the
client versions, the platform specific lines that install `helm3` and
`kubectl`, and the chart repositories to register.

```python
from porter_helm3 import build, config

effective_config, platforms = await config.resolve(stdin)
for line in build.emit(effective_config, platforms):
    print(line)
```
"""

import logging

from .config import EffectiveConfig, Platform, IMAGE_PLATFORM_NONE
from .exceptions import InputException

__all__ = [
    "emit",
]

_LOGGER = logging.getLogger(__name__)


HELM_BIN = "helm3"
SUPPRESSED = "# helm mixin buildtime ouput was supressed"


def repository_command(name: str, url: str) -> list[str]:
    """Return the Dockerfile command that adds a chart repository."""
    if not url:
        raise InputException(f"repository url must be supplied for '{name}'")
    return ["RUN", HELM_BIN, "repo", "add", name, url]


def _repository_lines(repositories: dict[str, str]) -> list[str]:
    # Switch to a non-root user so helm is configured for the user the
    # container will execute as
    lines = ["USER ${BUNDLE_USER}"]
    for name in sorted(repositories):
        try:
            command = repository_command(name, repositories[name])
        except InputException as err:
            _LOGGER.debug("Addition of repository failed: %s", err)
            continue
        lines.append(" ".join(command))
    lines.append(f"RUN {HELM_BIN} repo update")
    # Switch back to root so that subsequent mixins can install things
    lines.append("USER root")
    return lines


def emit(config: EffectiveConfig, platforms: list[Platform]) -> list[str]:
    """Return the Dockerfile lines for the effective config.

    Each entry is written followed by a newline. A platform entry is copied
    verbatim and may span multiple lines.
    """
    if config.image_platform == IMAGE_PLATFORM_NONE:
        return [SUPPRESSED]

    lines = [
        f"ENV CLIENT_VERSION={config.client_version}",
        f"ENV API_VERSION={config.api_version}",
        f"ENV CLIENT_ARCH={config.client_architecture}",
    ]
    platform = next(
        iter([p for p in platforms if p.name == config.image_platform]), None
    )
    if platform is None:
        _LOGGER.debug("No platform found for '%s'", config.image_platform)
    elif platform.init:
        lines.append(platform.init)

    if config.repositories:
        lines.extend(_repository_lines(config.repositories))
    return lines
