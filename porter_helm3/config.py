"""Configuration for the helm3 mixin.

The effective configuration used to build an invocation image is resolved
from three layers, each one overriding the previous:

- The compiled-in defaults in this module
- The host config file `$PORTER_HOME/mixins/helm3/config.yaml` which holds
  the Dockerfile lines used for each image platform
- The `config` section of the mixin in `porter.yaml`, passed on stdin

An example of the mixin configuration in `porter.yaml`:
```yaml
mixins:
- helm3:
    clientVersion: v3.8.2
    apiVersion: v1.22.1
    clientArchitecture: amd64
    imagePlatform: default
    repositories:
      stable:
        url: "https://charts.helm.sh/stable"
```
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
import logging
import os
from pathlib import Path
from typing import Any, TypeVar

import aiofiles
import aiofiles.os
from aiofiles.ospath import exists
from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField
import yaml

from .exceptions import ConfigException, InputException
from .version import CLIENT_VERSION_CONSTRAINT, validate

__all__ = [
    "Repository",
    "MixinConfig",
    "BuildInput",
    "Platform",
    "PlatformConfig",
    "EffectiveConfig",
    "merge_config",
    "merge_platforms",
    "mixin_config_path",
    "load_platforms",
    "resolve",
]

_LOGGER = logging.getLogger(__name__)


PORTER_HOME = "PORTER_HOME"
MIXIN_CONFIG_SUFFIX = Path("mixins") / "helm3" / "config.yaml"

DEFAULT_CLIENT_VERSION = "v3.8.2"
DEFAULT_API_VERSION = "v1.22.1"
DEFAULT_CLIENT_ARCHITECTURE = "amd64"
DEFAULT_IMAGE_PLATFORM = "default"

CLIENT_ARCHITECTURES = ("amd64", "arm64", "arm")

# Reserved image platform that suppresses all buildtime output
IMAGE_PLATFORM_NONE = "none"

DEFAULT_PLATFORM_INIT = r"""ENV HELM_EXPERIMENTAL_OCI=1
RUN apt-get update && apt-get install -y curl
RUN curl https://get.helm.sh/helm-${CLIENT_VERSION}-linux-${CLIENT_ARCH}.tar.gz --output helm3.tar.gz
RUN tar -xvf helm3.tar.gz && rm helm3.tar.gz
RUN mv linux-${CLIENT_ARCH}/helm /usr/local/bin/helm3
RUN curl -o kubectl https://storage.googleapis.com/kubernetes-release/release/${API_VERSION}/bin/linux/${CLIENT_ARCH}/kubectl &&\
    mv kubectl /usr/local/bin && chmod a+x /usr/local/bin/kubectl"""


_T = TypeVar("_T", bound="BaseModel")

YAML_NULL_TAG = "tag:yaml.org,2002:null"


class RawScalarLoader(yaml.SafeLoader):
    """A yaml loader that keeps plain scalars as their source text.

    Only null is resolved, so `version: 6.10` stays `"6.10"` and
    `legacy: yes` stays `"yes"` rather than becoming a float or bool.
    """


RawScalarLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag == YAML_NULL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


@dataclass
class BaseModel(DataClassDictMixin):
    """Base class for all objects read from mixin input or config files."""

    @classmethod
    def __pre_deserialize__(cls, d: dict[Any, Any]) -> dict[Any, Any]:
        # A key with no value is the same as an absent key
        return {key: value for key, value in d.items() if value is not None}

    @classmethod
    def parse_doc(cls: type[_T], doc: Any, source: str) -> _T:
        """Parse an object from a decoded yaml document."""
        if doc is None:
            doc = {}
        if not isinstance(doc, dict):
            raise InputException(
                f"{source} expected dictionary but was {type(doc).__name__}: {doc}"
            )
        try:
            return cls.from_dict(doc)
        except (
            MissingField,
            InvalidFieldValue,
            AttributeError,
            TypeError,
            ValueError,
        ) as err:
            raise InputException(f"{source} is not valid: {err}") from err

    @classmethod
    def parse_yaml(cls: type[_T], content: str | bytes, source: str) -> _T:
        """Parse a serialized yaml document, keeping scalars as source text."""
        try:
            doc = yaml.load(content, Loader=RawScalarLoader)
        except yaml.YAMLError as err:
            raise InputException(f"{source} failed to parse as yaml: {err}") from err
        return cls.parse_doc(doc, source)

    def yaml(self) -> str:
        """Return a YAML string representation of the object."""
        return yaml.dump(self.to_dict(), sort_keys=False)

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass
class Repository(BaseModel):
    """A helm chart repository registered in the invocation image."""

    url: str = ""
    """The url of the chart repository."""


@dataclass
class MixinConfig(BaseModel):
    """Configuration that can be set on the helm3 mixin in porter.yaml.

    Empty fields are unset and never override another layer.
    """

    client_version: str = field(
        metadata=field_options(alias="clientVersion"), default=""
    )
    """Version of the helm client installed in the image."""

    api_version: str = field(metadata=field_options(alias="apiVersion"), default="")
    """Kubernetes API version, used to pick the kubectl release."""

    client_architecture: str = field(
        metadata=field_options(alias="clientArchitecture"), default=""
    )
    """Architecture of the helm and kubectl binaries."""

    image_platform: str = field(
        metadata=field_options(alias="imagePlatform"), default=""
    )
    """Name of the platform whose Dockerfile lines are emitted, or `none`."""

    repositories: dict[str, Repository] = field(default_factory=dict)
    """Chart repositories to add, keyed by name."""

    @classmethod
    def __pre_deserialize__(cls, d: dict[Any, Any]) -> dict[Any, Any]:
        d = super().__pre_deserialize__(d)
        if isinstance(repositories := d.get("repositories"), dict):
            # A repository with no value has an empty url
            d["repositories"] = {
                name: {} if repo is None else repo
                for name, repo in repositories.items()
            }
        return d


@dataclass
class BuildInput(BaseModel):
    """The document passed to the mixin for the build command."""

    config: MixinConfig = field(default_factory=MixinConfig)


@dataclass
class Platform(BaseModel):
    """Dockerfile lines that prepare one image platform for helm."""

    name: str
    """The image platform name matched against `imagePlatform`."""

    init: str = ""
    """Dockerfile lines emitted verbatim for the platform."""


@dataclass
class PlatformConfig(BaseModel):
    """Contents of the host level mixin config file."""

    platforms: list[Platform] = field(default_factory=list)


@dataclass(frozen=True)
class EffectiveConfig:
    """The fully merged settings used to build the invocation image."""

    client_version: str
    api_version: str
    client_architecture: str
    image_platform: str
    repositories: dict[str, str] = field(default_factory=dict)
    """Repository urls keyed by repository name."""


DEFAULT_CONFIG = MixinConfig(
    client_version=DEFAULT_CLIENT_VERSION,
    api_version=DEFAULT_API_VERSION,
    client_architecture=DEFAULT_CLIENT_ARCHITECTURE,
    image_platform=DEFAULT_IMAGE_PLATFORM,
)

DEFAULT_PLATFORMS = [
    Platform(name="default", init=DEFAULT_PLATFORM_INIT),
]


def merge_platforms(
    base: list[Platform], overrides: list[Platform]
) -> list[Platform]:
    """Merge two platform lists by name.

    An override replaces the base platform with the same name. All other
    platforms from both lists are kept, base platforms first.
    """
    merged: dict[str, Platform] = {platform.name: platform for platform in base}
    for platform in overrides:
        if platform.name in merged:
            _LOGGER.debug("Overriding platform '%s'", platform.name)
        merged[platform.name] = platform
    return list(merged.values())


def merge_config(base: MixinConfig, override: MixinConfig) -> MixinConfig:
    """Merge the non-empty fields of the override onto the base config."""
    return replace(
        base,
        client_version=override.client_version or base.client_version,
        api_version=override.api_version or base.api_version,
        client_architecture=override.client_architecture or base.client_architecture,
        image_platform=override.image_platform or base.image_platform,
        repositories={**base.repositories, **override.repositories},
    )


def mixin_config_path(environ: Mapping[str, str] | None = None) -> Path:
    """Return the path of the host level mixin config file."""
    if environ is None:
        environ = os.environ
    if not (porter_home := environ.get(PORTER_HOME)):
        raise ConfigException(
            f"{PORTER_HOME} is not set, unable to locate the helm3 mixin config"
        )
    return Path(porter_home) / MIXIN_CONFIG_SUFFIX


async def load_platforms(path: Path) -> list[Platform]:
    """Return the built-in platforms merged with the host config file.

    The config file is created with the built-in platforms when missing.
    """
    defaults = PlatformConfig(platforms=list(DEFAULT_PLATFORMS))
    if not await exists(path):
        _LOGGER.debug("Writing default mixin config to %s", path)
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(path, mode="w") as config_file:
                await config_file.write(defaults.yaml())
        except OSError as err:
            raise ConfigException(
                f"Unable to write mixin config {path}: {err}"
            ) from err
        return defaults.platforms

    try:
        async with aiofiles.open(path) as config_file:
            content = await config_file.read()
    except OSError as err:
        raise ConfigException(f"Unable to read mixin config {path}: {err}") from err
    custom = PlatformConfig.parse_yaml(content, f"Mixin config {path}")
    return merge_platforms(defaults.platforms, custom.platforms)


def _effective_config(config: MixinConfig) -> EffectiveConfig:
    if config.client_architecture not in CLIENT_ARCHITECTURES:
        raise InputException(
            f"supplied clientArchitecture '{config.client_architecture}' is not "
            f"one of {', '.join(CLIENT_ARCHITECTURES)}"
        )
    return EffectiveConfig(
        client_version=config.client_version,
        api_version=config.api_version,
        client_architecture=config.client_architecture,
        image_platform=config.image_platform,
        repositories={name: repo.url for name, repo in config.repositories.items()},
    )


async def resolve(
    payload: str | bytes,
    environ: Mapping[str, str] | None = None,
) -> tuple[EffectiveConfig, list[Platform]]:
    """Resolve the effective config and platforms for a build invocation."""
    platforms = await load_platforms(mixin_config_path(environ))

    build_input = BuildInput.parse_yaml(payload, "Build input")
    config = merge_config(DEFAULT_CONFIG, build_input.config)

    if supplied_version := build_input.config.client_version:
        if not validate(supplied_version, CLIENT_VERSION_CONSTRAINT):
            raise InputException(
                f"supplied clientVersion '{supplied_version}' does not meet "
                f"semver constraint '{CLIENT_VERSION_CONSTRAINT}'"
            )

    return _effective_config(config), platforms
