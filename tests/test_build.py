"""Tests for the build library."""

import logging
from pathlib import Path

import pytest

from porter_helm3 import build
from porter_helm3.config import (
    DEFAULT_PLATFORM_INIT,
    EffectiveConfig,
    Platform,
    resolve,
)
from porter_helm3.exceptions import InputException

TESTDATA_DIR = Path("tests/testdata")

ENV_LINES = (
    "ENV CLIENT_VERSION=v3.8.2\n"
    "ENV API_VERSION=v1.22.1\n"
    "ENV CLIENT_ARCH=amd64\n"
    f"{DEFAULT_PLATFORM_INIT}\n"
)


async def build_output(filename: str) -> str:
    """Run a build for the testdata file and return the Dockerfile lines."""
    payload = (TESTDATA_DIR / filename).read_text()
    effective_config, platforms = await resolve(payload)
    return "".join(f"{line}\n" for line in build.emit(effective_config, platforms))


async def test_build_valid_config(porter_home: Path) -> None:
    """Test a build with a single repository."""
    assert await build_output("build-input-with-valid-config.yaml") == (
        ENV_LINES
        + """USER ${BUNDLE_USER}
RUN helm3 repo add stable kubernetes-charts
RUN helm3 repo update
USER root
"""
    )


async def test_build_multiple_repositories(porter_home: Path) -> None:
    """Test repositories are added in order of name."""
    assert await build_output("build-input-with-valid-config-multi-repos.yaml") == (
        ENV_LINES
        + """USER ${BUNDLE_USER}
RUN helm3 repo add harbor https://helm.getharbor.io
RUN helm3 repo add jetstack https://charts.jetstack.io
RUN helm3 repo add stable kubernetes-charts
RUN helm3 repo update
USER root
"""
    )


async def test_build_invalid_repository(
    porter_home: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Test a repository without a url is skipped."""
    caplog.set_level(logging.DEBUG)
    assert await build_output("build-input-with-invalid-config.yaml") == (
        ENV_LINES
        + """USER ${BUNDLE_USER}
RUN helm3 repo update
USER root
"""
    )
    assert "repository url must be supplied for 'stable'" in caplog.text


async def test_build_suppressed(porter_home: Path) -> None:
    """Test the none image platform suppresses all output."""
    assert (
        await build_output("build-input-with-none-imageplatform.yaml")
        == "# helm mixin buildtime ouput was supressed\n"
    )


async def test_build_client_version(porter_home: Path) -> None:
    """Test a build with a supplied helm client version."""
    assert await build_output("build-input-with-version.yaml") == (
        "ENV CLIENT_VERSION=v3.7.1\n"
        "ENV API_VERSION=v1.22.1\n"
        "ENV CLIENT_ARCH=amd64\n"
        f"{DEFAULT_PLATFORM_INIT}\n"
    )


async def test_build_unsupported_client_version(porter_home: Path) -> None:
    """Test a build with a helm client version that is not v3."""
    with pytest.raises(
        InputException,
        match="supplied clientVersion 'v2.16.1' does not meet semver constraint '\\^v3.x'",
    ):
        await build_output("build-input-with-unsupported-client-version.yaml")


async def test_build_invalid_client_version(porter_home: Path) -> None:
    """Test a build with a helm client version that is not semver."""
    with pytest.raises(
        InputException,
        match="supplied client version 'v3.8.2.0' cannot be parsed as semver",
    ):
        await build_output("build-input-with-invalid-client-version.yaml")


async def test_build_custom_platform(porter_home: Path) -> None:
    """Test a platform added in the mixin config file."""
    config_file = porter_home / "mixins" / "helm3" / "config.yaml"
    config_file.parent.mkdir(parents=True)
    config_file.write_text(
        "platforms:\n- name: centos\n  init: RUN yum install -y helm\n"
    )
    effective_config, platforms = await resolve("config:\n  imagePlatform: centos\n")
    assert build.emit(effective_config, platforms) == [
        "ENV CLIENT_VERSION=v3.8.2",
        "ENV API_VERSION=v1.22.1",
        "ENV CLIENT_ARCH=amd64",
        "RUN yum install -y helm",
    ]


def test_emit_unknown_platform() -> None:
    """Test an image platform without a platform entry emits no init lines."""
    config = EffectiveConfig(
        client_version="v3.8.2",
        api_version="v1.22.1",
        client_architecture="arm",
        image_platform="alpine",
    )
    assert build.emit(config, [Platform(name="default", init="RUN x")]) == [
        "ENV CLIENT_VERSION=v3.8.2",
        "ENV API_VERSION=v1.22.1",
        "ENV CLIENT_ARCH=arm",
    ]


def test_emit_repository_order() -> None:
    """Test the output does not depend on the repository insertion order."""
    repos = {"c": "https://c", "a": "https://a", "b": "https://b"}
    configs = [
        EffectiveConfig(
            client_version="v3.8.2",
            api_version="v1.22.1",
            client_architecture="amd64",
            image_platform="default",
            repositories=dict(items),
        )
        for items in (repos.items(), reversed(list(repos.items())))
    ]
    first, second = (build.emit(config, []) for config in configs)
    assert first == second
    assert first[3:] == [
        "USER ${BUNDLE_USER}",
        "RUN helm3 repo add a https://a",
        "RUN helm3 repo add b https://b",
        "RUN helm3 repo add c https://c",
        "RUN helm3 repo update",
        "USER root",
    ]


def test_repository_command_missing_url() -> None:
    """Test a repository without a url."""
    with pytest.raises(InputException, match="repository url must be supplied"):
        build.repository_command("stable", "")


async def test_build_null_repository_url(porter_home: Path) -> None:
    """Test a repository with a null url is skipped."""
    effective_config, platforms = await resolve(
        """
config:
  repositories:
    stable:
      url:
    harbor:
      url: https://helm.getharbor.io
"""
    )
    assert build.emit(effective_config, platforms)[3:] == [
        DEFAULT_PLATFORM_INIT,
        "USER ${BUNDLE_USER}",
        "RUN helm3 repo add harbor https://helm.getharbor.io",
        "RUN helm3 repo update",
        "USER root",
    ]


async def test_build_null_platform_init(porter_home: Path) -> None:
    """Test a platform without init lines emits only the ENV lines."""
    config_file = porter_home / "mixins" / "helm3" / "config.yaml"
    config_file.parent.mkdir(parents=True)
    config_file.write_text("platforms:\n- name: default\n  init:\n")
    effective_config, platforms = await resolve("")
    assert build.emit(effective_config, platforms) == [
        "ENV CLIENT_VERSION=v3.8.2",
        "ENV API_VERSION=v1.22.1",
        "ENV CLIENT_ARCH=amd64",
    ]
