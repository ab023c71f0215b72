"""Fixtures shared by the porter-helm3 tests."""

import os
from pathlib import Path

import pytest

from porter_helm3.exceptions import OutputException

FAKE_HELM = """#!/bin/sh
echo "fake-helm3 $@"
exit ${FAKE_HELM_EXIT:-0}
"""


class FakeClusterClient:
    """A ClusterClient that reads secrets from a dictionary."""

    def __init__(self, secrets: dict[tuple[str, str], dict[str, bytes]]) -> None:
        self.secrets = secrets
        self.calls: list[tuple[str, str, str]] = []

    def get_secret_value(self, namespace: str, name: str, key: str) -> bytes:
        self.calls.append((namespace, name, key))
        if (secret := self.secrets.get((namespace, name))) is None:
            raise OutputException(f"Unable to read secret {namespace}/{name}")
        if key not in secret:
            raise OutputException(f"Secret {namespace}/{name} has no key '{key}'")
        return secret[key]


@pytest.fixture(name="porter_home")
def porter_home_fixture(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Fixture for an empty PORTER_HOME directory."""
    porter_home = tmp_path / "porter"
    porter_home.mkdir()
    monkeypatch.setenv("PORTER_HOME", str(porter_home))
    return porter_home


@pytest.fixture(name="fake_helm")
def fake_helm_fixture(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Fixture that puts a fake helm3 binary first on the PATH.

    The fake binary prints its arguments and exits with `FAKE_HELM_EXIT`.
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    helm = bin_dir / "helm3"
    helm.write_text(FAKE_HELM)
    helm.chmod(0o755)
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    return helm


@pytest.fixture(name="cluster_client")
def cluster_client_fixture() -> FakeClusterClient:
    """Fixture for a cluster with the secret of a mysql release."""
    return FakeClusterClient(
        {
            ("porter-ci-mysql", "porter-ci-mysql"): {
                "mysql-root-password": b"root-secret",
                "mysql-password": b"user-secret",
            },
        }
    )
