"""Tests for the version library."""

import pytest

from porter_helm3.exceptions import InputException
from porter_helm3.version import CLIENT_VERSION_CONSTRAINT, validate


@pytest.mark.parametrize(
    ("version", "expected"),
    [
        ("v3.8.2", True),
        ("3.0.0", True),
        ("v3.12.3", True),
        ("v2.16.1", False),
        ("v4.0.0", False),
        ("v3.8", True),
        ("3", True),
        ("v2", False),
    ],
)
def test_validate(version: str, expected: bool) -> None:
    """Test versions against the helm client constraint."""
    assert validate(version, CLIENT_VERSION_CONSTRAINT) == expected


def test_unparseable_version() -> None:
    """Test a version that is not semver."""
    with pytest.raises(
        InputException,
        match="supplied client version 'v3.8.2.0' cannot be parsed as semver",
    ):
        validate("v3.8.2.0", CLIENT_VERSION_CONSTRAINT)


@pytest.mark.parametrize("version", ["v3.8.2", "v2.0.0"])
def test_unparseable_constraint(version: str) -> None:
    """Test a constraint that is not a semver range."""
    with pytest.raises(
        InputException,
        match="unable to parse version constraint 'not-a-range'",
    ):
        validate(version, "not-a-range")
