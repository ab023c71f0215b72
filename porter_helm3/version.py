"""Library for checking helm client versions against a semver constraint.

Constraints use the npm style range syntax, so `^v3.x` matches any `3.x.y`
release of the helm client. A version with missing minor or patch parts,
such as `v3.8` or `3`, is padded with zeros before it is compared.
"""

import logging
import re

from nodesemver import make_range, make_semver

from .exceptions import InputException

__all__ = [
    "CLIENT_VERSION_CONSTRAINT",
    "validate",
]

_LOGGER = logging.getLogger(__name__)


CLIENT_VERSION_CONSTRAINT = "^v3.x"
"""Only helm clients versioned v3.x.x are supported."""

_PARTIAL_VERSION = re.compile(r"^(v?\d+)(\.\d+)?$")


def _coerce(version: str) -> str:
    if not (match := _PARTIAL_VERSION.match(version)):
        return version
    major, minor = match.groups()
    return f"{major}{minor or '.0'}.0"


def validate(version: str, constraint: str) -> bool:
    """Return True if the supplied version meets the semver constraint.

    An `InputException` is raised when either the version or the constraint
    cannot be parsed.
    """
    try:
        version_range = make_range(constraint, loose=False)
    except ValueError as err:
        raise InputException(
            f"unable to parse version constraint '{constraint}': {err}"
        ) from err
    try:
        semver = make_semver(_coerce(version), loose=False)
    except ValueError as err:
        raise InputException(
            f"supplied client version '{version}' cannot be parsed as semver: {err}"
        ) from err
    result = bool(version_range.test(semver))
    _LOGGER.debug("Version %s matches %s: %s", version, constraint, result)
    return result
