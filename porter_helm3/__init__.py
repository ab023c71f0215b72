"""
.. include:: ../README.md
"""

__all__ = [
    "config",
    "build",
    "install",
    "outputs",
    "version",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
