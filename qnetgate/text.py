"""Whitespace trimming that matches the C locale's notion of a space."""

from __future__ import annotations

_C_SPACE = " \t\n\v\f\r"


def ltrim(s: str) -> str:
    """Return s without leading whitespace."""
    return s.lstrip(_C_SPACE)


def rtrim(s: str) -> str:
    """Return s without trailing whitespace."""
    return s.rstrip(_C_SPACE)


def trim(s: str) -> str:
    """Return s without leading or trailing whitespace."""
    return s.strip(_C_SPACE)