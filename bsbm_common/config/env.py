"""Environment variable parsing utilities."""

from __future__ import annotations


def parse_bool_env(value: str | None) -> bool | None:
    """Parse a boolean from an environment variable string.

    Returns True for "1", "true", "yes", "on" (case-insensitive).
    Returns None if value is None.
    """
    if value is None:
        return None
    return value.strip().lower() in {"1", "true", "yes", "on"}


def merge_env(base: dict[str, str], extra: dict[str, str] | None) -> dict[str, str]:
    """Return a copy of ``base`` updated with ``extra``."""
    merged = dict(base)
    if extra:
        merged.update(extra)
    return merged
