"""Human-readable progress and error lines written to stderr."""

from __future__ import annotations

import sys
from typing import Any


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)


def log(level: str, message: str, **fields: Any) -> None:
    """Print ``[level] message key=value ...`` to stderr."""

    parts = [f"[{level}] {message}"]
    parts.extend(f"{key}={_format_value(value)}" for key, value in fields.items())
    print(" ".join(parts), file=sys.stderr)


__all__ = ["log"]
