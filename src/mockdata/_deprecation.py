"""Deprecation helpers for retired arguments."""

from __future__ import annotations

import warnings


def warn_deprecated_argument(function: str, argument: str, replacement: str) -> None:
    """Emit a deprecation warning for an argument that is now ignored."""

    warnings.warn(
        f"`{function}({argument}=...)` is deprecated and ignored. "
        f"Use {replacement} instead.",
        DeprecationWarning,
        stacklevel=3,
    )
