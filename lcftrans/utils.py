"""Small filesystem and formatting helpers."""

import os
from typing import Optional


def lower_names(directory: str) -> dict:
    """Map lower-cased file names of a directory to their real names.

    Game folders come from Windows, so file names are matched ignoring case.
    """
    return {name.lower(): name for name in os.listdir(directory)}


def find_file(directory: str, name: str) -> Optional[str]:
    """Return the path of ``name`` in ``directory`` ignoring case, or None."""
    real = lower_names(directory).get(name.lower())
    return os.path.join(directory, real) if real else None


def terms(count: int) -> str:
    """``1 term`` / ``3 terms``."""
    return f"{count} term" + ("" if count == 1 else "s")
