"""Response selection: the single branch point after resolution.

Once a path is resolved and checked on disk, only two things can happen:
the file is served, or the client gets a 404.  A directory and a missing
file look the same from outside.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Serve:
    """Serve the regular file at *path*."""

    path: Path


@dataclass(frozen=True)
class NotFound:
    """Nothing servable at the requested path."""


ResponseDecision = Serve | NotFound


def select(resolved: Path, *, exists: bool, is_file: bool) -> ResponseDecision:
    """Decide between serving *resolved* and a 404."""
    if exists and is_file:
        return Serve(resolved)
    return NotFound()
