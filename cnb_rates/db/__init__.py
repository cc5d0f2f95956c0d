"""Helpers for working with the bundled SQLite database."""

from __future__ import annotations

from pathlib import Path
from typing import Final

__all__ = ["DEFAULT_SQLITE_DB_PATH", "bundled_sqlite_path"]

# Resolved next to this module so the location does not depend on the working
# directory; SQLite needs an absolute path once installed in site-packages.
DEFAULT_SQLITE_DB_PATH: Final[Path] = Path(__file__).resolve().with_name("currencies.db")


def bundled_sqlite_path() -> Path:
    """Return the absolute path to the packaged ``currencies.db`` file."""

    return DEFAULT_SQLITE_DB_PATH
