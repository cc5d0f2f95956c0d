"""MySQL currency store."""

from __future__ import annotations

from cnb_rates.db.relational_backend import RelationalBackend


class MySQLBackend(RelationalBackend):
    """Concrete relational backend for MySQL engines."""

    pass


__all__ = ["MySQLBackend"]
