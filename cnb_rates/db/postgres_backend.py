"""PostgreSQL currency store."""

from __future__ import annotations

from cnb_rates.db.relational_backend import RelationalBackend


class PostgresBackend(RelationalBackend):
    """Concrete relational backend for PostgreSQL engines."""

    pass


__all__ = ["PostgresBackend"]
