"""SQLAlchemy persistence for the bundled SQLite currency store."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Sequence, cast

from sqlalchemy import Integer, Numeric, String, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from cnb_rates.db import DEFAULT_SQLITE_DB_PATH
from cnb_rates.exceptions import PersistenceError
from cnb_rates.ingestion.models import Currency
from cnb_rates.utils.logger import get_logger

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class _CurrencyRow(Base):
    __tablename__ = "currencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    short: Mapped[str] = mapped_column(String(3), nullable=False)
    symbol: Mapped[str] = mapped_column(String, nullable=False, default="")
    exchange_rate_to_czk: Mapped[Decimal | None] = mapped_column(
        Numeric(18, 6, asdecimal=True), nullable=True
    )


@dataclass(slots=True)
class PersistenceResult:
    """Represents how many rows were inserted or updated in a batch."""

    inserted: int = 0
    updated: int = 0

    @property
    def total(self) -> int:
        """Return the total number of affected rows."""

        return self.inserted + self.updated


def _to_currency(model: _CurrencyRow) -> Currency:
    return Currency(
        id=cast(int, model.id),
        title=cast(str, model.title),
        short=cast(str, model.short),
        symbol=cast(str, model.symbol),
        exchange_rate_to_czk=model.exchange_rate_to_czk,
    )


class SQLiteManager:
    """Own the SQLite engine and map currency rows to :class:`Currency`."""

    def __init__(self, db_path: str | Path = DEFAULT_SQLITE_DB_PATH) -> None:
        self.db_path = Path(db_path).expanduser().resolve()
        self.engine: Engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(self.engine)
        self._SessionFactory: sessionmaker[Session] = sessionmaker(
            bind=self.engine, expire_on_commit=False, future=True
        )
        LOGGER.info("Using SQLite currency store at %s", self.db_path)

    def add_currencies(self, rows: Sequence[Currency]) -> PersistenceResult:
        """Insert new currencies and overwrite ones whose id already exists.

        Freshly inserted currencies get their generated ``id`` assigned back.
        """

        result = PersistenceResult()
        try:
            with self._SessionFactory() as session:
                inserted: list[tuple[Currency, _CurrencyRow]] = []
                for row in rows:
                    existing = session.get(_CurrencyRow, row.id) if row.id is not None else None
                    if existing is None:
                        model = _CurrencyRow(
                            id=row.id,
                            title=row.title,
                            short=row.short,
                            symbol=row.symbol,
                            exchange_rate_to_czk=row.exchange_rate_to_czk,
                        )
                        session.add(model)
                        inserted.append((row, model))
                        result.inserted += 1
                    else:
                        existing.title = row.title
                        existing.short = row.short
                        existing.symbol = row.symbol
                        existing.exchange_rate_to_czk = row.exchange_rate_to_czk
                        result.updated += 1
                session.commit()
                for currency, model in inserted:
                    currency.id = model.id
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to store currencies: {exc}") from exc
        LOGGER.info(
            "Inserted %s currencies, updated %s currencies (total %s)",
            result.inserted,
            result.updated,
            result.total,
        )
        return result

    def list_currencies(self) -> list[Currency]:
        try:
            with self._SessionFactory() as session:
                stmt = select(_CurrencyRow).order_by(_CurrencyRow.id)
                return [_to_currency(model) for model in session.execute(stmt).scalars()]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to list currencies: {exc}") from exc

    def get_currency(self, currency_id: int) -> Currency | None:
        try:
            with self._SessionFactory() as session:
                model = session.get(_CurrencyRow, currency_id)
                return _to_currency(model) if model is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load currency {currency_id}: {exc}") from exc

    def save_currency(self, currency: Currency) -> None:
        if currency.id is None:
            raise PersistenceError(f"Currency {currency.title!r} has no id and cannot be saved")
        try:
            with self._SessionFactory() as session:
                model = session.get(_CurrencyRow, currency.id)
                if model is None:
                    raise PersistenceError(f"Currency with id {currency.id} does not exist")
                model.title = currency.title
                model.short = currency.short
                model.symbol = currency.symbol
                model.exchange_rate_to_czk = currency.exchange_rate_to_czk
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to save currency {currency.title!r}: {exc}") from exc

    def close(self) -> None:  # pragma: no cover - trivial
        self.engine.dispose()

    def __enter__(self) -> "SQLiteManager":  # pragma: no cover - trivial
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()


__all__ = ["PersistenceResult", "SQLiteManager"]
