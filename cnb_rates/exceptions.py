"""Exception hierarchy raised by the cnb_rates engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from cnb_rates.ingestion.models import Currency


class CnbRatesError(Exception):
    """Base class for every error raised by this package."""


class FetchError(CnbRatesError):
    """The CNB feed could not be downloaded."""

    def __init__(self, url: str, *, status_code: int | None = None, message: str | None = None) -> None:
        self.url = url
        self.status_code = status_code
        if message is None:
            if status_code is not None:
                message = f"CNB API responded with HTTP {status_code} for {url}"
            else:
                message = f"Unable to reach CNB API at {url}"
        super().__init__(message)


class MalformedRowError(CnbRatesError):
    """A feed data line cannot be turned into a rate row."""

    def __init__(self, line: str, reason: str = "unexpected row format") -> None:
        self.line = line
        self.reason = reason
        super().__init__(f"Malformed CNB feed row ({reason}): {line!r}")


class RateNotFoundError(CnbRatesError):
    """No feed row matches the requested currency."""

    def __init__(self, currency: "Currency") -> None:
        self.currency = currency
        super().__init__(
            f"CNB feed has no rate for currency {currency.title!r} ({currency.short})"
        )


class PersistenceError(CnbRatesError):
    """The currency store failed to read or write."""


class CurrencyNotFoundError(CnbRatesError):
    """No stored currency carries the requested identifier."""

    def __init__(self, currency_id: int) -> None:
        self.currency_id = currency_id
        super().__init__(f"Currency with id {currency_id} was not found in the database")


__all__ = [
    "CnbRatesError",
    "CurrencyNotFoundError",
    "FetchError",
    "MalformedRowError",
    "PersistenceError",
    "RateNotFoundError",
]
