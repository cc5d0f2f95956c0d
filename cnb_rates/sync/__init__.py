"""Synchronisation of stored currencies with the CNB fixing."""

from __future__ import annotations

from cnb_rates.sync.update_rates import (
    CurrencyOutcome,
    ExchangeRateUpdater,
    OutcomeStatus,
    SyncReport,
)

__all__ = ["CurrencyOutcome", "ExchangeRateUpdater", "OutcomeStatus", "SyncReport"]
