"""CLI entry point for syncing CNB exchange rates."""

from __future__ import annotations

from cnb_rates.sync.update_rates import main

if __name__ == "__main__":  # pragma: no cover - thin wrapper
    raise SystemExit(main())
