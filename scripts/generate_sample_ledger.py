#!/usr/bin/env python3
"""
Generate a sample ledger for manual testing.

Imports a few lots per account (duplicates included, so the holdings view
has something to roll up), then prints the consolidated portfolio.

Usage: from project root, with the package installed:
  python scripts/generate_sample_ledger.py [data_dir]
"""

import random
import sys
from decimal import Decimal
from pathlib import Path

from portfolio_tracker.app_context import AppContext
from portfolio_tracker.services import PositionCreate

ACCOUNTS = ["Main Brokerage", "Roth IRA"]

# Approximate prices used to pick plausible cost bases
STOCKS = [
    ("AAPL", 180.0),
    ("MSFT", 420.0),
    ("GOOGL", 160.0),
    ("NVDA", 500.0),
    ("VTI", 250.0),
    ("SPY", 500.0),
]


def build_rows(rng: random.Random) -> list[PositionCreate]:
    rows = []
    for account in ACCOUNTS:
        rows.append(PositionCreate(
            ticker="CASH",
            account=account,
            quantity=str(rng.randint(1, 20) * 500),
            cost_basis="1",
        ))
        for ticker, price in rng.sample(STOCKS, k=4):
            for _ in range(rng.randint(1, 2)):
                cost = Decimal(str(price * rng.uniform(0.7, 1.1))).quantize(Decimal("0.01"))
                rows.append(PositionCreate(
                    ticker=ticker,
                    account=account,
                    quantity=str(rng.randint(1, 30)),
                    cost_basis=str(cost),
                ))
    return rows


def main() -> int:
    data_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    ctx = AppContext(data_dir=data_dir)
    ctx.initialize()
    try:
        rows = build_rows(random.Random(42))
        change = ctx.portfolio.import_positions(rows)
        print(f"Imported {len(change.positions)} lots into {ctx.data_dir}")
        print("=" * 60)

        view = change.portfolio
        for h in view.holdings:
            print(
                f"{h.ticker:<6} qty={h.total_quantity:>8} "
                f"value=${h.market_value:>12,.2f} pnl=${h.pnl_dollar:>10,.2f}"
            )
        print("=" * 60)
        print(f"Total value: ${view.totals.total_value:,.2f}")
        print(f"Total P&L:   ${view.totals.total_pnl:,.2f} ({view.totals.total_pnl_percent:.2f}%)")
        if view.is_stale:
            print(f"Prices are stale: {view.refresh_error}")
    finally:
        ctx.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
