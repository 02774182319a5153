"""SQLAlchemy implementation of PriceCacheRepository."""

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from portfolio_tracker.core.timezone import to_eastern
from portfolio_tracker.domain.models import PriceCacheEntry
from portfolio_tracker.repositories.sqlalchemy.orm_models import PriceCacheORM


class SqlAlchemyPriceCacheRepository:
    """SQLAlchemy-backed price cache repository."""

    def __init__(self, db: Session):
        self._db = db

    def get(self, ticker: str) -> Optional[PriceCacheEntry]:
        """Get the cached price for a ticker."""
        orm_entry = (
            self._db.query(PriceCacheORM)
            .filter(PriceCacheORM.ticker == ticker)
            .populate_existing()
            .first()
        )
        return self._to_domain(orm_entry) if orm_entry else None

    def get_many(self, tickers: list[str]) -> dict[str, PriceCacheEntry]:
        """Get cached prices for several tickers."""
        if not tickers:
            return {}
        orm_entries = (
            self._db.query(PriceCacheORM)
            .filter(PriceCacheORM.ticker.in_(tickers))
            .populate_existing()
            .all()
        )
        return {e.ticker: self._to_domain(e) for e in orm_entries}

    def list_all(self) -> list[PriceCacheEntry]:
        """List every cached price ordered by ticker."""
        orm_entries = (
            self._db.query(PriceCacheORM)
            .order_by(PriceCacheORM.ticker)
            .populate_existing()
            .all()
        )
        return [self._to_domain(e) for e in orm_entries]

    def upsert(self, entry: PriceCacheEntry) -> PriceCacheEntry:
        """Insert or update a cache entry."""
        orm_entry = (
            self._db.query(PriceCacheORM)
            .filter(PriceCacheORM.ticker == entry.ticker)
            .first()
        )

        if orm_entry:
            orm_entry.price = entry.price
            orm_entry.last_refreshed_at = entry.last_refreshed_at
        else:
            orm_entry = PriceCacheORM(
                ticker=entry.ticker,
                price=entry.price,
                last_refreshed_at=entry.last_refreshed_at,
            )
            self._db.add(orm_entry)

        self._db.commit()
        self._db.refresh(orm_entry)
        return self._to_domain(orm_entry)

    @staticmethod
    def _to_domain(orm: PriceCacheORM) -> PriceCacheEntry:
        """Convert ORM entry to domain model."""
        return PriceCacheEntry(
            ticker=orm.ticker,
            price=Decimal(str(orm.price)) if orm.price else Decimal("0"),
            last_refreshed_at=to_eastern(orm.last_refreshed_at) if orm.last_refreshed_at else None,
        )
