"""SQLAlchemy ORM model definitions."""

from decimal import Decimal

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Index,
    Numeric,
    Enum as SqlEnum,
)

from portfolio_tracker.repositories.sqlalchemy.database import Base
from portfolio_tracker.core.timezone import now_eastern
from portfolio_tracker.domain.models.enums import PositionType


class PositionORM(Base):
    """SQLAlchemy model for PositionRecord (ledger entry)."""

    __tablename__ = "positions"
    __table_args__ = (Index("ix_positions_ticker_account", "ticker", "account"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticker = Column(String(20), nullable=False)
    account = Column(String(255), nullable=False)
    quantity = Column(Numeric(precision=18, scale=8), nullable=False, default=Decimal("0"))
    cost_basis = Column(Numeric(precision=18, scale=8), nullable=False, default=Decimal("0"))
    position_type = Column(SqlEnum(PositionType), nullable=True)
    created_at = Column(DateTime, nullable=False, default=now_eastern)
    updated_at = Column(DateTime, nullable=True)


class PriceCacheORM(Base):
    """SQLAlchemy model for PriceCacheEntry (written by the refresh job)."""

    __tablename__ = "price_cache"

    ticker = Column(String(20), primary_key=True)
    price = Column(Numeric(precision=18, scale=4), nullable=False, default=Decimal("0"))
    last_refreshed_at = Column(DateTime, nullable=True)


class RefreshStateORM(Base):
    """SQLAlchemy model for RefreshMarker."""

    __tablename__ = "refresh_state"

    name = Column(String(64), primary_key=True)
    refreshed_at = Column(DateTime, nullable=True)
