"""SQLAlchemy implementation of PositionRepository."""

from decimal import Decimal
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session

from portfolio_tracker.core.timezone import now_eastern, to_eastern
from portfolio_tracker.domain.models import PositionRecord
from portfolio_tracker.repositories.sqlalchemy.orm_models import PositionORM


class SqlAlchemyPositionRepository:
    """SQLAlchemy-backed ledger repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, record: PositionRecord) -> PositionRecord:
        """Persist a new record."""
        orm_pos = self._to_orm(record)
        self._db.add(orm_pos)
        self._db.commit()
        self._db.refresh(orm_pos)
        return self._to_domain(orm_pos)

    def create_many(self, records: list[PositionRecord]) -> list[PositionRecord]:
        """Persist all records in a single transaction."""
        orm_positions = [self._to_orm(r) for r in records]
        try:
            self._db.add_all(orm_positions)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        for orm_pos in orm_positions:
            self._db.refresh(orm_pos)
        return [self._to_domain(p) for p in orm_positions]

    def get_by_id(self, position_id: int) -> Optional[PositionRecord]:
        """Retrieve record by ID."""
        orm_pos = self._db.query(PositionORM).filter(
            PositionORM.id == position_id
        ).first()
        return self._to_domain(orm_pos) if orm_pos else None

    def update(self, record: PositionRecord) -> PositionRecord:
        """Update an existing record."""
        orm_pos = self._apply(record)
        self._db.commit()
        self._db.refresh(orm_pos)
        return self._to_domain(orm_pos)

    def merge(self, survivor: PositionRecord, removed_ids: list[int]) -> PositionRecord:
        """
        Save the merged survivor and delete the absorbed lots.

        Both writes share one transaction: on any failure neither is kept,
        so the ledger never holds the merged total next to the originals.
        """
        try:
            orm_pos = self._apply(survivor)
            if removed_ids:
                self._db.query(PositionORM).filter(
                    PositionORM.id.in_(removed_ids)
                ).delete(synchronize_session=False)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        self._db.refresh(orm_pos)
        return self._to_domain(orm_pos)

    def _apply(self, record: PositionRecord) -> PositionORM:
        """Copy domain fields onto the stored row without committing."""
        orm_pos = self._db.query(PositionORM).filter(
            PositionORM.id == record.id
        ).first()
        if not orm_pos:
            raise ValueError(f"Position not found: {record.id}")

        orm_pos.ticker = record.ticker
        orm_pos.account = record.account
        orm_pos.quantity = record.quantity
        orm_pos.cost_basis = record.cost_basis
        orm_pos.position_type = record.position_type
        orm_pos.updated_at = record.updated_at or now_eastern()
        return orm_pos

    def delete(self, position_id: int) -> None:
        """Delete a single record."""
        self._db.query(PositionORM).filter(
            PositionORM.id == position_id
        ).delete()
        self._db.commit()

    def delete_many(self, position_ids: list[int]) -> None:
        """Delete several records in one transaction."""
        if not position_ids:
            return
        self._db.query(PositionORM).filter(
            PositionORM.id.in_(position_ids)
        ).delete(synchronize_session=False)
        self._db.commit()

    def delete_all(self) -> int:
        """Delete every record in the ledger."""
        count = self._db.query(PositionORM).delete()
        self._db.commit()
        return count

    def list_all(self) -> list[PositionRecord]:
        """List all records ordered by id."""
        orm_positions = self._db.query(PositionORM).order_by(PositionORM.id).all()
        return [self._to_domain(p) for p in orm_positions]

    def query(
        self,
        ticker: Optional[str] = None,
        account: Optional[str] = None,
    ) -> list[PositionRecord]:
        """List records filtered by ticker and/or account."""
        query = self._db.query(PositionORM)

        conditions = []
        if ticker is not None:
            conditions.append(PositionORM.ticker == ticker)
        if account is not None:
            conditions.append(PositionORM.account == account)

        if conditions:
            query = query.filter(and_(*conditions))

        query = query.order_by(PositionORM.id)
        return [self._to_domain(p) for p in query.all()]

    @staticmethod
    def _to_orm(record: PositionRecord) -> PositionORM:
        """Convert domain model to ORM model."""
        return PositionORM(
            ticker=record.ticker,
            account=record.account,
            quantity=record.quantity,
            cost_basis=record.cost_basis,
            position_type=record.position_type,
            created_at=record.created_at or now_eastern(),
        )

    @staticmethod
    def _to_domain(orm: PositionORM) -> PositionRecord:
        """Convert ORM model to domain model."""
        return PositionRecord(
            id=orm.id,
            ticker=orm.ticker,
            account=orm.account,
            quantity=Decimal(str(orm.quantity)) if orm.quantity else Decimal("0"),
            cost_basis=Decimal(str(orm.cost_basis)) if orm.cost_basis else Decimal("0"),
            position_type=orm.position_type,
            created_at=to_eastern(orm.created_at) if orm.created_at else None,
            updated_at=to_eastern(orm.updated_at) if orm.updated_at else None,
        )
