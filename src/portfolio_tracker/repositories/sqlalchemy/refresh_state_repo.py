"""SQLAlchemy implementation of RefreshStateRepository."""

from typing import Optional

from sqlalchemy.orm import Session

from portfolio_tracker.core.timezone import to_eastern
from portfolio_tracker.domain.models import RefreshMarker
from portfolio_tracker.repositories.sqlalchemy.orm_models import RefreshStateORM


class SqlAlchemyRefreshStateRepository:
    """SQLAlchemy-backed store for refresh markers."""

    def __init__(self, db: Session):
        self._db = db

    def get(self, name: str) -> Optional[RefreshMarker]:
        """Get a marker by name."""
        orm_marker = (
            self._db.query(RefreshStateORM)
            .filter(RefreshStateORM.name == name)
            .populate_existing()
            .first()
        )
        if not orm_marker:
            return None
        return RefreshMarker(
            name=orm_marker.name,
            refreshed_at=to_eastern(orm_marker.refreshed_at) if orm_marker.refreshed_at else None,
        )

    def set(self, marker: RefreshMarker) -> RefreshMarker:
        """Insert or update a marker."""
        orm_marker = (
            self._db.query(RefreshStateORM)
            .filter(RefreshStateORM.name == marker.name)
            .first()
        )
        if orm_marker:
            orm_marker.refreshed_at = marker.refreshed_at
        else:
            orm_marker = RefreshStateORM(name=marker.name, refreshed_at=marker.refreshed_at)
            self._db.add(orm_marker)
        self._db.commit()
        return marker
