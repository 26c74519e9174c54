"""
Table Repository - Data access and conditional occupancy updates.

The occupancy writes are single conditional UPDATEs: the WHERE clause carries
the expected current_order_id, and the affected row count tells the caller
whether it won.
"""

from sqlalchemy import Select, or_, select, update
from sqlalchemy.orm import Session

from rest_api.models import Table
from shared.config.constants import TableStatus
from .base import BaseRepository


class TableRepository(BaseRepository[Table]):

    @property
    def model(self) -> type[Table]:
        return Table

    def _base_query(self) -> Select:
        return select(Table).order_by(Table.number)

    def find_by_number(self, number: int) -> Table | None:
        return self._db.scalar(select(Table).where(Table.number == number))

    def reload(self, table_id: int) -> Table | None:
        """Re-read a row after a conditional UPDATE, overwriting the cached copy."""
        return self._db.get(Table, table_id, populate_existing=True)

    def occupy_if_free(self, table_id: int, order_id: int) -> bool:
        """Point the table at ``order_id`` unless it holds a different order."""
        result = self._db.execute(
            update(Table)
            .where(
                Table.id == table_id,
                or_(Table.current_order_id.is_(None), Table.current_order_id == order_id),
            )
            .values(current_order_id=order_id, status=TableStatus.OCCUPIED.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def vacate(self, table_id: int, order_id: int | None = None) -> bool:
        """
        Clear the table. With ``order_id``, only if it still holds that order.
        """
        conditions = [Table.id == table_id]
        if order_id is not None:
            conditions.append(Table.current_order_id == order_id)
        result = self._db.execute(
            update(Table)
            .where(*conditions)
            .values(current_order_id=None, status=TableStatus.AVAILABLE.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


def get_table_repository(db: Session) -> TableRepository:
    return TableRepository(db)
