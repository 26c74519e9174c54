"""
Table Registry Domain Service.

Owns table occupancy: a table points at no more than one active order and
an order sits on no more than one table. Every occupancy write is a
conditional UPDATE on the expected current_order_id, so two writers racing
for the same row cannot both win; the unique index on current_order_id is
the last line of defence.

The ``*_in_tx`` methods run inside a caller's transaction and only collect
events. The public methods own their transaction and publish after commit.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from rest_api.models import Order, Table
from rest_api.repositories import get_order_repository, get_table_repository
from rest_api.services.events import (
    EventBatch,
    EventPublisher,
    NotificationEvent,
    NullPublisher,
)
from shared.config.constants import TableStatus
from shared.config.logging import get_logger
from shared.infrastructure.db import atomic
from shared.utils.exceptions import (
    ConflictError,
    DuplicateEntityError,
    InvalidStateError,
    OrderNotFoundError,
    TableNotFoundError,
    TableOccupiedError,
    TargetOccupiedError,
    ValidationError,
)
from shared.utils.schemas import TableCreate

logger = get_logger(__name__)


class TableRegistry:
    """
    Domain service for table occupancy.

    Usage:
        registry = TableRegistry(db, publisher)
        registry.transfer(order_id=7, from_table_id=1, to_table_id=2)
    """

    def __init__(self, db: Session, publisher: EventPublisher | None = None):
        self._db = db
        self._publisher = publisher or NullPublisher()
        self._tables = get_table_repository(db)
        self._orders = get_order_repository(db)

    # =========================================================================
    # Queries / admin
    # =========================================================================

    def list_tables(self) -> list[Table]:
        return list(self._tables.find_all())

    def get_table(self, table_id: int) -> Table:
        table = self._tables.find_by_id(table_id)
        if table is None:
            raise TableNotFoundError(table_id)
        return table

    def create_table(self, data: TableCreate) -> Table:
        if self._tables.find_by_number(data.number) is not None:
            raise DuplicateEntityError("Table", data.number)
        table = Table(
            number=data.number,
            name=data.name,
            section=data.section,
            capacity=data.capacity,
            status=TableStatus.AVAILABLE.value,
        )
        with atomic(self._db):
            self._db.add(table)
        self._db.refresh(table)
        logger.info("Table created", table_id=table.id, number=table.number)
        return table

    # =========================================================================
    # Transaction-scoped primitives
    # =========================================================================

    def _lock_table(self, table_id: int) -> Table:
        table = self._tables.find_for_update(table_id)
        if table is None:
            raise TableNotFoundError(table_id)
        return table

    def assign_in_tx(self, table_id: int, order_id: int, events: EventBatch) -> Table:
        """
        Occupy ``table_id`` with ``order_id`` inside the caller's transaction.

        Re-assigning the same order is a no-op.

        Raises:
            TableNotFoundError: Unknown table.
            InvalidStateError: Table is under maintenance.
            TableOccupiedError: Table holds a different active order.
        """
        table = self._lock_table(table_id)
        old_status = table.status
        previous_order_id = table.current_order_id

        if table.status == TableStatus.MAINTENANCE.value:
            raise InvalidStateError("Table", table.status, table_id=table_id)

        if not self._tables.occupy_if_free(table_id, order_id):
            raise TableOccupiedError(
                table_id,
                current_order_id=previous_order_id,
                requested_order_id=order_id,
            )

        table = self._tables.reload(table_id)
        if previous_order_id != order_id:
            events.add(
                NotificationEvent.table_status_changed(
                    table_id, old_status, table.status, order_id=order_id
                )
            )
        return table

    def release_in_tx(
        self,
        table_id: int,
        events: EventBatch,
        order_id: int | None = None,
    ) -> Table:
        """
        Free ``table_id`` inside the caller's transaction.

        Releasing a table that is already free is a no-op. With ``order_id``
        the table is only freed while it still holds that order.
        """
        table = self._lock_table(table_id)
        old_status = table.status
        previous_order_id = table.current_order_id

        if previous_order_id is None and old_status != TableStatus.OCCUPIED.value:
            return table

        if not self._tables.vacate(table_id, order_id=order_id):
            logger.debug(
                "Table not released, held by another order",
                table_id=table_id,
                current_order_id=previous_order_id,
                order_id=order_id,
            )
            return table

        table = self._tables.reload(table_id)
        events.add(
            NotificationEvent.table_status_changed(
                table_id, old_status, table.status, order_id=previous_order_id
            )
        )
        return table

    # =========================================================================
    # Public operations (own their transaction)
    # =========================================================================

    def _lock_active_order(self, order_id: int) -> Order:
        order = self._orders.find_for_update(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.is_terminal:
            raise InvalidStateError("Order", order.status, order_id=order_id)
        return order

    def assign(self, table_id: int, order_id: int) -> Table:
        """Seat an active order that has no table yet at ``table_id``."""
        events = EventBatch()
        with atomic(self._db):
            order = self._lock_active_order(order_id)
            if order.table_id is not None and order.table_id != table_id:
                raise ConflictError(
                    f"Order {order_id} is already on table {order.table_id}; transfer it instead",
                    order_id=order_id,
                    table_id=order.table_id,
                )
            table = self.assign_in_tx(table_id, order_id, events)
            order.table_id = table_id

        logger.info("Table assigned", table_id=table_id, order_id=order_id)
        events.flush(self._publisher)
        return table

    def release(self, table_id: int) -> Table:
        """Free a table. Idempotent."""
        events = EventBatch()
        with atomic(self._db):
            table = self.release_in_tx(table_id, events)

        if events:
            logger.info("Table released", table_id=table_id)
        events.flush(self._publisher)
        return table

    def transfer(self, order_id: int, from_table_id: int, to_table_id: int) -> Order:
        """
        Move an active order from one table to another, atomically.

        Both table rows are locked in id order, then the source is freed only
        if it still holds the order and the destination is taken only if it is
        free. Either step failing rolls back the whole transfer.

        Raises:
            ValidationError: Source and destination are the same table.
            OrderNotFoundError / TableNotFoundError: Unknown ids.
            ConflictError: The order is no longer on the source table.
            TargetOccupiedError: The destination holds another active order.
        """
        if from_table_id == to_table_id:
            raise ValidationError(
                "Source and destination tables must differ",
                table_id=from_table_id,
            )

        events = EventBatch()
        with atomic(self._db):
            order = self._lock_active_order(order_id)
            tables = self._tables.find_many_for_update([from_table_id, to_table_id])
            for table_id in (from_table_id, to_table_id):
                if table_id not in tables:
                    raise TableNotFoundError(table_id)

            source, target = tables[from_table_id], tables[to_table_id]
            source_status, target_status = source.status, target.status

            if target.status == TableStatus.MAINTENANCE.value:
                raise InvalidStateError("Table", target.status, table_id=to_table_id)

            if not self._tables.vacate(from_table_id, order_id=order_id):
                raise ConflictError(
                    f"Order {order_id} is not on table {from_table_id}",
                    order_id=order_id,
                    table_id=from_table_id,
                    current_order_id=source.current_order_id,
                )

            if target.current_order_id not in (None, order_id) or not self._tables.occupy_if_free(
                to_table_id, order_id
            ):
                raise TargetOccupiedError(
                    to_table_id,
                    current_order_id=target.current_order_id,
                    order_id=order_id,
                )

            order.table_id = to_table_id
            source = self._tables.reload(from_table_id)
            target = self._tables.reload(to_table_id)
            events.add(
                NotificationEvent.table_status_changed(
                    from_table_id, source_status, source.status, order_id=order_id
                )
            )
            events.add(
                NotificationEvent.table_status_changed(
                    to_table_id, target_status, target.status, order_id=order_id
                )
            )

        self._db.refresh(order)
        logger.info(
            "Order transferred",
            order_id=order_id,
            from_table_id=from_table_id,
            to_table_id=to_table_id,
        )
        events.flush(self._publisher)
        return order
