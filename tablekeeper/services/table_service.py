"""Table inventory service."""

import logging

from sqlalchemy import select

from tablekeeper.database import Database, ReservationRecord, TableRecord, get_database
from tablekeeper.errors import ConflictError, NotFoundError
from tablekeeper.models.reservation import ReservationStatus
from tablekeeper.models.table import TableCreate, TableRead, TableStatus, TableUpdate

logger = logging.getLogger(__name__)

# Statuses that count against a table slot on a given date and time
ACTIVE_STATUSES = (
    ReservationStatus.PENDING,
    ReservationStatus.ACCEPTED,
    ReservationStatus.ARRIVED,
)

# Statuses that still claim their table; arrived is history
HOLDING_STATUSES = (ReservationStatus.PENDING, ReservationStatus.ACCEPTED)


class TableService:
    """CRUD over restaurant tables."""

    def __init__(self, database: Database | None = None) -> None:
        self.database = database or get_database()

    @staticmethod
    def _load(session, table_id: int) -> TableRecord:
        table = session.get(TableRecord, table_id)
        if table is None:
            msg = f"Table {table_id} not found"
            raise NotFoundError(msg)
        return table

    def list_tables(self) -> list[TableRead]:
        with self.database.session() as session:
            tables = session.scalars(select(TableRecord).order_by(TableRecord.number))
            return [TableRead.model_validate(t) for t in tables]

    def get_table(self, table_id: int) -> TableRead:
        with self.database.session() as session:
            return TableRead.model_validate(self._load(session, table_id))

    def create_table(self, data: TableCreate) -> TableRead:
        with self.database.session() as session:
            existing = session.scalar(
                select(TableRecord).where(TableRecord.number == data.number)
            )
            if existing is not None:
                msg = f"Table number {data.number} already exists"
                raise ConflictError(msg)

            table = TableRecord(
                number=data.number,
                capacity=data.capacity,
                status=TableStatus.AVAILABLE,
            )
            session.add(table)
            session.flush()
            logger.info(f"Created table {table.number} ({table.capacity} seats)")
            return TableRead.model_validate(table)

    def update_table(self, table_id: int, data: TableUpdate) -> TableRead:
        with self.database.session() as session:
            table = self._load(session, table_id)
            if data.capacity is not None:
                table.capacity = data.capacity
            if data.status is not None:
                table.status = data.status
            session.flush()
            logger.info(
                f"Updated table {table.number}: capacity={table.capacity}, "
                f"status={table.status.value}"
            )
            return TableRead.model_validate(table)

    def delete_table(self, table_id: int) -> None:
        """Delete a table.

        Raises:
            NotFoundError: If the table does not exist
            ConflictError: If a pending or accepted reservation still references it
        """
        with self.database.session() as session:
            table = self._load(session, table_id)

            references = session.scalars(
                select(ReservationRecord).where(ReservationRecord.table_id == table_id)
            ).all()
            active = [r for r in references if r.status in HOLDING_STATUSES]
            if active:
                msg = (
                    f"Table {table.number} is assigned to {len(active)} active "
                    "reservation(s) and cannot be deleted"
                )
                raise ConflictError(msg)

            # Cancelled and arrived reservations keep their history but lose the reference
            for reservation in references:
                reservation.table_id = None

            session.delete(table)
            logger.info(f"Deleted table {table.number}")
