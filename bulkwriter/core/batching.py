"""
Bulk Writer Batch Coordination

Drains a table's row stream in capped batches, one transaction per batch.

The loop keeps going while a batch writes exactly ``batch_size`` rows. When
the row count is an exact multiple of ``batch_size`` this means one more
transaction is opened after the last full batch; it reads nothing, writes
nothing and ends the loop. That trailing empty transaction is kept on
purpose and shows up as a final ``0`` in :attr:`BatchStats.batch_sizes`.
"""

import logging
import time
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from bulkwriter.core.exceptions import (
    BulkWriterError, CommitError, SetupError, StatementError
)
from bulkwriter.core.readers import RowReader
from bulkwriter.core.types import BatchStats, Row
from bulkwriter.core.utils import validate_positive_int
from bulkwriter.core.writer import BatchWriter

logger = logging.getLogger(__name__)


class BatchCoordinator:
    """Runs a :class:`BatchWriter` over a row stream until it is exhausted."""

    def __init__(self, engine, reader: RowReader, writer: BatchWriter, batch_size: int):
        self.engine = engine
        self.reader = reader
        self.writer = writer
        self.batch_size = validate_positive_int(batch_size, "batch_size")

    def get_columns(self, table: str) -> List[str]:
        try:
            columns = list(self.reader.get_columns(table))
        except BulkWriterError:
            raise
        except Exception as e:
            raise SetupError(f"Failed to get columns for table '{table}'", str(e))
        if not columns:
            raise SetupError(f"Table '{table}' has no columns")
        return columns

    def write_table(self, table: str, rows: Optional[Iterable[Row]] = None) -> BatchStats:
        """Write every row of ``table`` in batches.

        Args:
            table: Target table name
            rows: Row stream; defaults to ``reader.rows(table)``

        Returns:
            BatchStats with the size of every attempted transaction

        Raises:
            SetupError: columns could not be read, or a connection or transaction
                could not be opened
            StatementError: a batch failed and was rolled back
            EncodingError: a row held an unsupported value; the batch was rolled back
            CommitError: a batch failed to commit
        """
        columns = self.get_columns(table)
        if rows is None:
            rows = self.reader.rows(table)
        row_iter = iter(rows)

        stats = BatchStats(table=table, batch_size=self.batch_size)
        start = time.perf_counter()

        try:
            connection = self.engine.connect()
        except SQLAlchemyError as e:
            raise SetupError("Failed to open connection", str(e))

        with connection as conn:
            inserted = self.batch_size
            while inserted == self.batch_size:
                inserted = self._write_batch(conn, table, columns, row_iter)
                stats.batch_sizes.append(inserted)

        logger.info(
            "Wrote %d rows to %s in %d transactions (%.3fs)",
            stats.rows_written, table, stats.transactions, time.perf_counter() - start
        )
        return stats

    def _write_batch(self, conn, table: str, columns: List[str], rows) -> int:
        try:
            txn = conn.begin()
        except SQLAlchemyError as e:
            raise SetupError("Failed to open transaction", str(e))

        try:
            inserted = self.writer.write_batch(conn, table, columns, rows, self.batch_size)
        except Exception as e:
            self._rollback(txn, table)
            if isinstance(e, BulkWriterError):
                raise
            raise StatementError(f"Failed to insert rows into '{table}'", str(e))

        logger.debug("Inserted %d rows into %s", inserted, table)

        try:
            txn.commit()
        except SQLAlchemyError as e:
            raise CommitError(f"Failed to commit transaction for '{table}'", str(e))

        return inserted

    @staticmethod
    def _rollback(txn, table: str) -> None:
        try:
            txn.rollback()
        except SQLAlchemyError as e:
            logger.error("Failed to rollback batch for %s: %s", table, e)
