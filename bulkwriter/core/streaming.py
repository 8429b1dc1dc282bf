"""
Bulk Writer Streaming Strategy

Streams a batch into MySQL with ``LOAD DATA LOCAL INFILE``.

A producer thread encodes rows as CSV records into an OS pipe while the
``LOAD DATA`` statement reads the other end. The statement names the read
end by its ``/dev/fd`` path, so each batch carries its own stream and no
process-wide registry is involved. The pipe buffer is the only
backpressure: the producer blocks until the driver reads.
"""

import csv
import itertools
import logging
import os
import threading
from typing import Iterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from bulkwriter.core.encoding import encode_row, WIRE_ENCODING, WIRE_ERRORS
from bulkwriter.core.exceptions import BulkWriterError, EncodingError, StatementError
from bulkwriter.core.types import Row
from bulkwriter.core.utils import quote_identifier
from bulkwriter.core.writer import BatchWriter, disable_foreign_key_checks, execute_raw

logger = logging.getLogger(__name__)

LOAD_DATA_TEMPLATE = (
    "LOAD DATA CONCURRENT LOCAL INFILE '{source}' INTO TABLE {table} "
    "FIELDS TERMINATED BY ',' ENCLOSED BY '\"' ESCAPED BY '\"' ({columns})"
)


def build_load_data_statement(table: str, columns: List[str], source: str) -> str:
    """Build the ``LOAD DATA`` statement reading from ``source``."""
    return LOAD_DATA_TEMPLATE.format(
        source=source.replace("\\", "\\\\").replace("'", "\\'"),
        table=quote_identifier(table),
        columns=",".join(quote_identifier(c) for c in columns),
    )


def pipe_source_path(read_fd: int) -> str:
    """Path under which the driver can open the pipe's read end."""
    return f"/dev/fd/{read_fd}"


class _RowProducer:
    """Writes up to ``cap`` encoded rows into the write end of a pipe."""

    def __init__(self, table: str, columns: List[str], rows: Iterator[Row], cap: int, write_fd: int):
        self.table = table
        self.columns = columns
        self.rows = rows
        self.cap = cap
        self.write_fd = write_fd
        self.written = 0
        self.error: Optional[Exception] = None

    def run(self) -> None:
        try:
            with os.fdopen(self.write_fd, "w", encoding=WIRE_ENCODING,
                           errors=WIRE_ERRORS, newline="") as out:
                writer = csv.writer(out, lineterminator="\n")
                for row in itertools.islice(self.rows, self.cap):
                    writer.writerow(encode_row(row, self.columns))
                    self.written += 1
        except BrokenPipeError:
            # The statement stopped reading; its own error is reported.
            logger.debug("Reader of %s stream closed after %d rows", self.table, self.written)
        except EncodingError as e:
            logger.error("Error encoding record for %s: %s", self.table, e.message)
            self.error = e
        except Exception as e:
            logger.exception("Row producer for %s failed", self.table)
            self.error = e


class StreamingBulkWriter(BatchWriter):
    """Loads each batch through ``LOAD DATA CONCURRENT LOCAL INFILE``."""

    def write_batch(self, conn, table: str, columns: List[str], rows: Iterator[Row], cap: int) -> int:
        read_fd, write_fd = os.pipe()
        producer = _RowProducer(table, columns, rows, cap, write_fd)
        thread = threading.Thread(
            target=producer.run,
            name=f"bulkwriter-producer-{table}",
            daemon=True,
        )
        thread.start()

        try:
            disable_foreign_key_checks(conn)
            statement = build_load_data_statement(table, columns, pipe_source_path(read_fd))
            logger.debug("LOAD DATA: %s", statement)
            try:
                execute_raw(conn, statement)
            except SQLAlchemyError as e:
                raise StatementError(f"Failed to execute LOAD DATA for table '{table}'", str(e))
        finally:
            # Closing the read end unblocks a producer the statement never drained.
            os.close(read_fd)
            thread.join()

        if producer.error is not None:
            if isinstance(producer.error, BulkWriterError):
                raise producer.error
            raise StatementError(
                f"Failed to stream rows for table '{table}'", str(producer.error)
            )

        return producer.written
