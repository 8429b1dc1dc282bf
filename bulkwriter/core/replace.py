"""
Bulk Writer Replace Strategy

Builds a single ``replace into ... values (...),(...)`` statement in memory.

Field values are joined as they are: no quoting and no escaping, and the
table name is not quoted either. Every value coming from the row reader
must already be a safe SQL literal (for example ``'abc'`` or ``42``).
A plain text value such as ``a,b`` ends up as two SQL values.
"""

import io
import logging
from typing import Iterator, List

from sqlalchemy.exc import SQLAlchemyError

from bulkwriter.core.encoding import encode_row
from bulkwriter.core.exceptions import StatementError
from bulkwriter.core.types import Row
from bulkwriter.core.writer import BatchWriter, disable_foreign_key_checks, execute_raw

logger = logging.getLogger(__name__)

# Soft size hint for the statement buffer, never enforced.
REPLACE_BUFFER_HINT = 1 * 1024 * 1024 + 1024


class BufferedReplaceWriter(BatchWriter):
    """Writes each batch with one multi-row ``REPLACE`` statement."""

    def __init__(self, buffer_hint: int = REPLACE_BUFFER_HINT):
        self.buffer_hint = buffer_hint

    def build_statement(self, table: str, columns: List[str], rows: Iterator[Row], cap: int):
        """Return ``(statement, row_count)`` for up to ``cap`` rows.

        ``statement`` is ``None`` when there were no rows.
        """
        buf = io.StringIO()
        buf.write(f"replace into {table} values ")

        inserted = 0
        over_hint = False
        for row in rows:
            if inserted != 0:
                buf.write(",")
            buf.write("(" + ",".join(encode_row(row, columns)) + ")")
            inserted += 1

            if not over_hint and buf.tell() > self.buffer_hint:
                over_hint = True
                logger.warning(
                    "REPLACE statement for %s passed %d characters after %d rows",
                    table, self.buffer_hint, inserted
                )
            if inserted >= cap:
                break

        if inserted == 0:
            return None, 0
        return buf.getvalue(), inserted

    def write_batch(self, conn, table: str, columns: List[str], rows: Iterator[Row], cap: int) -> int:
        statement, inserted = self.build_statement(table, columns, rows, cap)
        if statement is None:
            return 0

        disable_foreign_key_checks(conn)
        try:
            execute_raw(conn, statement)
        except SQLAlchemyError as e:
            raise StatementError(f"Failed to execute REPLACE for table '{table}'", str(e))

        return inserted
