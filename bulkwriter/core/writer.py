"""
Base class for batch insertion strategies.
"""

from abc import ABC, abstractmethod
from typing import Iterator, List

from sqlalchemy.exc import SQLAlchemyError

from bulkwriter.core.types import Row
from bulkwriter.core.exceptions import StatementError

DISABLE_FOREIGN_KEY_CHECKS = "SET foreign_key_checks = 0;"

# Statements are sent verbatim, without %-style parameter substitution.
RAW_STATEMENT_OPTIONS = {"no_parameters": True}


class BatchWriter(ABC):
    """Writes up to ``cap`` rows into a table inside an open transaction."""

    @abstractmethod
    def write_batch(
        self,
        conn,
        table: str,
        columns: List[str],
        rows: Iterator[Row],
        cap: int
    ) -> int:
        """Consume at most ``cap`` rows and return how many were written."""


def execute_raw(conn, statement: str):
    """Execute a statement on the DBAPI cursor as-is."""
    return conn.exec_driver_sql(statement, execution_options=RAW_STATEMENT_OPTIONS)


def disable_foreign_key_checks(conn) -> None:
    """Turn off foreign key checks for the current transaction's session."""
    try:
        execute_raw(conn, DISABLE_FOREIGN_KEY_CHECKS)
    except SQLAlchemyError as e:
        raise StatementError("Failed to disable foreign key checks", str(e))
