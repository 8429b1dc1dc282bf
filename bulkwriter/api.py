"""
Bulk Writer API - Programmatic interface for the bulk writer

This module provides functions for loading tables into MySQL without
dealing with sessions, engines and exceptions directly. Every function
returns :class:`OperationResult` objects; failures of one table never stop
the process or the other tables.
"""

import logging
from typing import Dict, List, Optional, Union

from bulkwriter.core.exceptions import TeardownError
from bulkwriter.core.readers import RowReader
from bulkwriter.core.session import WriterSession
from bulkwriter.core.types import ConnOptions, OperationResult, WriteStrategy
from bulkwriter.core.utils import (
    create_success_result, handle_exception, process_in_parallel,
    validate_positive_int, validate_required_params
)

logger = logging.getLogger(__name__)


def _table_result(session: WriterSession, table: str) -> OperationResult:
    try:
        stats = session.write_table(table)
    except Exception as e:
        logger.error("Writing table %s failed: %s", table, e)
        return handle_exception(e, f"write of table '{table}'")

    return create_success_result(
        f"Successfully wrote {stats.rows_written} records to table '{table}'",
        data={
            'transactions': stats.transactions,
            'batch_sizes': stats.batch_sizes,
        },
        record_count=stats.rows_written
    )


def _close_session(session: WriterSession) -> Optional[OperationResult]:
    try:
        session.close()
    except TeardownError as e:
        logger.error("%s: %s", e.message, e.details)
        return handle_exception(e, "session close")
    return None


def dump_table(
    connection_url: str,
    reader: RowReader,
    table: str,
    strategy: Union[str, WriteStrategy] = WriteStrategy.LOAD_DATA,
    batch_size: int = 1000,
    conn_options: Optional[ConnOptions] = None
) -> OperationResult:
    """
    Write one table into a MySQL database.

    Args:
        connection_url: Target MySQL connection URL
        reader: Row reader supplying columns and rows
        table: Table name
        strategy: 'load_data' or 'replace'
        batch_size: Maximum rows per transaction
        conn_options: Connection pool settings

    Returns:
        OperationResult with the number of records written. A teardown
        failure turns a successful write into a failed result.
    """
    results = dump_tables(
        connection_url, reader, [table],
        strategy=strategy, batch_size=batch_size, conn_options=conn_options
    )
    return results[table]


def dump_tables(
    connection_url: str,
    reader: RowReader,
    tables: List[str],
    strategy: Union[str, WriteStrategy] = WriteStrategy.LOAD_DATA,
    batch_size: int = 1000,
    conn_options: Optional[ConnOptions] = None,
    parallel_workers: int = 1
) -> Dict[str, OperationResult]:
    """
    Write several tables through one writer session.

    Args:
        connection_url: Target MySQL connection URL
        reader: Row reader supplying columns and rows
        tables: Table names; must be unique
        strategy: 'load_data' or 'replace'
        batch_size: Maximum rows per transaction
        conn_options: Connection pool settings
        parallel_workers: Number of tables written at the same time

    Returns:
        Dictionary mapping table name to its OperationResult
    """
    try:
        validate_required_params(
            {'connection_url': connection_url, 'reader': reader, 'tables': tables},
            ['connection_url', 'reader', 'tables']
        )
        workers = validate_positive_int(parallel_workers, "parallel_workers")
        session = WriterSession.from_url(
            connection_url, reader,
            strategy=strategy, batch_size=batch_size, conn_options=conn_options
        )
    except Exception as e:
        failure = handle_exception(e, "writer session setup")
        return {table: failure for table in tables or []}

    return _write_tables(session, tables, workers)


def dump_tables_from_settings(
    connection_url: str,
    reader: RowReader,
    tables: List[str],
    section: str = "writer",
    settings_path: Optional[str] = None,
    parallel_workers: int = 1
) -> Dict[str, OperationResult]:
    """
    Write several tables using the options stored in ``settings.ini``.

    Strategy, batch size and pool limits come from ``section`` of the
    settings file under ``BULKWRITER_HOME`` (or ``settings_path``).

    Args:
        connection_url: Target MySQL connection URL
        reader: Row reader supplying columns and rows
        tables: Table names; must be unique
        section: Settings section holding the writer options
        settings_path: Settings file overriding the default location
        parallel_workers: Number of tables written at the same time

    Returns:
        Dictionary mapping table name to its OperationResult. An unreadable
        or invalid settings file fails every table.
    """
    try:
        validate_required_params(
            {'connection_url': connection_url, 'reader': reader, 'tables': tables},
            ['connection_url', 'reader', 'tables']
        )
        workers = validate_positive_int(parallel_workers, "parallel_workers")
        session = WriterSession.from_settings(
            connection_url, reader, section=section, path=settings_path
        )
    except Exception as e:
        failure = handle_exception(e, "writer session setup")
        return {table: failure for table in tables or []}

    return _write_tables(session, tables, workers)


def _write_tables(session: WriterSession, tables: List[str], workers: int) -> Dict[str, OperationResult]:
    unique_tables = list(dict.fromkeys(tables))
    results = process_in_parallel(
        lambda table: _table_result(session, table), unique_tables, workers
    )
    by_table = dict(zip(unique_tables, results))

    teardown = _close_session(session)
    if teardown is not None:
        for table, result in by_table.items():
            if result.success:
                by_table[table] = OperationResult(
                    success=False,
                    message=teardown.message,
                    data=result.data,
                    record_count=result.record_count,
                    error_details=teardown.error_details
                )

    return by_table
