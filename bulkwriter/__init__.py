"""
Bulk Writer - batched MySQL table loading

Commits streams of rows into MySQL tables in bounded transactions using
either LOAD DATA LOCAL INFILE or multi-row REPLACE statements.
"""

from bulkwriter.api import dump_table, dump_tables, dump_tables_from_settings
from bulkwriter.core.readers import DataFrameReader, RowReader
from bulkwriter.core.session import WriterSession
from bulkwriter.core.types import ConnOptions, OperationResult, WriteStrategy
from bulkwriter.logging_setup import configure_logging

__version__ = "0.1.0"

__all__ = [
    'dump_table',
    'dump_tables',
    'dump_tables_from_settings',
    'configure_logging',
    'DataFrameReader',
    'RowReader',
    'WriterSession',
    'ConnOptions',
    'OperationResult',
    'WriteStrategy',
]
