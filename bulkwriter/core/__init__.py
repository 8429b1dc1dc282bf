"""
Bulk Writer Core Module

Batched MySQL table writers: value encoding, the LOAD DATA and REPLACE
strategies, batch coordination and writer sessions.
"""

from bulkwriter.core.batching import BatchCoordinator
from bulkwriter.core.exceptions import (
    BulkWriterError, ValidationError, ConfigError, EncodingError, DatabaseError,
    SetupError, StatementError, CommitError, GlobalModeError, TeardownError
)
from bulkwriter.core.global_mode import GlobalModeGuard
from bulkwriter.core.readers import RowReader, DataFrameReader
from bulkwriter.core.replace import BufferedReplaceWriter
from bulkwriter.core.session import WriterSession, get_batch_writer
from bulkwriter.core.streaming import StreamingBulkWriter
from bulkwriter.core.types import (
    ValueKind, WriteStrategy, ConnOptions, WriterOptions, BatchStats, OperationResult
)

__all__ = [
    'BatchCoordinator',
    'BulkWriterError',
    'ValidationError',
    'ConfigError',
    'EncodingError',
    'DatabaseError',
    'SetupError',
    'StatementError',
    'CommitError',
    'GlobalModeError',
    'TeardownError',
    'GlobalModeGuard',
    'RowReader',
    'DataFrameReader',
    'BufferedReplaceWriter',
    'WriterSession',
    'get_batch_writer',
    'StreamingBulkWriter',
    'ValueKind',
    'WriteStrategy',
    'ConnOptions',
    'WriterOptions',
    'BatchStats',
    'OperationResult',
]
