"""
Bulk Writer Core Types

Data types, enums and option containers shared across the core modules.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


Row = Dict[str, Any]


class ValueKind(Enum):
    """Kinds of field values a row can carry."""
    NULL = "null"
    TEXT = "text"
    BLOB = "blob"
    UNSUPPORTED = "unsupported"


class WriteStrategy(Enum):
    """Insertion strategies a writer session can use."""
    LOAD_DATA = "load_data"
    REPLACE = "replace"


@dataclass
class ConnOptions:
    """Connection pool settings for the target database.

    ``max_conns`` of 0 means no limit, ``max_conn_lifetime`` is in seconds
    and 0 means connections are never recycled.

    ``max_idle_conns`` becomes the pool size, capped at ``max_conns``. The
    pool always keeps at least one connection, so ``max_idle_conns=0`` with
    a non-zero ``max_conns`` still holds one idle connection.
    """
    max_conns: int = 10
    max_idle_conns: int = 2
    max_conn_lifetime: int = 0


@dataclass
class WriterOptions:
    """Batching settings for a writer session."""
    strategy: WriteStrategy = WriteStrategy.LOAD_DATA
    batch_size: int = 1000


@dataclass
class BatchStats:
    """Outcome of one table write."""
    table: str
    batch_size: int
    batch_sizes: List[int] = field(default_factory=list)

    @property
    def rows_written(self) -> int:
        return sum(self.batch_sizes)

    @property
    def transactions(self) -> int:
        return len(self.batch_sizes)


@dataclass
class OperationResult:
    """Standard result type for api operations."""
    success: bool
    message: str
    data: Optional[Any] = None
    record_count: Optional[int] = None
    error_details: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        result = {
            'success': self.success,
            'message': self.message
        }
        if self.data is not None:
            result['data'] = self.data
        if self.record_count is not None:
            result['record_count'] = self.record_count
        if self.error_details:
            result['error_details'] = self.error_details
        return result
