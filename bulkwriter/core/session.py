"""
Bulk Writer Session

A session ties together the target engine, the row reader, the chosen
insertion strategy and the ``local_infile`` guard. It can write any number
of tables, one after another or from several threads; each table write
checks out its own pooled connection.
"""

import logging
from typing import Iterable, Optional, Union

from bulkwriter.core.batching import BatchCoordinator
from bulkwriter.core.config import load_writer_options
from bulkwriter.core.connection import create_writer_engine
from bulkwriter.core.exceptions import GlobalModeError, TeardownError
from bulkwriter.core.global_mode import GlobalModeGuard
from bulkwriter.core.readers import RowReader
from bulkwriter.core.replace import BufferedReplaceWriter
from bulkwriter.core.streaming import StreamingBulkWriter
from bulkwriter.core.types import BatchStats, ConnOptions, Row, WriteStrategy
from bulkwriter.core.utils import validate_positive_int, validate_write_strategy
from bulkwriter.core.writer import BatchWriter

logger = logging.getLogger(__name__)


def get_batch_writer(strategy: Union[str, WriteStrategy]) -> BatchWriter:
    """Return the writer implementing a strategy."""
    strategy = validate_write_strategy(strategy)
    if strategy is WriteStrategy.REPLACE:
        return BufferedReplaceWriter()
    return StreamingBulkWriter()


class WriterSession:
    """Writes tables into one target database."""

    def __init__(
        self,
        engine,
        reader: RowReader,
        strategy: Union[str, WriteStrategy] = WriteStrategy.LOAD_DATA,
        batch_size: int = 1000,
        writer: Optional[BatchWriter] = None
    ):
        self.engine = engine
        self.reader = reader
        self.strategy = validate_write_strategy(strategy)
        self.writer = writer or get_batch_writer(self.strategy)
        self.coordinator = BatchCoordinator(engine, reader, self.writer, batch_size)
        self.guard = GlobalModeGuard(engine)

    @classmethod
    def from_url(
        cls,
        connection_url: str,
        reader: RowReader,
        strategy: Union[str, WriteStrategy] = WriteStrategy.LOAD_DATA,
        batch_size: int = 1000,
        conn_options: Optional[ConnOptions] = None
    ) -> "WriterSession":
        """Create a session with its own engine."""
        # Options are checked before any engine exists
        strategy = validate_write_strategy(strategy)
        batch_size = validate_positive_int(batch_size, "batch_size")
        engine = create_writer_engine(connection_url, conn_options)
        return cls(engine, reader, strategy=strategy, batch_size=batch_size)

    @classmethod
    def from_settings(
        cls,
        connection_url: str,
        reader: RowReader,
        section: str = "writer",
        path: Optional[str] = None
    ) -> "WriterSession":
        """Create a session using strategy, batch size and pool limits from ``settings.ini``.

        Raises:
            ConfigError: if the settings file cannot be read or holds invalid values
        """
        writer_options, conn_options = load_writer_options(section=section, path=path)
        logger.debug("Loaded writer settings from [%s]: %s, %s", section, writer_options, conn_options)
        return cls.from_url(
            connection_url, reader,
            strategy=writer_options.strategy,
            batch_size=writer_options.batch_size,
            conn_options=conn_options
        )

    @property
    def batch_size(self) -> int:
        return self.coordinator.batch_size

    def write_table(self, table: str, rows: Optional[Iterable[Row]] = None) -> BatchStats:
        """Write all rows of a table.

        The ``LOAD DATA`` strategy first makes sure the server allows local
        file imports; that check happens once per session.
        """
        if self.strategy is WriteStrategy.LOAD_DATA:
            self.guard.ensure_enabled()
        logger.info("Writing table %s using %s", table, self.strategy.value)
        return self.coordinator.write_table(table, rows)

    def close(self) -> None:
        """Restore ``local_infile`` if needed and dispose the engine.

        Raises:
            TeardownError: with every failure seen, restore and dispose alike
        """
        errors = []
        try:
            self.guard.close()
        except GlobalModeError as e:
            errors.append(e)

        try:
            self.engine.dispose()
        except Exception as e:
            errors.append(e)

        if not errors:
            return

        restore_failed = any(isinstance(e, GlobalModeError) for e in errors)
        dispose_failed = any(not isinstance(e, GlobalModeError) for e in errors)
        if restore_failed and dispose_failed:
            message = "Failed to close mysql connection and `SET GLOBAL local_infile=0`"
        elif restore_failed:
            message = "Failed `SET GLOBAL local_infile=0` please do this manually!"
        else:
            message = "Failed to close mysql connection"
        raise TeardownError(message, errors)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            self.close()
        except TeardownError as e:
            if exc_type is None:
                raise
            # Keep the original error; the teardown failure is only logged.
            logger.error("%s: %s", e.message, e.details)
        return False
