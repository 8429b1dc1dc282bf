"""
Guard for the server-wide ``local_infile`` setting.

``LOAD DATA LOCAL INFILE`` only works when the server allows it. The guard
checks the setting once, turns it on if needed and turns it back off on
close, but only when it was the one that turned it on.

The setting is global to the server. Two sessions against the same server
race on it: one may switch it off while the other is still loading. The
guard does not coordinate across sessions.
"""

import logging
import threading
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from bulkwriter.core.exceptions import GlobalModeError

logger = logging.getLogger(__name__)

READ_LOCAL_INFILE = "SELECT @@GLOBAL.local_infile"
ENABLE_LOCAL_INFILE = "SET GLOBAL local_infile=1"
DISABLE_LOCAL_INFILE = "SET GLOBAL local_infile=0"


class GlobalModeGuard:
    """Enables ``local_infile`` at most once per guard instance."""

    def __init__(self, engine):
        self._engine = engine
        self._lock = threading.Lock()
        self._checked = False
        self._error: Optional[GlobalModeError] = None
        self.restore_on_close = False

    @property
    def checked(self) -> bool:
        return self._checked

    def ensure_enabled(self) -> None:
        """Make sure the server accepts local-file imports.

        The check runs on the first call only. If it failed, every later
        call raises the same error.
        """
        with self._lock:
            if not self._checked:
                self._checked = True
                try:
                    self._enable()
                except GlobalModeError as e:
                    self._error = e
            if self._error is not None:
                raise self._error

    def _enable(self) -> None:
        try:
            with self._engine.connect() as conn:
                allowed = conn.exec_driver_sql(READ_LOCAL_INFILE).scalar()
        except SQLAlchemyError as e:
            raise GlobalModeError("Failed to read @@GLOBAL.local_infile", str(e))

        if _as_bool(allowed):
            logger.debug("local_infile already enabled on server")
            return

        try:
            with self._engine.begin() as conn:
                conn.exec_driver_sql(ENABLE_LOCAL_INFILE)
        except SQLAlchemyError as e:
            raise GlobalModeError("Failed to `SET GLOBAL local_infile=1`", str(e))

        self.restore_on_close = True
        logger.info("Enabled local_infile on server; it will be disabled on close")

    def close(self) -> None:
        """Disable ``local_infile`` again if this guard enabled it."""
        with self._lock:
            if not self.restore_on_close:
                return
            try:
                with self._engine.begin() as conn:
                    conn.exec_driver_sql(DISABLE_LOCAL_INFILE)
            except SQLAlchemyError as e:
                raise GlobalModeError(
                    "Failed `SET GLOBAL local_infile=0`, please do this manually!",
                    str(e)
                )
            self.restore_on_close = False
            logger.info("Disabled local_infile on server")


def _as_bool(value) -> bool:
    if isinstance(value, (bytes, str)):
        return value not in (b"0", "0", b"", "", "OFF", "off")
    return bool(value)
