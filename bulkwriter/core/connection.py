"""
Bulk Writer Connection Setup

Creates the SQLAlchemy engine a writer session runs on.
"""

import logging
from typing import Optional, Union

from pymysql.constants import CLIENT
from sqlalchemy import create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from bulkwriter.core.exceptions import ValidationError
from bulkwriter.core.types import ConnOptions
from bulkwriter.core.utils import validate_non_negative_int

logger = logging.getLogger(__name__)

MULTI_STATEMENTS_HELP = "https://pymysql.readthedocs.io/en/latest/modules/connections.html"


def _parse_url(connection_url: Union[str, URL]) -> URL:
    try:
        return make_url(connection_url)
    except ArgumentError as e:
        raise ValidationError("Invalid connection URL", str(e))


def is_supported(connection_url: Union[str, URL]) -> bool:
    """Check if the connection URL points at a MySQL server."""
    if not connection_url:
        return False
    try:
        url = _parse_url(connection_url)
    except ValidationError:
        return False
    return url.get_backend_name() == "mysql"


def _client_flag(url: URL) -> int:
    raw = url.query.get("client_flag", 0)
    if isinstance(raw, tuple):
        raw = raw[-1]
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid client_flag in connection URL: {raw}")


def create_writer_engine(connection_url: Union[str, URL], options: Optional[ConnOptions] = None):
    """Create an engine for bulk writing.

    ``LOAD DATA LOCAL INFILE`` support is always switched on in the driver
    and the ``MULTI_STATEMENTS`` client flag is forced, with a warning when
    the URL did not ask for it.

    Args:
        connection_url: SQLAlchemy MySQL URL (``mysql+pymysql://...``)
        options: Pool limits; defaults to :class:`ConnOptions`

    Returns:
        SQLAlchemy Engine
    """
    options = options or ConnOptions()
    url = _parse_url(connection_url)
    if url.get_backend_name() != "mysql":
        raise ValidationError(
            f"Unsupported database '{url.get_backend_name()}'",
            "Only MySQL connection URLs are supported"
        )

    max_conns = validate_non_negative_int(options.max_conns, "max_conns")
    max_idle = validate_non_negative_int(options.max_idle_conns, "max_idle_conns")
    lifetime = validate_non_negative_int(options.max_conn_lifetime, "max_conn_lifetime")

    client_flag = _client_flag(url)
    if not client_flag & CLIENT.MULTI_STATEMENTS:
        logger.warning("MySQL writer forcing multi statements! (see %s)", MULTI_STATEMENTS_HELP)
        client_flag |= CLIENT.MULTI_STATEMENTS
    url = url.update_query_dict({"client_flag": str(client_flag)})

    if max_conns == 0:
        pool_size = max_idle
        max_overflow = -1
    else:
        pool_size = min(max_idle, max_conns) if max_idle else 1
        max_overflow = max_conns - pool_size

    return create_engine(
        url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_recycle=lifetime if lifetime > 0 else -1,
        connect_args={"local_infile": True},
    )
