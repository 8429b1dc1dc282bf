"""
Bulk Writer Settings

Reads writer and connection pool settings from the ``settings.ini`` file
under ``BULKWRITER_HOME``. Example::

    [writer]
    strategy = load_data
    batch_size = 1000
    max_conns = 10
    max_idle_conns = 2
    max_conn_lifetime = 0
"""

import configparser
import os
from typing import Optional, Tuple

from bulkwriter.core.exceptions import ConfigError, ValidationError
from bulkwriter.core.types import ConnOptions, WriterOptions
from bulkwriter.core.utils import (
    validate_write_strategy, validate_positive_int, validate_non_negative_int
)
from bulkwriter.utils import variables


def load_writer_config(path: Optional[str] = None) -> configparser.ConfigParser:
    """Load the settings file; a missing file gives an empty config."""
    path = path or variables.SETTINGS_FILE
    config = configparser.ConfigParser()
    if os.path.exists(path):
        try:
            config.read(path)
        except configparser.Error as e:
            raise ConfigError(f"Error reading settings file {path}", str(e))
    return config


def load_writer_options(
    section: str = "writer",
    path: Optional[str] = None
) -> Tuple[WriterOptions, ConnOptions]:
    """Build writer and pool options from a settings section.

    Keys that are missing fall back to the dataclass defaults.
    """
    config = load_writer_config(path)
    writer_options = WriterOptions()
    conn_options = ConnOptions()
    if not config.has_section(section):
        return writer_options, conn_options

    values = config[section]
    try:
        if "strategy" in values:
            writer_options.strategy = validate_write_strategy(values["strategy"])
        if "batch_size" in values:
            writer_options.batch_size = validate_positive_int(values["batch_size"], "batch_size")
        if "max_conns" in values:
            conn_options.max_conns = validate_non_negative_int(values["max_conns"], "max_conns")
        if "max_idle_conns" in values:
            conn_options.max_idle_conns = validate_non_negative_int(
                values["max_idle_conns"], "max_idle_conns"
            )
        if "max_conn_lifetime" in values:
            conn_options.max_conn_lifetime = validate_non_negative_int(
                values["max_conn_lifetime"], "max_conn_lifetime"
            )
    except ValidationError as e:
        raise ConfigError(f"Invalid value in [{section}]: {e.message}", e.details)

    return writer_options, conn_options
