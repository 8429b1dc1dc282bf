"""
Row readers feeding the bulk writer.

A reader supplies the ordered column list of a table and a stream of rows
for it. The stream is an iterator; running out of rows closes the stream.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Iterator, List, Union

import pandas as pd

from bulkwriter.core.exceptions import ValidationError
from bulkwriter.core.types import Row


class RowReader(ABC):
    """Upstream source of rows for a table."""

    @abstractmethod
    def get_columns(self, table: str) -> List[str]:
        """Return the table's column names in insertion order."""

    @abstractmethod
    def rows(self, table: str) -> Iterator[Row]:
        """Return an iterator over the table's rows."""


class DataFrameReader(RowReader):
    """Serves rows from pandas DataFrames, one frame or chunk list per table.

    Values are handed out the way the MySQL text protocol returns them:
    missing values become ``None``, ``bytes`` stay ``bytes``, booleans become
    ``1``/``0``, whole floats lose their ``.0`` and every other scalar
    becomes its string form.
    """

    def __init__(self, tables: Dict[str, Union[pd.DataFrame, Iterable[pd.DataFrame]]]):
        self._tables = dict(tables)

    def _frames(self, table: str) -> List[pd.DataFrame]:
        if table not in self._tables:
            raise ValidationError(f"Table '{table}' not found")
        data = self._tables[table]
        if isinstance(data, pd.DataFrame):
            return [data]
        # Materialize chunk iterators so columns and rows can both be read
        frames = list(data)
        self._tables[table] = frames
        return frames

    def get_columns(self, table: str) -> List[str]:
        frames = self._frames(table)
        if not frames:
            return []
        return [str(col) for col in frames[0].columns]

    def rows(self, table: str) -> Iterator[Row]:
        for frame in self._frames(table):
            columns = [str(col) for col in frame.columns]
            for values in frame.itertuples(index=False, name=None):
                yield {col: to_text_value(value) for col, value in zip(columns, values)}


def to_text_value(value: Any) -> Any:
    """Convert a DataFrame cell to ``None``, ``str`` or ``bytes``."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if pd.api.types.is_bool(value):
        return "1" if value else "0"
    # Integer columns holding NaN arrive as floats
    if pd.api.types.is_float(value) and float(value).is_integer():
        return str(int(value))
    if isinstance(value, pd.Timestamp):
        return value.isoformat(sep=" ")
    return str(value)
