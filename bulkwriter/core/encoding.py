"""
Field value encoding shared by both insertion strategies.

Every value is classified into a :class:`ValueKind` and then turned into the
text that goes on the wire. Blobs are decoded with ``surrogateescape`` so the
original bytes come back out when the text is encoded again with the same
error handler.
"""

from typing import Any, List

from bulkwriter.core.types import Row, ValueKind
from bulkwriter.core.exceptions import EncodingError

NULL_LITERAL = "NULL"
WIRE_ENCODING = "utf-8"
WIRE_ERRORS = "surrogateescape"


def classify_value(value: Any) -> ValueKind:
    """Return the kind of a single field value."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, str):
        return ValueKind.TEXT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueKind.BLOB
    return ValueKind.UNSUPPORTED


def encode_value(value: Any) -> str:
    """Convert a field value into its textual form.

    Raises:
        EncodingError: if the value is neither null, text nor binary.
    """
    kind = classify_value(value)
    if kind is ValueKind.NULL:
        return NULL_LITERAL
    if kind is ValueKind.TEXT:
        return value
    if kind is ValueKind.BLOB:
        return bytes(value).decode(WIRE_ENCODING, WIRE_ERRORS)
    raise EncodingError(
        f"Unsupported value type '{type(value).__name__}'",
        "Only None, str and bytes values can be written"
    )


def encode_row(row: Row, columns: List[str]) -> List[str]:
    """Encode a row's values in column order.

    Columns missing from the row are written as ``NULL``.
    """
    values = []
    for column in columns:
        try:
            values.append(encode_value(row.get(column)))
        except EncodingError as e:
            raise EncodingError(f"{e.message} in column '{column}'", e.details)
    return values
