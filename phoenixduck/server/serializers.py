import base64
import math
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, List
from uuid import UUID

import pyarrow as pa

EPOCH = datetime(1970, 1, 1)
EPOCH_DATE = EPOCH.date()
ONE_MS = timedelta(milliseconds=1)


def serialize_item(item: Any) -> Any:
    """
    Serializes a single cell value to a JSON-compatible value for an
    Avatica frame.

    Temporal values use Avatica's numeric encodings: DATE as days since
    the epoch, TIME as milliseconds of the day, TIMESTAMP as epoch
    milliseconds (UTC).
    """
    if item is None:
        return None
    if isinstance(item, datetime):
        if item.tzinfo is not None:
            item = item.astimezone(timezone.utc).replace(tzinfo=None)
        return (item - EPOCH) // ONE_MS
    if isinstance(item, date):
        return (item - EPOCH_DATE).days
    if isinstance(item, time):
        return ((item.hour * 60 + item.minute) * 60 + item.second) * 1000 + item.microsecond // 1000
    if isinstance(item, Decimal):
        # str() keeps the exact digits; JSON numbers would go through float
        return str(item)
    if isinstance(item, float) and not math.isfinite(item):
        return str(item)
    if isinstance(item, bytes):
        # Avatica encodes binary values as base64
        return base64.b64encode(item).decode("ascii")
    if isinstance(item, (timedelta, UUID)):
        return str(item)
    if isinstance(item, list):
        return [serialize_item(i) for i in item]
    if isinstance(item, dict):
        return {str(k): serialize_item(v) for k, v in item.items()}
    return item


def serialize_rows(table: pa.Table) -> List[List[Any]]:
    """
    Converts an Arrow table into the list-of-lists rows of an Avatica frame.

    Works column by column so duplicate column names keep their own values.
    """
    columns = [[serialize_item(v) for v in column.to_pylist()] for column in table.columns]
    return [list(row) for row in zip(*columns)]
