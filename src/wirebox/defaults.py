import datetime
import decimal
import pathlib
import uuid
from typing import Any

DEFAULT_MAX_RESOLUTION_DEPTH = 30
"""Number of nested ``get`` calls allowed in one resolution chain."""

NAMESPACE_SEPARATORS = "\\."
"""Characters stripped from both ends of string service ids."""

NON_AUTOWIRED_BASE_TYPES: tuple[type[Any], ...] = (
    pathlib.PurePath,
    datetime.datetime,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
    decimal.Decimal,
)
"""Value types never resolved through the container, in addition to builtins."""
