from typing import Any, Optional
from bson import ObjectId
from bson.errors import InvalidId

from contest_craze.core.exceptions import NotFound


def to_object_id(identifier: Any, label: str = "Contest") -> ObjectId:
    """Parse a path/body id into an ObjectId; a malformed id is simply not found"""
    if isinstance(identifier, ObjectId):
        return identifier
    try:
        return ObjectId(str(identifier))
    except (InvalidId, TypeError):
        raise NotFound(f"{label} not found")


def parse_positive_int(value: Optional[str], default: int) -> int:
    """
    Parse a query-string integer.
    Absent, non-numeric or non-positive values fall back to the default.
    """
    if value is None:
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default
