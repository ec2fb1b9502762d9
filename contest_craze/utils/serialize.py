from datetime import datetime, timedelta
from typing import Any
from bson import ObjectId


def serialize_value(value: Any) -> Any:
    """Recursively serialize non-JSON-serializable values"""
    if isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, timedelta):
        return str(value)
    elif isinstance(value, ObjectId):
        return str(value)
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    return value

