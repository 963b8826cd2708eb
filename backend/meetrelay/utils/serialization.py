"""Serialization utilities for converting models to API responses."""
import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from meetrelay.utils.timeutils import as_utc


def serialize_datetime(value: Optional[datetime]) -> Optional[str]:
    """
    Serialize datetime to ISO format string.
    
    Args:
        value: Datetime value or None
        
    Returns:
        ISO format string (UTC) or None
    """
    return as_utc(value).isoformat() if value else None


def serialize_model_to_dict(
    model: Any,
    exclude: Optional[List[str]] = None,
    camel_case: bool = True,
) -> Dict[str, Any]:
    """
    Serialize a SQLAlchemy model to a dictionary.
    
    Args:
        model: SQLAlchemy model instance
        exclude: Column names to leave out
        camel_case: Convert snake_case column names to camelCase keys
        
    Returns:
        Dictionary representation of the model
    """
    exclude = exclude or []

    result = {}
    for column in model.__table__.columns:
        if column.name in exclude:
            continue
        value = getattr(model, column.name)
        if isinstance(value, datetime):
            value = serialize_datetime(value)
        key = to_camel(column.name) if camel_case else column.name
        result[key] = value

    return result


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def dump_json(value: Any) -> Optional[str]:
    """Serialize a payload for an opaque text column."""
    if value is None:
        return None
    return json.dumps(value, separators=(",", ":"))


def load_json(value: Optional[str], default: Any = None) -> Any:
    """Parse an opaque text column written by ``dump_json``."""
    if value is None or value == "":
        return default
    return json.loads(value)
