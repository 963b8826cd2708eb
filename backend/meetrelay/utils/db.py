"""Database query utility functions."""
from typing import Optional, TypeVar, Type, Any
from sqlalchemy.orm import Query, Session

T = TypeVar("T")


def field_query(
    db: Session,
    model: Type[T],
    field_name: str,
    field_value: Any,
    for_update: bool = False,
) -> Query:
    """Build the query behind ``get_by_field``; ``for_update`` adds a row lock."""
    field = getattr(model, field_name)
    query = db.query(model).filter(field == field_value)
    if for_update:
        query = query.with_for_update()
    return query


def get_by_field(
    db: Session,
    model: Type[T],
    field_name: str,
    field_value: Any,
    for_update: bool = False,
) -> Optional[T]:
    """
    Get a model instance by a specific field.
    
    Args:
        db: Database session
        model: SQLAlchemy model class
        field_name: Name of the field to filter by
        field_value: Value to filter by
        for_update: Lock the row until the transaction ends
        
    Returns:
        Model instance or None
    """
    return field_query(db, model, field_name, field_value, for_update=for_update).first()


def get_by_id(db: Session, model: Type[T], id_value: int) -> Optional[T]:
    """Get a model instance by integer primary key."""
    return db.get(model, id_value)
