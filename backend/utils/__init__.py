from decimal import Decimal
import enum

from sqlalchemy.orm import class_mapper


def sqlalchemy_to_dict(obj):
    """Convert a SQLAlchemy object to a JSON-friendly dictionary."""
    if not obj:
        return None
    mapper = class_mapper(obj.__class__)
    result = {}
    for c in mapper.columns:
        value = getattr(obj, c.key)
        if hasattr(value, 'isoformat'):
            value = value.isoformat()
        elif isinstance(value, Decimal):
            # Keep the exact figure, audit rows are read by humans
            value = str(value)
        elif isinstance(value, enum.Enum):
            value = value.value
        result[c.key] = value
    return result


def to_decimal(value) -> Decimal:
    """Coerce a column or request value to Decimal, treating None as zero."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


__all__ = ['sqlalchemy_to_dict', 'to_decimal']
