# backend/app/models/types.py
"""
Custom SQLAlchemy types that work across different database backends.
"""

from datetime import datetime, timezone
from decimal import Decimal
import json
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import DateTime, String, Text, TypeDecorator
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

from ..core.enums import Sport

if TYPE_CHECKING:
    from sqlalchemy.sql.type_api import TypeDecorator as _TypeDecorator

    TypeDecoratorProtocol = _TypeDecorator[Any]
else:
    TypeDecoratorProtocol = TypeDecorator


class UTCDateTime(TypeDecoratorProtocol):
    """
    Timezone-aware UTC datetime on every backend.

    SQLite drops tzinfo on the way out, so values are normalised to UTC before
    binding and re-tagged as UTC when loaded. Naive input is rejected.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return value
        if value.tzinfo is None:
            raise ValueError("UTCDateTime requires a timezone-aware datetime")
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class SportPriceMap(TypeDecoratorProtocol):
    """
    Mapping of Sport -> Decimal price stored as JSON.

    Decimals are serialised as strings so no precision is lost; unknown sport
    names fail on load just as they fail on bind.
    """

    impl = Text
    cache_ok = True

    def load_dialect_impl(self, dialect: Any) -> Any:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return value
        payload = {Sport(key).value: str(Decimal(str(price))) for key, price in value.items()}
        if dialect.name == "postgresql":
            return payload
        return json.dumps(payload, sort_keys=True)

    def process_result_value(self, value: Any, dialect: Any) -> Optional[Dict[Sport, Decimal]]:
        if value is None:
            return value
        raw = value if isinstance(value, dict) else json.loads(value)
        return {Sport(key): Decimal(str(price)) for key, price in raw.items()}


class StringArrayType(TypeDecoratorProtocol):
    """
    A custom type for string arrays that works across different database backends.
    Uses PostgreSQL ARRAY when available, falls back to JSON for others.
    """

    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect: Any) -> Any:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(ARRAY(String))
        else:
            return dialect.type_descriptor(String(4096))

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return value
        items = [str(v.value if hasattr(v, "value") else v) for v in value]
        if dialect.name == "postgresql":
            return items
        return json.dumps(items)

    def process_result_value(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return value
        if dialect.name == "postgresql":
            return list(value)
        if isinstance(value, str):
            return json.loads(value)
        return value
