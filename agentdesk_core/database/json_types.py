"""
Typed JSON Column Types

Stores pydantic models in a JSON column (JSONB on PostgreSQL). Values are
validated when written and when read back, so rows written before a field
was added come back with that field's default filled in.
"""

from typing import Any, Optional, Type

from pydantic import BaseModel
from sqlalchemy import JSON, TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Dialect


def json_variant() -> JSON:
    """JSON that uses JSONB when running on PostgreSQL."""
    return JSON().with_variant(JSONB(), "postgresql")


class PydanticJSON(TypeDecorator):
    """JSON column holding one pydantic model.

    Accepts either a model instance or a plain dict on bind; always returns
    a model instance on load. ``None`` is stored as SQL NULL.
    """

    impl = JSON
    cache_ok = True

    def __init__(self, model: Type[BaseModel]):
        super().__init__()
        self.model = model

    def load_dialect_impl(self, dialect: Dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value: Any, dialect: Dialect) -> Optional[dict]:
        if value is None:
            return None
        if not isinstance(value, self.model):
            value = self.model.model_validate(value)
        return value.model_dump(mode="json")

    def process_result_value(self, value: Any, dialect: Dialect) -> Optional[BaseModel]:
        if value is None:
            return None
        return self.model.model_validate(value)


class PydanticJSONList(TypeDecorator):
    """JSON column holding a list of one pydantic model."""

    impl = JSON
    cache_ok = True

    def __init__(self, model: Type[BaseModel]):
        super().__init__()
        self.model = model

    def load_dialect_impl(self, dialect: Dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value: Any, dialect: Dialect) -> Optional[list]:
        if value is None:
            return None
        items = []
        for item in value:
            if not isinstance(item, self.model):
                item = self.model.model_validate(item)
            items.append(item.model_dump(mode="json"))
        return items

    def process_result_value(self, value: Any, dialect: Dialect) -> Optional[list]:
        if value is None:
            return None
        return [self.model.model_validate(item) for item in value]


__all__ = ["PydanticJSON", "PydanticJSONList", "json_variant"]
