from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from prophet_app.core.errors import InvalidInputError


class ProphetModel(BaseModel):
    """Base for engine data structures.

    Attributes are snake_case; the host application's JSON uses camelCase, so
    both spellings are accepted and ``model_dump(by_alias=True)`` round-trips to
    the host shape.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @classmethod
    def parse(cls, payload: Mapping[str, Any] | Self) -> Self:
        # Instances are checked again; fields may have been set after construction.
        if isinstance(payload, BaseModel):
            payload = payload.model_dump()
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise InvalidInputError(
                f"Invalid {cls.__name__}: {exc.error_count()} validation error(s).",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc


def field_name_for(model: type[BaseModel], key: str) -> str | None:
    """Resolve a snake_case name or camelCase alias to the model's field name."""
    if key in model.model_fields:
        return key
    for name, info in model.model_fields.items():
        if info.alias == key:
            return name
    return None
