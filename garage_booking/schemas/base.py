"""
Shared pydantic bases for request and response models.

Money is a Decimal on the way in and a JSON number on the way out.
"""

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("Cannot convert bool to Money")
    if isinstance(value, float):
        return Decimal(str(value))
    return value


Money = Annotated[
    Decimal,
    BeforeValidator(_reject_bool),
    PlainSerializer(float, return_type=float),
]


class StandardizedModel(BaseModel):
    """Response base: reads ORM rows, emits enum values."""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True, from_attributes=True)


class StrictRequestModel(BaseModel):
    """Request base that refuses fields the operation does not own."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)
