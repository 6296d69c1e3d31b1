from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    ValidationInfo,
    field_validator,
)

# Prices stay exact in memory and are emitted as plain JSON numbers.
Price = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]


def parse_price(raw: Any) -> Decimal:
    """Parse an upstream price string, falling back to zero."""

    if raw is None:
        return Decimal(0)
    text = str(raw).strip()
    if not text:
        return Decimal(0)
    try:
        value = Decimal(text)
    except (InvalidOperation, ValueError):
        return Decimal(0)
    if not value.is_finite():
        return Decimal(0)
    # Anything past float range would serialize as null instead of a number.
    if math.isinf(float(value)):
        return Decimal(0)
    return value


class Course(BaseModel):
    """A course as returned to callers."""

    id: str = ""
    title: str = ""
    institution_id: str = Field(default="", alias="ie")
    category: str = ""
    type: str = ""
    thumb: str = ""
    link: str = ""
    price: Price = Decimal(0)
    old_price: Price = Decimal(0)

    model_config = ConfigDict(populate_by_name=True, frozen=True)


_PRICE_FIELDS = frozenset({"price", "old_price"})


class UpstreamCourse(BaseModel):
    id: str = ""
    title: str = ""
    type: str = ""
    category: str = ""
    thumb: str = ""
    link: str = ""
    price: str = ""
    old_price: str = ""

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_to_text(cls, value: Any, info: ValidationInfo) -> str:
        # The upstream schema is loose: numbers, nulls and strings all show up.
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (str, int, float, Decimal)):
            return str(value)
        if info.field_name in _PRICE_FIELDS:
            # Non-scalar prices parse to zero; the rest of the record is kept.
            return ""
        raise ValueError(f"expected a scalar, got {type(value).__name__}")

    def to_course(self, institution_id: int | str) -> Course:
        return Course(
            id=self.id,
            title=self.title,
            institution_id=str(institution_id),
            category=self.category,
            type=self.type,
            thumb=self.thumb,
            link=self.link,
            price=parse_price(self.price),
            old_price=parse_price(self.old_price),
        )


class UpstreamPage(BaseModel):
    """One decoded upstream response.

    ``data`` is ``None`` when the body carried no data container at all,
    which ends pagination.
    """

    data: Optional[list[UpstreamCourse]] = None
    has_next_page: bool = False


__all__ = ["Course", "UpstreamCourse", "UpstreamPage", "Price", "parse_price"]
