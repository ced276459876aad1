# catalog_app/schemas/product.py
import math
from datetime import date
from typing import Dict, Optional, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from catalog_app.core.errors import DraftValidationError
from catalog_app.models.product import Draft


class ProductCreate(BaseModel):
    """Typed, validated creation payload. Serialized as the `product` JSON part."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1)
    description: str = ""
    brand: str = ""
    price: float = Field(..., ge=0)
    category: str = ""
    release_date: Optional[date] = None
    product_available: bool = True
    stock_quantity: int = Field(..., ge=0)

    @field_validator("price")
    @classmethod
    def _finite_price(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("Price must be a finite number")
        return v

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


_REQUIRED_MESSAGES = {
    "name": "Product name is required",
    "price": "Price is required",
    "stock_quantity": "Stock quantity is required",
}


def _field_for_loc(loc) -> str:
    key = str(loc[0]) if loc else "__root__"
    for name, info in ProductCreate.model_fields.items():
        if key in (name, info.alias):
            return name
    return key


def parse_draft(draft: Draft) -> ProductCreate:
    """
    Trim and parse a Draft into a ProductCreate.
    Raises DraftValidationError with one message per offending field.
    """
    raw = {
        "name": draft.name.strip(),
        "description": draft.description.strip(),
        "brand": draft.brand.strip(),
        "price": draft.price.strip(),
        "category": draft.category.strip(),
        "release_date": draft.release_date.strip() or None,
        "product_available": bool(draft.product_available),
        "stock_quantity": draft.stock_quantity.strip(),
    }

    errors: Dict[str, str] = {}
    for name, message in _REQUIRED_MESSAGES.items():
        if raw[name] == "":
            errors[name] = message
    if errors:
        raise DraftValidationError(errors)

    try:
        return ProductCreate.model_validate(raw)
    except PydanticValidationError as exc:
        for err in exc.errors():
            errors.setdefault(_field_for_loc(err.get("loc")), err.get("msg", "Invalid value"))
        raise DraftValidationError(errors) from exc
