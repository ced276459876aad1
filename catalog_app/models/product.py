# catalog_app/models/product.py
from __future__ import annotations
from dataclasses import dataclass, asdict, fields
from typing import Optional, Dict, Any
from datetime import date
import base64
import math


def _number(raw: Any, field: str) -> float:
    """Missing numbers default to 0; anything present must parse to a finite value."""
    if raw in (None, ""):
        return 0.0
    if isinstance(raw, bool):
        raise ValueError(f"{field} is not a number: {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{field} is not a number: {raw!r}") from None
    if not math.isfinite(value):
        raise ValueError(f"{field} is not a finite number: {raw!r}")
    return value


@dataclass
class Product:
    """
    A product as served by the catalog service. Keys on the wire are camelCase;
    image bytes arrive base64 encoded and are kept that way until displayed.
    """
    id: int
    name: str = ""
    description: str = ""
    brand: str = ""
    category: str = ""
    price: float = 0.0
    stock_quantity: int = 0
    product_available: bool = False
    release_date: Optional[date] = None
    image_name: Optional[str] = None
    image_type: Optional[str] = None
    image_data: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Product":
        if not isinstance(d, dict):
            raise ValueError(f"Cannot construct Product from {type(d).__name__}")
        id_raw = d.get("id")
        if id_raw in (None, ""):
            raise ValueError("Product record has no id")
        id_val = int(id_raw)

        price = _number(d.get("price"), "price")
        stock = _number(d.get("stockQuantity"), "stockQuantity")
        if not stock.is_integer():
            raise ValueError(f"stockQuantity is not a whole number: {d.get('stockQuantity')!r}")

        release_raw = d.get("releaseDate")
        release_date = None
        if release_raw not in (None, ""):
            # services may send a full timestamp; only the date part matters
            release_date = date.fromisoformat(str(release_raw)[:10])

        available_raw = d.get("productAvailable")
        if available_raw is None:
            available_raw = False
        if not isinstance(available_raw, bool):
            raise ValueError(f"productAvailable is not a boolean: {available_raw!r}")

        return cls(
            id=id_val,
            name=str(d.get("name") or ""),
            description=str(d.get("description") or ""),
            brand=str(d.get("brand") or ""),
            category=str(d.get("category") or ""),
            price=price,
            stock_quantity=int(stock),
            product_available=available_raw,
            release_date=release_date,
            image_name=d.get("imageName") or None,
            image_type=d.get("imageType") or None,
            image_data=d.get("imageData") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "brand": self.brand,
            "category": self.category,
            "price": float(self.price),
            "stockQuantity": int(self.stock_quantity),
            "productAvailable": bool(self.product_available),
            "releaseDate": self.release_date.isoformat() if self.release_date else None,
            "imageName": self.image_name,
            "imageType": self.image_type,
            "imageData": self.image_data,
        }

    @property
    def has_image(self) -> bool:
        return bool(self.image_type and self.image_data)

    @property
    def image_data_uri(self) -> Optional[str]:
        if not self.has_image:
            return None
        return f"data:{self.image_type};base64,{self.image_data}"

    def image_bytes(self) -> Optional[bytes]:
        if not self.image_data:
            return None
        return base64.b64decode(self.image_data)


@dataclass
class Draft:
    """
    Working copy of the creation form. Numeric and date fields hold the raw
    text the user typed; `parse_draft` turns them into a typed payload.
    """
    name: str = ""
    description: str = ""
    brand: str = ""
    price: str = ""
    category: str = ""
    release_date: str = ""
    product_available: bool = True
    stock_quantity: str = ""

    @classmethod
    def field_names(cls):
        return [f.name for f in fields(cls)]

    def set(self, name: str, value: Any) -> None:
        if name not in self.field_names():
            raise KeyError(f"Unknown draft field: {name}")
        if name == "product_available":
            self.product_available = bool(value)
        else:
            setattr(self, name, "" if value is None else str(value))

    def is_empty(self) -> bool:
        return self == Draft()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
