from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from .followups import parse_timestamp
from .pricing import to_number

QuoteStatus = Literal["Draft", "Sent", "Approved", "Paid"]
QUOTE_STATUSES: tuple[str, ...] = ("Draft", "Sent", "Approved", "Paid")


class ValidationError(Exception):
    pass


class MalformedData(Exception):
    pass


def new_id() -> str:
    return uuid.uuid4().hex


def utc_now_iso(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def safe_status(value: Any) -> QuoteStatus:
    return value if value in QUOTE_STATUSES else "Draft"


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    phone: str
    email: str
    created_at: str

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class LineItem:
    name: str
    qty: float
    unit: float

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "qty": self.qty, "unit": self.unit}


@dataclass(frozen=True)
class Quote:
    id: str
    created_at: str
    title: str
    status: QuoteStatus
    notes: str
    customer_name: str
    customer_phone: str
    customer_email: str
    tax_rate: float
    items: tuple[LineItem, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "title": self.title,
            "status": self.status,
            "notes": self.notes,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "customerEmail": self.customer_email,
            "taxRate": self.tax_rate,
            "items": [it.to_dict() for it in self.items],
        }


@dataclass
class DraftItem:
    # id only lives as long as the editor form, it is dropped on save
    id: str
    name: str
    qty: float
    unit: float

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "qty": self.qty, "unit": self.unit}


@dataclass
class Draft:
    customer_id: str
    title: str
    status: QuoteStatus
    notes: str
    tax_rate: float
    items: list[DraftItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "customerId": self.customer_id,
            "title": self.title,
            "status": self.status,
            "notes": self.notes,
            "taxRate": self.tax_rate,
            "items": [it.to_dict() for it in self.items],
        }


def has_real_item(items) -> bool:
    return any((it.name or "").strip() and to_number(it.qty) > 0 for it in items)


def guess_title(items) -> str:
    for it in items:
        name = (it.name or "").strip()
        if name:
            return f"{name} quote"
    return "New quote"


# -------------------------------
# Shape validation of stored JSON
# -------------------------------

def customer_from_dict(obj: Any) -> Customer:
    if not isinstance(obj, dict):
        raise MalformedData(f"customer record is not an object: {obj!r}")
    keys = ("id", "name", "phone", "email", "createdAt")
    for k in keys:
        if not isinstance(obj.get(k), str):
            raise MalformedData(f"customer field {k!r} missing or not a string")
    return Customer(
        id=obj["id"],
        name=obj["name"],
        phone=obj["phone"],
        email=obj["email"],
        created_at=obj["createdAt"],
    )


def _str_or_empty(value: Any) -> str:
    return value if isinstance(value, str) else ""


def line_item_from_dict(obj: Any) -> LineItem:
    if not isinstance(obj, dict):
        raise MalformedData(f"line item is not an object: {obj!r}")
    return LineItem(
        name=_str_or_empty(obj.get("name")),
        qty=to_number(obj.get("qty")),
        unit=to_number(obj.get("unit")),
    )


def quote_from_dict(obj: Any) -> Quote:
    if not isinstance(obj, dict):
        raise MalformedData(f"quote record is not an object: {obj!r}")
    quote_id = obj.get("id")
    created_at = obj.get("createdAt")
    if not isinstance(quote_id, str) or not quote_id:
        raise MalformedData("quote id missing")
    if not isinstance(created_at, str):
        raise MalformedData(f"quote {quote_id} has no createdAt")
    try:
        parse_timestamp(created_at)
    except ValueError as e:
        raise MalformedData(f"quote {quote_id} has a bad createdAt: {created_at!r}") from e
    items = obj.get("items", [])
    if not isinstance(items, list):
        raise MalformedData(f"quote {quote_id} items is not a list")

    return Quote(
        id=quote_id,
        created_at=created_at,
        title=_str_or_empty(obj.get("title")).strip() or "Quote",
        status=safe_status(obj.get("status")),
        notes=_str_or_empty(obj.get("notes")),
        customer_name=_str_or_empty(obj.get("customerName")),
        customer_phone=_str_or_empty(obj.get("customerPhone")),
        customer_email=_str_or_empty(obj.get("customerEmail")),
        tax_rate=to_number(obj.get("taxRate")),
        items=tuple(line_item_from_dict(it) for it in items),
    )


def draft_item_from_dict(obj: Any) -> DraftItem:
    if not isinstance(obj, dict):
        raise MalformedData(f"draft item is not an object: {obj!r}")
    item_id = obj.get("id")
    return DraftItem(
        id=item_id if isinstance(item_id, str) and item_id else new_id(),
        name=_str_or_empty(obj.get("name")),
        qty=to_number(obj.get("qty")),
        unit=to_number(obj.get("unit")),
    )
