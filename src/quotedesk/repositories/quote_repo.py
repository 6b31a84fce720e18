from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Sequence

from ..domain import (
    Customer,
    LineItem,
    MalformedData,
    Quote,
    ValidationError,
    guess_title,
    has_real_item,
    new_id,
    quote_from_dict,
    safe_status,
    utc_now_iso,
)
from ..followups import parse_timestamp
from ..pricing import to_number
from ..store import Store, read_json, write_json

log = logging.getLogger(__name__)

QUOTES_KEY = "quotes"


@dataclass
class QuoteInput:
    title: str
    status: str
    notes: str
    tax_rate: Any
    items: Sequence[Any] = field(default_factory=list)
    # set only to move a quote's follow-up dates on purpose
    created_at: str | None = None


class QuoteRepository:
    def __init__(
        self,
        store: Store,
        *,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self.store = store
        self.clock = clock
        self.id_factory = id_factory

    def _read(self) -> list[Quote]:
        data = read_json(self.store, QUOTES_KEY)
        if not isinstance(data, list):
            return []
        out: list[Quote] = []
        for obj in data:
            try:
                out.append(quote_from_dict(obj))
            except MalformedData as e:
                log.warning("Dropping quote record: %s", e)
        return out

    def _write(self, quotes: list[Quote]) -> None:
        write_json(self.store, QUOTES_KEY, [q.to_dict() for q in quotes])

    def list(self) -> list[Quote]:
        return sorted(self._read(), key=lambda q: q.created_at, reverse=True)

    def find_by_id(self, quote_id: str) -> Quote | None:
        for q in self._read():
            if q.id == quote_id:
                return q
        return None

    def save(self, data: QuoteInput, customer: Customer | None, editing_id: str | None = None) -> Quote:
        if customer is None:
            raise ValidationError("Select a customer.")
        if not has_real_item(data.items):
            raise ValidationError("Add at least one real line item before saving.")
        created_at = None
        if data.created_at:
            try:
                created_at = utc_now_iso(parse_timestamp(data.created_at))
            except ValueError:
                raise ValidationError(f"Invalid createdAt: {data.created_at!r}") from None

        items = tuple(
            LineItem(
                name=(it.name or "").strip() or "Item",
                qty=to_number(it.qty),
                unit=to_number(it.unit),
            )
            for it in data.items
        )
        now = self.clock() if self.clock else None
        quote = Quote(
            id="",
            created_at=created_at or utc_now_iso(now),
            title=(data.title or "").strip() or guess_title(data.items),
            status=safe_status(data.status),
            notes=data.notes or "",
            customer_name=customer.name,
            customer_phone=customer.phone or "",
            customer_email=customer.email or "",
            tax_rate=to_number(data.tax_rate),
            items=items,
        )

        quotes = self._read()
        existing = next((q for q in quotes if editing_id and q.id == editing_id), None)
        if existing is not None:
            quote = replace(quote, id=existing.id, created_at=created_at or existing.created_at)
            quotes = [quote if q.id == existing.id else q for q in quotes]
            log.info("Updated quote %s", quote.id)
        else:
            if editing_id:
                log.warning("Quote %s no longer exists, saving as a new quote", editing_id)
            quote = replace(quote, id=self.id_factory())
            quotes = [quote, *quotes]
            log.info("Saved quote %s", quote.id)

        self._write(quotes)
        return quote

    def remove(self, quote_id: str) -> None:
        self._write([q for q in self._read() if q.id != quote_id])
        log.debug("Removed quote %s", quote_id)
