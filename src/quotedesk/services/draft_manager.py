from __future__ import annotations

import logging
from typing import Any, Iterable

from ..domain import (
    Customer,
    Draft,
    DraftItem,
    MalformedData,
    Quote,
    ValidationError,
    draft_item_from_dict,
    has_real_item,
    new_id,
    safe_status,
)
from ..pricing import Totals, price_quote, to_number
from ..reports import summary_text
from ..repositories.customer_repo import CustomerRepository
from ..repositories.quote_repo import QuoteInput, QuoteRepository
from ..store import Store, read_json, write_json

log = logging.getLogger(__name__)

DRAFT_KEY = "quote_draft"
EDIT_POINTER_KEY = "edit_quote_id"


class DraftManager:
    """Working state of the quote editor.

    Two modes: composing a new quote (the form is autosaved to the draft
    slot on every change) and editing a saved quote (the edit pointer is
    set and the draft slot is left alone). Call ``load()`` before use.
    """

    def __init__(
        self,
        store: Store,
        customer_repo: CustomerRepository,
        quote_repo: QuoteRepository,
        *,
        default_labor_rate: float = 120.0,
        default_tax_rate: float = 0.09,
    ) -> None:
        self.store = store
        self.customer_repo = customer_repo
        self.quote_repo = quote_repo
        self.default_labor_rate = default_labor_rate
        self.default_tax_rate = default_tax_rate

        self.customers: list[Customer] = []
        self.editing_id = ""
        self.draft = self._default_draft()
        self.loaded = False

    # -------------------------------
    # State
    # -------------------------------

    @property
    def is_editing_existing(self) -> bool:
        return bool(self.editing_id)

    def _default_item(self) -> DraftItem:
        return DraftItem(id=new_id(), name="Labor", qty=1, unit=self.default_labor_rate)

    def _default_draft(self) -> Draft:
        return Draft(
            customer_id=self.customers[0].id if self.customers else "",
            title="New quote",
            status="Draft",
            notes="",
            tax_rate=self.default_tax_rate,
            items=[self._default_item()],
        )

    def load(self) -> None:
        self.customers = self.customer_repo.list()
        self.editing_id = ""

        pointer = self.store.get(EDIT_POINTER_KEY) or ""
        if pointer:
            quote = self.quote_repo.find_by_id(pointer)
            if quote is not None:
                self._load_quote(quote)
                self.loaded = True
                return
            log.info("Edit pointer %s is stale, cleared", pointer)
            self.store.remove(EDIT_POINTER_KEY)

        self.draft = self._read_draft()
        self.loaded = True

    def _load_quote(self, quote: Quote) -> None:
        items = [DraftItem(id=new_id(), name=it.name, qty=it.qty, unit=it.unit) for it in quote.items]
        # quotes keep a name snapshot, not a customer id
        match = next((c for c in self.customers if c.name == quote.customer_name), None)
        if match is None and self.customers:
            match = self.customers[0]

        self.editing_id = quote.id
        self.draft = Draft(
            customer_id=match.id if match else "",
            title=quote.title or "Quote",
            status=safe_status(quote.status),
            notes=quote.notes or "",
            tax_rate=quote.tax_rate,
            items=items or [self._default_item()],
        )

    def _read_draft(self) -> Draft:
        draft = self._default_draft()
        data = read_json(self.store, DRAFT_KEY)
        if not isinstance(data, dict):
            return draft

        if isinstance(data.get("title"), str):
            draft.title = data["title"]
        if isinstance(data.get("status"), str):
            draft.status = safe_status(data["status"])
        if isinstance(data.get("notes"), str):
            draft.notes = data["notes"]
        if isinstance(data.get("taxRate"), (int, float)) and not isinstance(data.get("taxRate"), bool):
            draft.tax_rate = to_number(data["taxRate"])
        if isinstance(data.get("customerId"), str):
            draft.customer_id = data["customerId"]
        if isinstance(data.get("items"), list):
            items = []
            for obj in data["items"]:
                try:
                    items.append(draft_item_from_dict(obj))
                except MalformedData as e:
                    log.warning("Dropping draft item: %s", e)
            draft.items = items
        return draft

    def _changed(self) -> None:
        if not self.loaded or self.is_editing_existing:
            return
        write_json(self.store, DRAFT_KEY, self.draft.to_dict())

    # -------------------------------
    # Form edits
    # -------------------------------

    def begin_edit(self, quote_id: str) -> None:
        self.store.set(EDIT_POINTER_KEY, quote_id)
        self.load()

    def set_title(self, title: str) -> None:
        self.draft.title = title
        self._changed()

    def set_status(self, status: str) -> None:
        self.draft.status = safe_status(status)
        self._changed()

    def set_notes(self, notes: str) -> None:
        self.draft.notes = notes
        self._changed()

    def set_tax_rate(self, tax_rate: Any) -> None:
        self.draft.tax_rate = to_number(tax_rate)
        self._changed()

    def select_customer(self, customer_id: str) -> None:
        self.draft.customer_id = customer_id
        self._changed()

    def add_item(self, name: str = "", qty: Any = 1, unit: Any = 0) -> DraftItem:
        item = DraftItem(id=new_id(), name=name, qty=to_number(qty), unit=to_number(unit))
        self.draft.items.append(item)
        self._changed()
        return item

    def update_item(self, item_id: str, *, name: str | None = None, qty: Any = None, unit: Any = None) -> None:
        for it in self.draft.items:
            if it.id != item_id:
                continue
            if name is not None:
                it.name = name
            if qty is not None:
                it.qty = to_number(qty)
            if unit is not None:
                it.unit = to_number(unit)
        self._changed()

    def remove_item(self, item_id: str) -> None:
        self.draft.items = [it for it in self.draft.items if it.id != item_id]
        self._changed()

    def set_items(self, items: Iterable[DraftItem]) -> None:
        self.draft.items = [
            DraftItem(id=it.id or new_id(), name=it.name, qty=to_number(it.qty), unit=to_number(it.unit))
            for it in items
        ]
        self._changed()

    # -------------------------------
    # Derived values
    # -------------------------------

    def selected_customer(self) -> Customer | None:
        return next((c for c in self.customers if c.id == self.draft.customer_id), None)

    def totals(self) -> Totals:
        return price_quote(self.draft.items, self.draft.tax_rate)

    def summary(self) -> str:
        return summary_text(
            title=self.draft.title,
            status=self.draft.status,
            customer=self.selected_customer(),
            notes=self.draft.notes,
            items=self.draft.items,
            tax_rate=self.draft.tax_rate,
        )

    # -------------------------------
    # Save / clear
    # -------------------------------

    def save(self) -> Quote:
        if not self.customers:
            raise ValidationError("Add a customer first.")
        customer = self.selected_customer()
        if customer is None:
            raise ValidationError("Select a customer.")
        if not has_real_item(self.draft.items):
            raise ValidationError("Add at least one real line item before saving.")

        quote = self.quote_repo.save(
            QuoteInput(
                title=self.draft.title,
                status=self.draft.status,
                notes=self.draft.notes,
                tax_rate=self.draft.tax_rate,
                items=self.draft.items,
            ),
            customer,
            editing_id=self.editing_id or None,
        )
        self._reset()
        return quote

    def clear(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self.store.remove(DRAFT_KEY)
        self.store.remove(EDIT_POINTER_KEY)
        self.editing_id = ""
        self.draft = self._default_draft()
