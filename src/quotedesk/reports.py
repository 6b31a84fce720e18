from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Any, Iterable

from .domain import QUOTE_STATUSES, Customer, Quote
from .followups import follow_ups
from .pricing import line_total, money, percent, price_quote, to_number


def _or_dash(value: str) -> str:
    return value.strip() or "—"


def summary_text(
    *,
    title: str,
    status: str,
    customer: Customer | None,
    notes: str,
    items: Iterable[Any],
    tax_rate: Any,
) -> str:
    """Plain-text quote summary for pasting into a text message or email."""
    items = list(items)
    totals = price_quote(items, tax_rate)
    cust_line = (
        f"{customer.name} ({_or_dash(customer.phone)} / {_or_dash(customer.email)})" if customer else "—"
    )

    lines = [
        "AUTO SHOP QUOTE",
        f"Title: {(title or '').strip() or 'Quote'}",
        f"Status: {status}",
        f"Customer: {cust_line}",
    ]
    if (notes or "").strip():
        lines.append(f"Notes: {notes.strip()}")
    lines.append("Items:")
    for it in items:
        q = to_number(it.qty)
        u = to_number(it.unit)
        lines.append(f"- {(it.name or '').strip() or 'Item'} | qty {q:g} | {money(u)} | {money(line_total(it))}")
    lines += [
        f"Subtotal: {money(totals.subtotal)}",
        f"Tax ({percent(tax_rate)}): {money(totals.tax)}",
        f"Total: {money(totals.total)}",
    ]
    return "\n".join(lines)


def quote_summary(quote: Quote) -> str:
    snapshot = Customer(
        id="",
        name=quote.customer_name or "Unknown customer",
        phone=quote.customer_phone,
        email=quote.customer_email,
        created_at=quote.created_at,
    )
    return summary_text(
        title=quote.title,
        status=quote.status,
        customer=snapshot,
        notes=quote.notes,
        items=quote.items,
        tax_rate=quote.tax_rate,
    )


def print_view(quote: Quote, tz: tzinfo | None = None) -> dict:
    totals = price_quote(quote.items, quote.tax_rate)
    return {
        "quote": quote,
        "rows": [
            {
                "name": it.name or "Item",
                "qty": to_number(it.qty),
                "unit": to_number(it.unit),
                "line": line_total(it),
            }
            for it in quote.items
        ],
        "totals": totals,
        "follow_ups": follow_ups(quote.created_at, tz),
    }


def follow_up_schedule(
    quotes: Iterable[Quote],
    tz: tzinfo | None = None,
    since: datetime | None = None,
) -> list[dict]:
    if tz is None and since is not None:
        tz = since.tzinfo
    rows = []
    for q in quotes:
        for f in follow_ups(q.created_at, tz):
            if since is not None and f.date.date() < since.date():
                continue
            rows.append(
                {
                    "quote_id": q.id,
                    "title": q.title,
                    "customer_name": q.customer_name,
                    "status": q.status,
                    "label": f.label,
                    "date": f.date,
                }
            )
    rows.sort(key=lambda r: r["date"])
    return rows


def status_totals(quotes: Iterable[Quote]) -> dict[str, dict]:
    out = {s: {"count": 0, "total": 0.0} for s in QUOTE_STATUSES}
    for q in quotes:
        row = out[q.status]
        row["count"] += 1
        row["total"] += price_quote(q.items, q.tax_rate).total
    return out
