from __future__ import annotations

import csv
import json
from pathlib import Path

from .pricing import price_quote
from .repositories.customer_repo import CustomerRepository
from .repositories.quote_repo import QuoteRepository


class ImportFileError(Exception):
    pass


def import_customers_csv(path: str | Path, customer_repo: CustomerRepository) -> int:
    p = Path(path)
    if not p.exists():
        raise ImportFileError(f"File not found: {p}")

    count = 0
    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        required = {"name", "phone", "email"}
        if not required.issubset(set(reader.fieldnames or [])):
            raise ImportFileError(f"CSV must contain columns: {sorted(required)}")

        for row in reader:
            added = customer_repo.add(
                row.get("name") or "",
                phone=row.get("phone") or "",
                email=row.get("email") or "",
            )
            if added is not None:
                count += 1
    return count


def export_quotes_json(path: str | Path, quote_repo: QuoteRepository) -> int:
    quotes = quote_repo.list()
    data = []
    for q in quotes:
        totals = price_quote(q.items, q.tax_rate)
        obj = q.to_dict()
        obj["subtotal"] = round(totals.subtotal, 2)
        obj["tax"] = round(totals.tax, 2)
        obj["total"] = round(totals.total, 2)
        data.append(obj)

    p = Path(path)
    try:
        p.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as e:
        raise ImportFileError(f"Cannot write {p}: {e}") from e
    return len(data)
