import json

import pytest

from quotedesk.domain import LineItem
from quotedesk.importers import ImportFileError, export_quotes_json, import_customers_csv
from quotedesk.repositories.quote_repo import QuoteInput


def test_import_customers_csv(tmp_path, customers):
    p = tmp_path / "customers.csv"
    p.write_text("name,phone,email\nJane Doe,555-0100,jane@x.com\n ,555,\nBob,,bob@x.com\n", encoding="utf-8")
    assert import_customers_csv(p, customers) == 2
    assert sorted(c.name for c in customers.list()) == ["Bob", "Jane Doe"]


def test_import_requires_columns(tmp_path, customers):
    p = tmp_path / "customers.csv"
    p.write_text("full_name\nJane\n", encoding="utf-8")
    with pytest.raises(ImportFileError):
        import_customers_csv(p, customers)


def test_import_missing_file(tmp_path, customers):
    with pytest.raises(ImportFileError):
        import_customers_csv(tmp_path / "nope.csv", customers)


def test_export_quotes_json(tmp_path, quotes, jane):
    quotes.save(
        QuoteInput(title="Brakes", status="Sent", notes="", tax_rate=0.09, items=[LineItem("Labor", 2, 120), LineItem("Pads", 1, 180)]),
        jane,
    )
    out = tmp_path / "quotes.json"
    assert export_quotes_json(out, quotes) == 1
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data[0]["customerName"] == "Jane Doe"
    assert (data[0]["subtotal"], data[0]["tax"], data[0]["total"]) == (420.0, 37.8, 457.8)
