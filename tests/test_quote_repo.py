import json
from datetime import datetime, timezone

import pytest

from quotedesk.domain import LineItem, ValidationError
from quotedesk.repositories.quote_repo import QUOTES_KEY, QuoteInput


def brake_job(**kw):
    data = dict(
        title="Brake job",
        status="Sent",
        notes="Front axle",
        tax_rate=0.09,
        items=[LineItem("Labor", 2, 120), LineItem("Brake pads", 1, 180)],
    )
    data.update(kw)
    return QuoteInput(**data)


def test_save_and_find_round_trip(quotes, jane):
    saved = quotes.save(brake_job(), jane)
    loaded = quotes.find_by_id(saved.id)
    assert loaded == saved
    assert loaded.title == "Brake job"
    assert loaded.status == "Sent"
    assert loaded.notes == "Front axle"
    assert loaded.tax_rate == 0.09
    assert (loaded.customer_name, loaded.customer_phone, loaded.customer_email) == (
        "Jane Doe",
        "555-0100",
        "jane@x.com",
    )
    assert [it.name for it in loaded.items] == ["Labor", "Brake pads"]
    assert loaded.created_at == "2024-01-30T10:00:00.000Z"


def test_no_valid_item_is_rejected(quotes, jane, store):
    with pytest.raises(ValidationError):
        quotes.save(brake_job(items=[LineItem("", 0, 50)]), jane)
    assert store.get(QUOTES_KEY) is None
    assert quotes.list() == []


def test_customer_is_required(quotes):
    with pytest.raises(ValidationError):
        quotes.save(brake_job(), None)
    assert quotes.list() == []


def test_blank_title_and_item_names(quotes, jane):
    q = quotes.save(brake_job(title="  ", items=[LineItem(" Alignment ", 1, 90), LineItem("", 1, 0)]), jane)
    assert q.title == "Alignment quote"
    assert [it.name for it in q.items] == ["Alignment", "Item"]


def test_edit_replaces_in_place_and_keeps_created_at(quotes, jane, clock):
    original = quotes.save(brake_job(), jane)
    other = quotes.save(brake_job(title="Oil change"), jane)

    clock.now = datetime(2024, 2, 15, 9, 0, tzinfo=timezone.utc)
    updated = quotes.save(brake_job(items=[LineItem("Labor", 3, 120)]), jane, editing_id=original.id)

    assert updated.id == original.id
    assert updated.created_at == original.created_at
    assert len(quotes.list()) == 2
    assert quotes.find_by_id(original.id).items == (LineItem("Labor", 3, 120),)
    assert quotes.find_by_id(other.id) == other


def test_edit_can_move_created_at_explicitly(quotes, jane):
    original = quotes.save(brake_job(), jane)
    updated = quotes.save(brake_job(created_at="2024-03-01T00:00:00.000Z"), jane, editing_id=original.id)
    assert updated.created_at == "2024-03-01T00:00:00.000Z"


def test_created_at_is_normalized_to_utc(quotes, jane):
    q = quotes.save(brake_job(created_at="2024-03-01T07:30:00-05:00"), jane)
    assert q.created_at == "2024-03-01T12:30:00.000Z"
    assert quotes.find_by_id(q.id) == q


def test_bad_created_at_is_rejected_before_any_write(quotes, jane, store):
    kept = quotes.save(brake_job(), jane)
    before = store.get(QUOTES_KEY)

    with pytest.raises(ValidationError):
        quotes.save(brake_job(created_at="next tuesday"), jane)
    with pytest.raises(ValidationError):
        quotes.save(brake_job(created_at="next tuesday"), jane, editing_id=kept.id)

    assert store.get(QUOTES_KEY) == before
    assert quotes.list() == [kept]


def test_customer_snapshot_is_not_live(quotes, customers, jane):
    q = quotes.save(brake_job(), jane)
    customers.remove(jane.id)
    assert quotes.find_by_id(q.id).customer_name == "Jane Doe"


def test_stale_editing_id_saves_new_quote(quotes, jane):
    q = quotes.save(brake_job(), jane, editing_id="gone")
    assert q.id != "gone"
    assert quotes.list() == [q]


def test_list_sorted_newest_first(quotes, jane, clock):
    clock.now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    old = quotes.save(brake_job(title="Old"), jane)
    clock.now = datetime(2024, 6, 1, tzinfo=timezone.utc)
    new = quotes.save(brake_job(title="New"), jane)
    assert [q.id for q in quotes.list()] == [new.id, old.id]


def test_list_normalizes_loose_records(quotes, store):
    store.set(
        QUOTES_KEY,
        json.dumps(
            [
                {
                    "id": "a",
                    "createdAt": "2024-01-02T00:00:00.000Z",
                    "status": "Lost",
                    "customerName": "Jane",
                    "taxRate": "0.1",
                    "items": [{"name": "Labor", "qty": "2", "unit": 100}],
                },
                {"id": "b", "createdAt": "not a date", "items": []},
                {"createdAt": "2024-01-02T00:00:00.000Z"},
                42,
            ]
        ),
    )
    rows = quotes.list()
    assert [q.id for q in rows] == ["a"]
    q = rows[0]
    assert (q.title, q.status, q.notes, q.customer_phone) == ("Quote", "Draft", "", "")
    assert q.tax_rate == 0.1
    assert q.items[0].qty == 2.0


def test_remove(quotes, jane):
    a = quotes.save(brake_job(), jane)
    b = quotes.save(brake_job(), jane)
    quotes.remove(a.id)
    assert [q.id for q in quotes.list()] == [b.id]
    assert quotes.find_by_id(a.id) is None
