import builtins

from quotedesk.cli import run_cli
from quotedesk.config import parse_config
from quotedesk.repositories.customer_repo import CustomerRepository
from quotedesk.repositories.quote_repo import QuoteRepository


def feed(monkeypatch, answers):
    it = iter(answers)
    monkeypatch.setattr(builtins, "input", lambda msg="": next(it))


def test_cli_builds_and_saves_quote(monkeypatch, capsys, store):
    cfg = parse_config({"access": {"codes": ["OPEN1"]}})
    feed(
        monkeypatch,
        [
            "OPEN1",
            "2", "Jane Doe", "555-0100", "jane@x.com",
            "5",
            "u", "1", "", "2", "",
            "a", "Brake pads", "1", "180",
            "v",
            "0",
        ],
    )
    run_cli(store, cfg)

    [quote] = QuoteRepository(store).list()
    assert quote.customer_name == "Jane Doe"
    assert [(it.name, it.qty, it.unit) for it in quote.items] == [("Labor", 2, 120), ("Brake pads", 1, 180)]
    assert "Saved quote" in capsys.readouterr().out


def test_cli_rejects_bad_code(monkeypatch, capsys, store):
    feed(monkeypatch, ["x", "y", "z"])
    run_cli(store, parse_config({}))
    assert "Access denied." in capsys.readouterr().out
    assert CustomerRepository(store).list() == []


def test_cli_blank_customer_name(monkeypatch, capsys, store):
    feed(monkeypatch, ["AUTO2025", "2", " ", "", "", "0"])
    run_cli(store, parse_config({}))
    assert "[INPUT ERROR] Customer name is required." in capsys.readouterr().out
