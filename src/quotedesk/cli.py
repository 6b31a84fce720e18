from __future__ import annotations

from datetime import datetime

from .access import AccessGate
from .config import AppConfig
from .domain import QUOTE_STATUSES, ValidationError
from .followups import follow_ups
from .importers import ImportFileError, export_quotes_json, import_customers_csv
from .pricing import line_total, money, percent, price_quote
from .reports import follow_up_schedule, quote_summary, status_totals
from .repositories.customer_repo import CustomerRepository
from .repositories.quote_repo import QuoteRepository
from .services.draft_manager import DraftManager
from .store import Store


def _prompt(msg: str) -> str:
    return input(msg).strip()


def _unlock(gate: AccessGate) -> bool:
    if gate.is_unlocked():
        return True
    for _ in range(3):
        if gate.unlock(_prompt("Access code: ")):
            print("Unlocked.")
            return True
        print("That code doesn't match. Ask the owner for your access code.")
    return False


def _print_quote(q) -> None:
    totals = price_quote(q.items, q.tax_rate)
    print(f"\n[{q.id}] {q.title} ({q.status})  total={money(totals.total)}")
    print(f"  customer: {q.customer_name or 'Unknown customer'} {q.customer_phone or '—'} / {q.customer_email or '—'}")
    print(f"  created: {q.created_at}")
    if q.notes.strip():
        print(f"  notes: {q.notes.strip()}")
    for it in q.items:
        print(f"  - {it.name or 'Item'} qty={it.qty:g} unit={money(it.unit)} line={money(line_total(it))}")
    print("  " + " | ".join(f"{f.label}: {f.date.date().isoformat()}" for f in follow_ups(q.created_at)))
    print(f"  subtotal={money(totals.subtotal)} tax={money(totals.tax)} total={money(totals.total)}")


def _show_editor(manager: DraftManager) -> None:
    d = manager.draft
    c = manager.selected_customer()
    header = f"Edit quote {manager.editing_id}" if manager.is_editing_existing else "New quote (autosaved)"
    print(f"\n--- {header} ---")
    print(f"title={d.title!r} status={d.status} tax={percent(d.tax_rate)}")
    print(f"customer={c.name if c else '—'}")
    if d.notes.strip():
        print(f"notes={d.notes.strip()!r}")
    for i, it in enumerate(d.items, start=1):
        print(f"  {i}) {it.name or '(blank)'} qty={it.qty:g} unit={money(it.unit)} line={money(line_total(it))}")
    t = manager.totals()
    print(f"subtotal={money(t.subtotal)} tax={money(t.tax)} total={money(t.total)}")


def _pick_item(manager: DraftManager) -> str:
    n = int(_prompt("item #: "))
    if not 1 <= n <= len(manager.draft.items):
        raise ValueError(f"No item #{n}")
    return manager.draft.items[n - 1].id


def run_editor(manager: DraftManager) -> None:
    manager.load()
    while True:
        _show_editor(manager)
        print("t) title  s) status  n) notes  c) customer  r) tax rate")
        print("a) add item  u) update item  d) delete item  p) copy summary")
        print("v) save  x) clear / stop editing  b) back")
        choice = _prompt("> ").lower()
        try:
            if choice == "b":
                return
            elif choice == "t":
                manager.set_title(_prompt("title: "))
            elif choice == "s":
                manager.set_status(_prompt(f"status {'/'.join(QUOTE_STATUSES)}: ").capitalize())
            elif choice == "n":
                manager.set_notes(_prompt("notes: "))
            elif choice == "c":
                for i, cust in enumerate(manager.customers, start=1):
                    print(f"  {i}) {cust.name} {cust.phone or '—'}")
                if not manager.customers:
                    print("No customers yet. Add one from the main menu.")
                    continue
                n = int(_prompt("customer #: "))
                if not 1 <= n <= len(manager.customers):
                    raise ValueError(f"No customer #{n}")
                manager.select_customer(manager.customers[n - 1].id)
            elif choice == "r":
                manager.set_tax_rate(float(_prompt("tax rate (0.09 = 9%): ")))
            elif choice == "a":
                name = _prompt("  name: ")
                qty = float(_prompt("  qty: ") or 1)
                unit = float(_prompt("  unit price: ") or 0)
                manager.add_item(name, qty, unit)
            elif choice == "u":
                item_id = _pick_item(manager)
                name = _prompt("  name (blank keeps): ")
                qty = _prompt("  qty (blank keeps): ")
                unit = _prompt("  unit price (blank keeps): ")
                manager.update_item(
                    item_id,
                    name=name or None,
                    qty=float(qty) if qty else None,
                    unit=float(unit) if unit else None,
                )
            elif choice == "d":
                manager.remove_item(_pick_item(manager))
            elif choice == "p":
                print()
                print(manager.summary())
            elif choice == "v":
                was_editing = manager.is_editing_existing
                quote = manager.save()
                print(("Updated" if was_editing else "Saved") + f" quote {quote.id}")
                return
            elif choice == "x":
                manager.clear()
            else:
                print("Unknown choice.")
        except ValidationError as e:
            print(f"[INPUT ERROR] {e}")
        except ValueError as e:
            print(f"[VALUE ERROR] {e}")


def run_cli(store: Store, cfg: AppConfig) -> None:
    customer_repo = CustomerRepository(store)
    quote_repo = QuoteRepository(store)
    manager = DraftManager(
        store,
        customer_repo,
        quote_repo,
        default_labor_rate=cfg.business.default_labor_rate,
        default_tax_rate=cfg.business.default_tax_rate,
    )

    if not _unlock(AccessGate(store, cfg.access.codes)):
        print("Access denied.")
        return

    while True:
        print(f"\n=== {cfg.name} ===")
        print("1) List customers")
        print("2) Add customer")
        print("3) Search customers")
        print("4) Delete customer")
        print("5) New quote / continue draft")
        print("6) List quotes")
        print("7) Edit quote")
        print("8) Delete quote")
        print("9) Print quote")
        print("10) Follow-up schedule + status totals")
        print("11) Import customers CSV")
        print("12) Export quotes JSON")
        print("0) Exit")

        choice = _prompt("> ")
        try:
            if choice == "0":
                return

            elif choice in ("1", "3"):
                query = _prompt("search name / phone / email: ") if choice == "3" else ""
                rows = customer_repo.search(query)
                if not rows:
                    print("No customers yet.")
                for c in rows:
                    print(f"{c.id} {c.name} phone={c.phone or '—'} email={c.email or '—'}")

            elif choice == "2":
                name = _prompt("name: ")
                phone = _prompt("phone (optional): ")
                email = _prompt("email (optional): ")
                c = customer_repo.add(name, phone, email)
                if c is None:
                    raise ValidationError("Customer name is required.")
                print(f"Added customer {c.id}")

            elif choice == "4":
                customer_repo.remove(_prompt("customer id: "))
                print("Deleted.")

            elif choice == "5":
                run_editor(manager)

            elif choice == "6":
                quotes = quote_repo.list()
                if not quotes:
                    print("No saved quotes yet.")
                for q in quotes:
                    _print_quote(q)

            elif choice == "7":
                quote_id = _prompt("quote id: ")
                if quote_repo.find_by_id(quote_id) is None:
                    raise ValidationError(f"Unknown quote id: {quote_id}")
                manager.begin_edit(quote_id)
                run_editor(manager)

            elif choice == "8":
                quote_repo.remove(_prompt("quote id: "))
                print("Deleted.")

            elif choice == "9":
                q = quote_repo.find_by_id(_prompt("quote id: "))
                if q is None:
                    print("Quote not found.")
                else:
                    print()
                    print(quote_summary(q))

            elif choice == "10":
                quotes = quote_repo.list()
                print("Upcoming follow-ups:")
                now = datetime.now().astimezone()
                for r in follow_up_schedule(quotes, tz=now.tzinfo, since=now):
                    print(f'  {r["date"].date().isoformat()} {r["label"]}: {r["title"]} ({r["customer_name"]})')
                print("Totals by status:")
                for status, row in status_totals(quotes).items():
                    print(f'  {status}: {row["count"]} quotes, {money(row["total"])}')

            elif choice == "11":
                n = import_customers_csv(_prompt("path to customers.csv: "), customer_repo)
                print(f"Imported customers: {n}")

            elif choice == "12":
                n = export_quotes_json(_prompt("output path (quotes.json): ") or "quotes.json", quote_repo)
                print(f"Exported quotes: {n}")

            else:
                print("Unknown choice.")

        except ValidationError as e:
            print(f"[INPUT ERROR] {e}")
        except ImportFileError as e:
            print(f"[IMPORT ERROR] {e}")
        except ValueError as e:
            print(f"[VALUE ERROR] {e}")
        except Exception as e:
            print(f"[ERROR] {type(e).__name__}: {e}")
