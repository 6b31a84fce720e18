from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime

from flask import Flask, abort, flash, redirect, render_template, request, url_for

from quotedesk.access import AccessGate
from quotedesk.config import AppConfig, ConfigError, load_config
from quotedesk.db import DbError
from quotedesk.domain import QUOTE_STATUSES, DraftItem, ValidationError
from quotedesk.importers import ImportFileError, import_customers_csv
from quotedesk.pricing import line_total, money, percent
from quotedesk.reports import follow_up_schedule, print_view, quote_summary, status_totals
from quotedesk.repositories.customer_repo import CustomerRepository
from quotedesk.repositories.quote_repo import QuoteRepository
from quotedesk.services.draft_manager import DraftManager
from quotedesk.store import Store, open_store

app = Flask(__name__, template_folder="../templates")
app.jinja_env.filters["money"] = money
app.jinja_env.filters["percent"] = percent
app.jinja_env.globals["line_total"] = line_total

cfg: AppConfig = None
store: Store = None
customer_repo: CustomerRepository = None
quote_repo: QuoteRepository = None
gate: AccessGate = None


def configure(config: AppConfig, backing_store: Store) -> Flask:
    global cfg, store, customer_repo, quote_repo, gate
    cfg = config
    store = backing_store
    customer_repo = CustomerRepository(store)
    quote_repo = QuoteRepository(store)
    gate = AccessGate(store, cfg.access.codes)
    app.secret_key = cfg.secret_key
    return app


def _manager() -> DraftManager:
    manager = DraftManager(
        store,
        customer_repo,
        quote_repo,
        default_labor_rate=cfg.business.default_labor_rate,
        default_tax_rate=cfg.business.default_tax_rate,
    )
    manager.load()
    return manager


@app.before_request
def require_access():
    if request.endpoint in ("unlock", "static"):
        return None
    if not gate.is_unlocked():
        return redirect(url_for("unlock"))
    return None


@app.route("/unlock", methods=["GET", "POST"])
def unlock():
    if request.method == "POST":
        if gate.unlock(request.form.get("code", "")):
            return redirect(url_for("index"))
        flash("That code doesn't match. Ask the owner for your access code.", "danger")
    return render_template("unlock.html")


@app.route("/lock", methods=["POST"])
def lock():
    gate.lock()
    return redirect(url_for("unlock"))


@app.route("/")
def index():
    quotes = quote_repo.list()
    now = datetime.now().astimezone()
    upcoming = follow_up_schedule(quotes, tz=now.tzinfo, since=now)[:10]
    return render_template(
        "index.html",
        totals=status_totals(quotes),
        upcoming=upcoming,
        customer_count=len(customer_repo.list()),
    )


@app.route("/customers", methods=["GET", "POST"])
def customers_list():
    if request.method == "POST":
        customer = customer_repo.add(
            request.form.get("name", ""),
            request.form.get("phone", ""),
            request.form.get("email", ""),
        )
        if customer is None:
            flash("Name is required", "warning")
        else:
            flash(f"Customer {customer.name} added", "success")
        return redirect(url_for("customers_list"))

    query = request.args.get("q", "")
    return render_template("customers.html", customers=customer_repo.search(query), query=query)


@app.route("/customers/<customer_id>/delete", methods=["POST"])
def customers_delete(customer_id):
    customer_repo.remove(customer_id)
    flash("Customer deleted", "success")
    return redirect(url_for("customers_list"))


@app.route("/customers/import", methods=["POST"])
def customers_import():
    file = request.files.get("file")
    if not file or file.filename == "":
        flash("No file selected", "warning")
        return redirect(url_for("customers_list"))

    fd, path = tempfile.mkstemp(suffix=".csv")
    try:
        file.save(path)
        n = import_customers_csv(path, customer_repo)
        flash(f"Imported {n} customers", "success")
    except ImportFileError as e:
        flash(f"Import error: {e}", "danger")
    finally:
        os.close(fd)
        os.unlink(path)
    return redirect(url_for("customers_list"))


@app.route("/quotes")
def quotes_list():
    quotes = quote_repo.list()
    return render_template("quotes_list.html", quotes=[print_view(q) for q in quotes])


def _apply_form(manager: DraftManager) -> None:
    form = request.form
    manager.set_title(form.get("title", ""))
    manager.set_status(form.get("status", "Draft"))
    manager.set_notes(form.get("notes", ""))
    manager.set_tax_rate(form.get("tax_rate", "0"))
    if "customer_id" in form:
        manager.select_customer(form.get("customer_id", ""))
    manager.set_items(
        DraftItem(id=item_id, name=name, qty=qty, unit=unit)
        for item_id, name, qty, unit in zip(
            form.getlist("item_id"),
            form.getlist("item_name"),
            form.getlist("item_qty"),
            form.getlist("item_unit"),
        )
    )


@app.route("/quotes/new", methods=["GET", "POST"])
def quotes_new():
    manager = _manager()
    summary = None

    if request.method == "POST":
        action = request.form.get("action", "update")
        _apply_form(manager)

        if action == "add_item":
            manager.add_item()
        elif action.startswith("remove_item:"):
            manager.remove_item(action.split(":", 1)[1])
        elif action == "copy":
            summary = manager.summary()
        elif action == "clear":
            manager.clear()
            flash("Draft cleared", "info")
            return redirect(url_for("quotes_new"))
        elif action == "save":
            was_editing = manager.is_editing_existing
            try:
                manager.save()
                flash("Updated quote" if was_editing else "Saved quote", "success")
                return redirect(url_for("quotes_list"))
            except ValidationError as e:
                flash(str(e), "warning")

    return render_template(
        "quote_editor.html",
        manager=manager,
        draft=manager.draft,
        totals=manager.totals(),
        statuses=QUOTE_STATUSES,
        summary=summary,
    )


@app.route("/quotes/<quote_id>/edit", methods=["POST"])
def quotes_edit(quote_id):
    if quote_repo.find_by_id(quote_id) is None:
        flash("Quote not found", "warning")
        return redirect(url_for("quotes_list"))
    _manager().begin_edit(quote_id)
    return redirect(url_for("quotes_new"))


@app.route("/quotes/<quote_id>/delete", methods=["POST"])
def quotes_delete(quote_id):
    quote_repo.remove(quote_id)
    flash("Quote deleted", "success")
    return redirect(url_for("quotes_list"))


@app.route("/quotes/<quote_id>/print")
def quotes_print(quote_id):
    quote = quote_repo.find_by_id(quote_id)
    if quote is None:
        abort(404)
    return render_template("quote_print.html", view=print_view(quote), summary=quote_summary(quote))


@app.errorhandler(404)
def not_found(e):
    return render_template("not_found.html"), 404


if __name__ == "__main__":
    try:
        config = load_config("config.toml")
        logging.basicConfig(level=config.log_level)
        configure(config, open_store(config))
        app.run(debug=True, host="127.0.0.1", port=5000)
    except ConfigError as e:
        print(f"[CONFIG ERROR] {e}")
        raise SystemExit(2)
    except DbError as e:
        print(f"[DB ERROR] {e}")
        raise SystemExit(3)
