from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from ..domain import Customer, MalformedData, customer_from_dict, new_id, utc_now_iso
from ..store import Store, read_json, write_json

log = logging.getLogger(__name__)

CUSTOMERS_KEY = "customers"
CUSTOMERS_BACKUP_KEY = "customers_backup"


class CustomerRepository:
    """Customers, newest first, mirrored into a backup key.

    The backup is rewritten on every successful write (deletes included), so
    it only restores data lost from the primary key by other means.
    """

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

    def _read(self, key: str) -> list[Customer]:
        data = read_json(self.store, key)
        if not isinstance(data, list):
            return []
        out: list[Customer] = []
        for obj in data:
            try:
                out.append(customer_from_dict(obj))
            except MalformedData as e:
                log.warning("Dropping customer record from %r: %s", key, e)
        return out

    def _persist(self, customers: list[Customer]) -> None:
        payload = [c.to_dict() for c in customers]
        write_json(self.store, CUSTOMERS_KEY, payload)
        write_json(self.store, CUSTOMERS_BACKUP_KEY, payload)

    def list(self) -> list[Customer]:
        main = self._read(CUSTOMERS_KEY)
        if main:
            write_json(self.store, CUSTOMERS_BACKUP_KEY, [c.to_dict() for c in main])
            return main

        backup = self._read(CUSTOMERS_BACKUP_KEY)
        if backup:
            log.info("Customer list empty, restored %d customers from backup", len(backup))
            self._persist(backup)
        return backup

    def get(self, customer_id: str) -> Customer | None:
        for c in self.list():
            if c.id == customer_id:
                return c
        return None

    def add(self, name: str, phone: str = "", email: str = "") -> Customer | None:
        name = (name or "").strip()
        if not name:
            return None

        now = self.clock() if self.clock else None
        customer = Customer(
            id=self.id_factory(),
            name=name,
            phone=(phone or "").strip(),
            email=(email or "").strip(),
            created_at=utc_now_iso(now),
        )
        self._persist([customer, *self.list()])
        log.debug("Added customer %s", customer.id)
        return customer

    def remove(self, customer_id: str) -> None:
        self._persist([c for c in self.list() if c.id != customer_id])
        log.debug("Removed customer %s", customer_id)

    def search(self, query: str) -> list[Customer]:
        customers = self.list()
        q = (query or "").strip().lower()
        if not q:
            return customers
        return [
            c
            for c in customers
            if q in c.name.lower() or q in c.phone.lower() or q in c.email.lower()
        ]
