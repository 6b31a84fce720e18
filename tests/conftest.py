from __future__ import annotations

import itertools
from datetime import datetime, timezone

import pytest

from quotedesk.repositories.customer_repo import CustomerRepository
from quotedesk.repositories.quote_repo import QuoteRepository
from quotedesk.services.draft_manager import DraftManager
from quotedesk.store import MemoryStore

CREATED = datetime(2024, 1, 30, 10, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now: datetime = CREATED) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _ids(prefix: str):
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def customers(store, clock):
    return CustomerRepository(store, clock=clock, id_factory=_ids("c"))


@pytest.fixture
def quotes(store, clock):
    return QuoteRepository(store, clock=clock, id_factory=_ids("q"))


@pytest.fixture
def manager(store, customers, quotes):
    m = DraftManager(store, customers, quotes)
    m.load()
    return m


@pytest.fixture
def jane(customers):
    return customers.add("Jane Doe", "555-0100", "jane@x.com")
