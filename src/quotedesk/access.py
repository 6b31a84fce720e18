from __future__ import annotations

import logging
from typing import Iterable

from .store import Store

log = logging.getLogger(__name__)

ACCESS_KEY = "access_unlocked"


class AccessGate:
    """Shared-passphrase gate; once unlocked it stays unlocked for this store."""

    def __init__(self, store: Store, codes: Iterable[str]) -> None:
        self.store = store
        self.codes = frozenset(c.strip() for c in codes if c.strip())

    def is_unlocked(self) -> bool:
        return self.store.get(ACCESS_KEY) == "true"

    def unlock(self, code: str) -> bool:
        if (code or "").strip() not in self.codes:
            log.info("Rejected access code")
            return False
        self.store.set(ACCESS_KEY, "true")
        return True

    def lock(self) -> None:
        self.store.remove(ACCESS_KEY)
