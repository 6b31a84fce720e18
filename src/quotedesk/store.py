from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Protocol

from .config import AppConfig

log = logging.getLogger(__name__)


class Store(Protocol):
    """Persistent string key-value space.

    Implementations never raise: a missing key reads as ``None`` and a
    rejected write is logged and dropped, so callers keep their in-memory
    state as the working copy.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: dict[str, str] | None = None, *, quota: int | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.quota = quota

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota is not None:
            used = sum(len(k) + len(v) for k, v in self.data.items() if k != key)
            if used + len(key) + len(value) > self.quota:
                log.warning("Store quota exceeded, write to %r dropped", key)
                return
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class FileStore:
    """One file per key in a local directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / (_UNSAFE_KEY_CHARS.sub("-", key) + ".json")

    def get(self, key: str) -> str | None:
        p = self._path(key)
        try:
            return p.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            log.warning("Cannot read %s: %s", p, e)
            return None

    def set(self, key: str, value: str) -> None:
        p = self._path(key)
        tmp = p.with_suffix(".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, p)
        except OSError as e:
            log.warning("Cannot write %s: %s", p, e)

    def remove(self, key: str) -> None:
        p = self._path(key)
        try:
            p.unlink(missing_ok=True)
        except OSError as e:
            log.warning("Cannot remove %s: %s", p, e)


def read_json(store: Store, key: str) -> Any | None:
    raw = store.get(key)
    if raw is None or raw == "":
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        log.warning("Malformed JSON under %r ignored: %s", key, e)
        return None


def write_json(store: Store, key: str, value: Any) -> None:
    store.set(key, json.dumps(value, ensure_ascii=False))


def open_store(cfg: AppConfig) -> Store:
    backend = cfg.store.backend
    if backend == "memory":
        return MemoryStore()
    if backend == "postgres":
        from .db import Db, PgStore

        store = PgStore(Db(cfg.db))
        store.ensure_schema()
        return store
    return FileStore(cfg.store.path)
