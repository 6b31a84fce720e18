from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass

import psycopg
from psycopg import Connection

from .config import DbConfig

log = logging.getLogger(__name__)


class DbError(Exception):
    pass


@dataclass(frozen=True)
class Db:
    cfg: DbConfig

    def connect(self) -> Connection:
        try:
            return psycopg.connect(
                host=self.cfg.host,
                port=self.cfg.port,
                dbname=self.cfg.name,
                user=self.cfg.user,
                password=self.cfg.password,
                sslmode=self.cfg.sslmode,
                autocommit=True,
            )
        except Exception as e:
            raise DbError(
                "Cannot connect to database. Check config.toml [db] and that PostgreSQL is running."
            ) from e

    @contextmanager
    def session(self) -> Connection:
        conn = self.connect()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Connection:
        conn = self.connect()
        try:
            conn.execute("BEGIN;")
            yield conn
            conn.execute("COMMIT;")
        except Exception:
            conn.execute("ROLLBACK;")
            raise
        finally:
            conn.close()


class PgStore:
    """Key-value store kept in a single PostgreSQL table."""

    def __init__(self, db: Db, table: str = "kv_store") -> None:
        self.db = db
        self.table = table

    def ensure_schema(self) -> None:
        with self.db.transaction() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                  key text PRIMARY KEY,
                  value text NOT NULL,
                  updated_at timestamptz NOT NULL DEFAULT now()
                );
                """
            )

    def get(self, key: str) -> str | None:
        try:
            with self.db.session() as conn:
                cur = conn.execute(f"SELECT value FROM {self.table} WHERE key = %s;", (key,))
                row = cur.fetchone()
        except (DbError, psycopg.Error) as e:
            log.warning("Cannot read %r from database: %s", key, e)
            return None
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        try:
            with self.db.transaction() as conn:
                conn.execute(
                    f"""
                    INSERT INTO {self.table}(key, value)
                    VALUES (%s, %s)
                    ON CONFLICT (key) DO UPDATE SET
                      value = EXCLUDED.value,
                      updated_at = now();
                    """,
                    (key, value),
                )
        except (DbError, psycopg.Error) as e:
            log.warning("Cannot write %r to database: %s", key, e)

    def remove(self, key: str) -> None:
        try:
            with self.db.transaction() as conn:
                conn.execute(f"DELETE FROM {self.table} WHERE key = %s;", (key,))
        except (DbError, psycopg.Error) as e:
            log.warning("Cannot remove %r from database: %s", key, e)
