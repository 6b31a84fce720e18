from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path


class ConfigError(Exception):
    pass


STORE_BACKENDS = ("file", "postgres", "memory")


@dataclass(frozen=True)
class DbConfig:
    host: str
    port: int
    name: str
    user: str
    password: str
    sslmode: str = "disable"


@dataclass(frozen=True)
class StoreConfig:
    backend: str = "file"
    path: str = ".quotedesk_store"


@dataclass(frozen=True)
class BusinessConfig:
    default_labor_rate: float = 120.0
    default_tax_rate: float = 0.09


@dataclass(frozen=True)
class AccessConfig:
    codes: tuple[str, ...] = ("AUTO2025", "DEMO123", "CLIENTPASS")


@dataclass(frozen=True)
class AppConfig:
    name: str
    log_level: str
    store: StoreConfig
    db: DbConfig | None
    business: BusinessConfig
    access: AccessConfig = field(default_factory=AccessConfig)
    secret_key: str = "change-this-secret-key-in-production"


def load_config(path: str | Path) -> AppConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {p.resolve()}")

    try:
        data = tomllib.loads(p.read_text(encoding="utf-8"))
    except Exception as e:
        raise ConfigError(f"Failed to read config TOML: {e}") from e

    return parse_config(data)


def parse_config(data: dict) -> AppConfig:
    try:
        app = data.get("app", {})
        store = data.get("store", {})
        business = data.get("business", {})
        access = data.get("access", {})

        backend = str(store.get("backend", "file")).lower()
        if backend not in STORE_BACKENDS:
            raise ConfigError(f"Unknown store backend: {backend!r} (expected one of {STORE_BACKENDS})")

        db = None
        if "db" in data:
            db_data = data["db"]
            db = DbConfig(
                host=str(db_data["host"]),
                port=int(db_data.get("port", 5432)),
                name=str(db_data["name"]),
                user=str(db_data["user"]),
                password=str(db_data["password"]),
                sslmode=str(db_data.get("sslmode", "disable")),
            )
        elif backend == "postgres":
            raise ConfigError("Store backend 'postgres' needs a [db] section.")

        codes = access.get("codes", AccessConfig.codes)
        if isinstance(codes, str) or not all(isinstance(c, str) for c in codes):
            raise ConfigError("[access] codes must be a list of strings.")

        return AppConfig(
            name=str(app.get("name", "QuoteDesk")),
            log_level=str(app.get("log_level", "INFO")).upper(),
            secret_key=str(app.get("secret_key", AppConfig.secret_key)),
            store=StoreConfig(
                backend=backend,
                path=str(store.get("path", os.environ.get("QUOTEDESK_STORE", StoreConfig.path))),
            ),
            db=db,
            business=BusinessConfig(
                default_labor_rate=float(business.get("default_labor_rate", 120.0)),
                default_tax_rate=float(business.get("default_tax_rate", 0.09)),
            ),
            access=AccessConfig(codes=tuple(c.strip() for c in codes if c.strip())),
        )
    except ConfigError:
        raise
    except KeyError as e:
        raise ConfigError(f"Missing config key: {e}") from e
    except Exception as e:
        raise ConfigError(f"Invalid config values: {e}") from e
