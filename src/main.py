from __future__ import annotations

import logging
import sys

from quotedesk.cli import run_cli
from quotedesk.config import ConfigError, load_config
from quotedesk.db import DbError
from quotedesk.store import open_store


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    config_path = argv[0] if argv else "config.toml"
    try:
        cfg = load_config(config_path)
        logging.basicConfig(
            level=cfg.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        store = open_store(cfg)
        run_cli(store, cfg)
        return 0
    except ConfigError as e:
        print(f"[CONFIG ERROR] {e}")
        return 2
    except DbError as e:
        print(f"[DB ERROR] {e}")
        return 3
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
