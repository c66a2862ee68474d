from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from ..config.loader import LedgerConfig

"""PostgreSQL connection handling.

Connection parameters are resolved in this order:
    1. `.env` values (loaded with override=True before resolving)
    2. DATABASE_URL / PGDSN as a complete DSN
    3. config `database.dsn`
    4. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE,
       falling back to the config `database` section per key
"""

__all__ = [
    "load_env_file",
    "resolve_dsn",
    "open_connection",
]

logger = logging.getLogger(__name__)


def load_env_file(path: Path, override: bool = True) -> bool:
    """Load a .env file with python-dotenv. Returns False if the file is absent."""
    if not path.exists():
        return False
    return load_dotenv(dotenv_path=path, override=override)


def resolve_dsn(cfg: LedgerConfig) -> str:
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn

    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def open_connection(cfg: LedgerConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Yield a psycopg2 connection; the record store manages its own transactions."""
    conn = psycopg2.connect(resolve_dsn(cfg))
    conn.autocommit = False
    try:
        yield conn
    finally:
        if not conn.closed:
            conn.close()
