"""
SQLite connection registry.

One connection per database file, shared by the pipeline and the API.
Blocking calls are pushed onto worker threads by the async stages, so
connections are opened with ``check_same_thread=False`` and rely on
SQLite's own locking plus a busy timeout.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Optional

from devdose.config.settings import StorageSettings, get_settings

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
_open_connections: dict[str, sqlite3.Connection] = {}


def _resolve(db_path: Optional[Path]) -> Path:
    return get_settings().db_path if db_path is None else Path(db_path)


def get_connection(
    db_path: Optional[Path] = None,
    storage: Optional[StorageSettings] = None,
) -> sqlite3.Connection:
    """
    Return the shared connection for ``db_path``, opening it on first use.

    New connections get WAL journaling, a busy timeout and ``sqlite3.Row``
    rows so stores can read columns by name.
    """
    path = _resolve(db_path)
    key = str(path)

    with _registry_lock:
        existing = _open_connections.get(key)
        if existing is not None:
            return existing

        storage = storage or StorageSettings()
        path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(key, check_same_thread=False, timeout=10.0)
        conn.execute(f"PRAGMA journal_mode={storage.journal_mode}")
        conn.execute(f"PRAGMA busy_timeout={storage.busy_timeout_ms}")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.row_factory = sqlite3.Row

        _open_connections[key] = conn
        logger.info("Opened SQLite database %s (%s)", path, storage.journal_mode)
        return conn


def close_connection(db_path: Optional[Path] = None) -> None:
    """Close and forget the connection for ``db_path`` if one is open."""
    key = str(_resolve(db_path))
    with _registry_lock:
        conn = _open_connections.pop(key, None)
    if conn is not None:
        conn.close()
        logger.info("Closed SQLite database %s", key)


def close_all_connections() -> None:
    """Close every open connection; the CLI calls this before exiting."""
    with _registry_lock:
        connections = list(_open_connections.items())
        _open_connections.clear()
    for key, conn in connections:
        conn.close()
        logger.info("Closed SQLite database %s", key)
