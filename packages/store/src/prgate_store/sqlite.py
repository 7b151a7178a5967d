"""SQLiteStore — local file-based store for runners that review many PRs.

Why SQLite:
- Batteries included: ships with Python, no extra dependencies.
- One database holds the state of every pull request, keyed by state id,
  instead of one JSON file per PR.
- Can serve as a CI cache (write to a path shared between jobs).

Schema:
  states — one row per state id; the snapshot is stored as JSON text.
"""

from __future__ import annotations

import json
import logging
import sqlite3

from prgate_store.base import BaseStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS states (
    id          TEXT PRIMARY KEY,
    updated_at  TEXT,
    state_json  TEXT NOT NULL
);
"""


class SQLiteStore(BaseStore):
    """Stores review state in a local SQLite database file.

    The database file path defaults to `.prgate.db` in the current working
    directory. Configure via .prgate.yml: `store_path: /path/to/prgate.db`.
    """

    def __init__(self, db_path: str = ".prgate.db"):
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def load(self, state_id: str) -> dict | None:
        row = self._conn.execute("SELECT state_json FROM states WHERE id=?", (state_id,)).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row["state_json"])
        except json.JSONDecodeError as e:
            logger.warning("Stored state %s is not valid JSON: %s", state_id, e)
            return None

    def save(self, state_id: str, snapshot: dict) -> None:
        self._conn.execute(
            """
            INSERT INTO states (id, updated_at, state_json)
            VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
              updated_at = excluded.updated_at,
              state_json = excluded.state_json
            """,
            (state_id, snapshot.get("updatedAt"), json.dumps(snapshot)),
        )
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()
