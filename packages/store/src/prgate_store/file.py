"""JsonFileStore — one state document per JSON file.

This is the default store: CI jobs keep the file in their workspace or cache
and pass its path with --state-file. The path is the key, so ``state_id`` is
only used in log messages.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from prgate_store.base import BaseStore

logger = logging.getLogger(__name__)


class JsonFileStore(BaseStore):
    def __init__(self, path: str):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self, state_id: str) -> dict | None:
        if not self._path.exists():
            return None
        try:
            with open(self._path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Could not read state %s from %s: %s", state_id, self._path, e)
            return None

    def save(self, state_id: str, snapshot: dict) -> None:
        """Write the snapshot atomically: a temp file in the same directory is renamed over the target."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=self._path.name + ".", suffix=".tmp", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, indent=2)
                f.write("\n")
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Saved state %s to %s", state_id, self._path)
