"""No-op store — for dry runs that must not touch any persisted state."""

from __future__ import annotations

from prgate_store.base import BaseStore


class NoOpStore(BaseStore):
    """Silently discards all snapshots; every run looks like a first run."""

    def load(self, state_id: str) -> dict | None:
        return None

    def save(self, state_id: str, snapshot: dict) -> None:
        pass  # intentional no-op
