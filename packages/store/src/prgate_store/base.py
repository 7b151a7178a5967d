"""Abstract store interface.

A store persists ledger snapshots (plain JSON-compatible dicts) keyed by
state id. The gate depends on BaseStore — not on a concrete backend — so
backends are swappable without touching the pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class StoreError(Exception):
    """The backend could not be reached, so the stored state is unknown.

    Distinct from "no state yet": callers must not start a fresh record.
    """


class BaseStore(ABC):
    """Pluggable persistence layer for review state.

    Implementations must be safe to call from CI environments where no
    interactive credentials are available — all auth must happen via
    constructor arguments or environment variables resolved at init time.
    """

    @abstractmethod
    def load(self, state_id: str) -> dict | None:
        """Return the stored snapshot for ``state_id``, or None if there is none.

        An unreadable snapshot is reported as None so the caller starts fresh.
        Raises StoreError when the backend itself is unavailable.
        """

    @abstractmethod
    def save(self, state_id: str, snapshot: dict) -> None:
        """Persist a snapshot, replacing any previous one for ``state_id``."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional — subclasses that need cleanup should override this.
        Default is a no-op so callers can always call close() safely.
        """
