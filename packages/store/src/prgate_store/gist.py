"""GistStore — zero-infrastructure shared review state via GitHub Gist.

Why Gist:
- Zero infra: no DB to provision and no bucket to manage.
- Built-in access control: Gist ACL == GitHub account access.
- Survives across CI runners, unlike a workspace file.

Data format: a single JSON file named `prgate_state.json` inside the Gist,
holding an object that maps state id → snapshot.
"""

from __future__ import annotations

import json
import logging
import os

from prgate_store.base import BaseStore, StoreError

logger = logging.getLogger(__name__)

_GIST_FILENAME = "prgate_state.json"


class GistStore(BaseStore):
    """Stores review state for many pull requests in one Gist file.

    Each save() rewrites the whole file, so concurrent gates against the same
    Gist can lose updates; serialize CI jobs that share a Gist.
    """

    def __init__(self, gist_id: str, token: str):
        try:
            from github import Github
        except ImportError:
            raise ImportError("PyGithub is required for GistStore. Install it with: pip install PyGithub")
        self._gist_id = gist_id
        self._gh = Github(token)

    def _get_gist(self):
        return self._gh.get_gist(self._gist_id)

    def load(self, state_id: str) -> dict | None:
        """Return the snapshot for ``state_id``; a missing file or key is None.

        A Gist that cannot be fetched raises StoreError rather than reading as empty.
        """
        try:
            gist = self._get_gist()
        except Exception as e:
            raise StoreError(f"Could not fetch Gist {self._gist_id}: {type(e).__name__}: {e}") from e
        return self._read_states(gist).get(state_id)

    def save(self, state_id: str, snapshot: dict) -> None:
        """Write the snapshot into the Gist file, keeping every other state."""
        try:
            gist = self._get_gist()
            states = self._read_states(gist)
            states[state_id] = snapshot
            gist.edit(files={_GIST_FILENAME: {"content": json.dumps(states, indent=2)}})
        except Exception as e:
            # Never abort the gate because persistence failed; the result
            # file is the critical path.
            logger.warning("GistStore.save() failed (%s): %s", type(e).__name__, e)
            msg = f"Warning: could not persist review state to Gist ({type(e).__name__}: {e})"
            if os.environ.get("GITHUB_ACTIONS") == "true":
                msg += (
                    "\nThe built-in GITHUB_TOKEN does not have Gist permissions. "
                    "Use a PAT with 'gist' scope stored as a repository secret."
                )
            print(msg)

    def _read_states(self, gist) -> dict:
        """Read the current state map from the Gist file, or return {}."""
        file_obj = gist.files.get(_GIST_FILENAME)
        if file_obj is None:
            return {}
        try:
            states = json.loads(file_obj.content) or {}
        except (json.JSONDecodeError, AttributeError, TypeError):
            return {}
        return states if isinstance(states, dict) else {}
