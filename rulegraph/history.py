"""Linear undo/redo history for a GraphStore, with autosave.

History holds value copies only. ``past`` is oldest first and ``future`` is
nearest first; a new commit after an undo drops the whole ``future``.
"""

import logging

from pydantic import ValidationError

from rulegraph.adapters.storage import KeyValueStore
from rulegraph.errors import StorageError
from rulegraph.models.graph import GraphSnapshot
from rulegraph.store import GraphStore

logger = logging.getLogger(__name__)

AUTOSAVE_KEY = "cursor-rules-autosave"


class HistoryManager:
    """Snapshot history bound to one store.

    Subscribes to the store on construction, so every committed mutation is
    recorded and autosaved. Undo and redo write the restored state back into
    the store without recording it again, and autosave it.
    """

    def __init__(
        self,
        store: GraphStore,
        storage: KeyValueStore | None = None,
        autosave_key: str = AUTOSAVE_KEY,
        max_entries: int | None = None,
    ) -> None:
        """
        Args:
            store: the store whose commits are recorded.
            storage: durable store for autosave. No autosave when None.
            autosave_key: key the current state is written under.
            max_entries: cap on undo steps; oldest entries are dropped.
        """
        self._store = store
        self._storage = storage
        self.autosave_key = autosave_key
        self.max_entries = max_entries
        self._past: list[GraphSnapshot] = []
        self._present: GraphSnapshot = store.snapshot()
        self._future: list[GraphSnapshot] = []
        store.add_listener(self.commit)

    @property
    def present(self) -> GraphSnapshot:
        return self._present.copy_deep()

    @property
    def past(self) -> list[GraphSnapshot]:
        return [entry.copy_deep() for entry in self._past]

    @property
    def future(self) -> list[GraphSnapshot]:
        return [entry.copy_deep() for entry in self._future]

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    def commit(self, state: GraphSnapshot) -> None:
        """Record a new present state and autosave it."""
        self._past.append(self._present.copy_deep())
        if self.max_entries is not None and len(self._past) > self.max_entries:
            del self._past[: len(self._past) - self.max_entries]
        self._present = state.copy_deep()
        self._future = []
        logger.debug("commit: %d undo steps", len(self._past))
        self.autosave()

    def undo(self) -> GraphSnapshot | None:
        """Step back one state. Returns the restored state, or None if there is none."""
        if not self._past:
            return None
        previous = self._past.pop()
        self._future.insert(0, self._present.copy_deep())
        self._present = previous
        self._store.restore(previous)
        self.autosave()
        return previous.copy_deep()

    def redo(self) -> GraphSnapshot | None:
        """Step forward one state. Returns the restored state, or None if there is none."""
        if not self._future:
            return None
        following = self._future.pop(0)
        self._past.append(self._present.copy_deep())
        self._present = following
        self._store.restore(following)
        self.autosave()
        return following.copy_deep()

    def clear(self) -> None:
        """Forget past and future, keeping the present state."""
        self._past = []
        self._future = []

    def autosave(self) -> None:
        """Write the present state to storage; failures are logged."""
        if self._storage is None:
            return
        try:
            self._storage.set(
                self.autosave_key,
                self._present.model_dump(mode="json", by_alias=True),
            )
        except StorageError:
            logger.exception("Failed to autosave graph")

    def __repr__(self) -> str:
        return f"HistoryManager(past={len(self._past)}, future={len(self._future)})"


def load_autosave(
    storage: KeyValueStore | None,
    key: str = AUTOSAVE_KEY,
) -> GraphSnapshot | None:
    """Read the autosaved graph, if there is a usable one.

    Returns None when nothing is stored, the data does not validate, or the
    saved graph has no nodes.
    """
    if storage is None:
        return None
    try:
        data = storage.get(key)
    except StorageError:
        logger.exception("Failed to load autosaved graph")
        return None
    if not data:
        return None
    try:
        snapshot = GraphSnapshot.model_validate(data)
    except ValidationError as e:
        logger.warning("Ignoring invalid autosave data: %s", e)
        return None
    if not snapshot.nodes:
        return None
    return snapshot
