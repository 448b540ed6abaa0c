# signing/logic/history_manager.py
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from ..exceptions.errors import ConcurrentMutationError, DocumentNotLoadedError
from ..models.document_snapshot import DocumentSnapshot
from ..models.signing_enums import HistoryState

logger = logging.getLogger(__name__)


class HistoryManager:
    """
    Owns the active snapshot, the original snapshot and the undo stack.

    The original is held out-of-band and never pushed. A snapshot is pushed
    right before each mutation (when undo is enabled) so that ``undo`` returns
    to the state the user saw before that mutation.
    """

    def __init__(self, *, enabled: bool = True) -> None:
        self.enabled = bool(enabled)
        self._original: Optional[DocumentSnapshot] = None
        self._current: Optional[DocumentSnapshot] = None
        self._stack: List[DocumentSnapshot] = []
        self._modified = False
        self._state = HistoryState.IDLE
        self._pushed_for_mutation = False

    # ------------------------------------------------------------------ #
    #  Read access
    # ------------------------------------------------------------------ #
    @property
    def current(self) -> Optional[DocumentSnapshot]:
        return self._current

    @property
    def original(self) -> Optional[DocumentSnapshot]:
        return self._original

    @property
    def entries(self) -> Tuple[DocumentSnapshot, ...]:
        return tuple(self._stack)

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def can_undo(self) -> bool:
        return bool(self._stack)

    @property
    def state(self) -> HistoryState:
        return self._state

    @property
    def has_unsaved_modification(self) -> bool:
        return self._modified

    # ------------------------------------------------------------------ #
    #  Transitions
    # ------------------------------------------------------------------ #
    def load_original(self, snapshot: DocumentSnapshot) -> None:
        original = snapshot if snapshot.is_original else DocumentSnapshot(snapshot.data, is_original=True)
        self._original = original
        self._current = original
        self._stack.clear()
        self._modified = False
        logger.debug("Original document installed (%d bytes)", len(original))

    @contextmanager
    def mutation(self) -> Iterator["HistoryManager"]:
        """
        Guard for one mutate-and-publish step. A second mutation while one is
        running is refused with ConcurrentMutationError.
        """
        if self._state == HistoryState.MUTATING:
            raise ConcurrentMutationError()
        if self._current is None:
            raise DocumentNotLoadedError()
        self._state = HistoryState.MUTATING
        self._pushed_for_mutation = False
        try:
            yield self
        finally:
            self._pushed_for_mutation = False
            self._state = HistoryState.IDLE

    def snapshot_before_mutation(self) -> None:
        if not self.enabled or self._current is None:
            return
        self._stack.append(self._current)
        self._pushed_for_mutation = True

    def discard_pre_mutation_snapshot(self) -> None:
        """Drop the entry pushed for a mutation that did not publish."""
        if self._pushed_for_mutation and self._stack:
            self._stack.pop()
        self._pushed_for_mutation = False

    def publish(self, snapshot: DocumentSnapshot) -> None:
        self._current = snapshot
        self._modified = True
        self._pushed_for_mutation = False

    def undo(self) -> Optional[DocumentSnapshot]:
        """Restore the previous snapshot; None when there is nothing to undo."""
        if not self._stack:
            return None
        previous = self._stack.pop()
        self._current = previous
        self._modified = not previous.same_bytes(self._original)
        return previous

    def reset(self) -> Optional[DocumentSnapshot]:
        self._stack.clear()
        self._current = self._original
        self._modified = False
        return self._current
