"""
signing/tests/test_history_manager.py

Unit tests for the snapshot history / undo state machine.
"""

from __future__ import annotations

import unittest

from signing.exceptions.errors import ConcurrentMutationError, DocumentNotLoadedError
from signing.logic.history_manager import HistoryManager
from signing.models.document_snapshot import DocumentSnapshot
from signing.models.signing_enums import HistoryState

ORIGINAL = DocumentSnapshot(b"%PDF-original", is_original=True)
FIRST = DocumentSnapshot(b"%PDF-first")
SECOND = DocumentSnapshot(b"%PDF-second")


def _mutate(history: HistoryManager, result: DocumentSnapshot) -> None:
    with history.mutation():
        history.snapshot_before_mutation()
        history.publish(result)


class TestHistoryManager(unittest.TestCase):
    def setUp(self) -> None:
        self.history = HistoryManager()
        self.history.load_original(ORIGINAL)

    def test_load_original(self) -> None:
        self.assertIs(self.history.current, ORIGINAL)
        self.assertEqual(self.history.depth, 0)
        self.assertFalse(self.history.can_undo)
        self.assertFalse(self.history.has_unsaved_modification)

    def test_load_marks_snapshot_original(self) -> None:
        history = HistoryManager()
        history.load_original(DocumentSnapshot(b"%PDF-x"))
        self.assertTrue(history.original.is_original)

    def test_undo_on_empty_history(self) -> None:
        self.assertIsNone(self.history.undo())
        self.assertIs(self.history.current, ORIGINAL)

    def test_undo_after_one_mutation_restores_original(self) -> None:
        _mutate(self.history, FIRST)
        self.assertTrue(self.history.has_unsaved_modification)
        restored = self.history.undo()
        self.assertEqual(restored.data, ORIGINAL.data)
        self.assertEqual(self.history.depth, 0)
        self.assertFalse(self.history.has_unsaved_modification)

    def test_undo_after_two_mutations(self) -> None:
        _mutate(self.history, FIRST)
        _mutate(self.history, SECOND)
        self.assertEqual(self.history.depth, 2)
        self.assertTrue(self.history.can_undo)
        self.assertIs(self.history.undo(), FIRST)
        self.assertTrue(self.history.has_unsaved_modification)
        self.assertEqual(self.history.depth, 1)

    def test_reset_restores_original(self) -> None:
        _mutate(self.history, FIRST)
        _mutate(self.history, SECOND)
        self.assertIs(self.history.reset(), ORIGINAL)
        self.assertEqual(self.history.depth, 0)
        self.assertFalse(self.history.has_unsaved_modification)

    def test_original_never_on_stack_twice(self) -> None:
        _mutate(self.history, FIRST)
        self.history.undo()
        _mutate(self.history, SECOND)
        self.assertEqual(self.history.entries, (ORIGINAL,))

    def test_undo_disabled(self) -> None:
        history = HistoryManager(enabled=False)
        history.load_original(ORIGINAL)
        _mutate(history, FIRST)
        self.assertEqual(history.depth, 0)
        self.assertIsNone(history.undo())
        self.assertIs(history.current, FIRST)

    def test_concurrent_mutation_refused(self) -> None:
        with self.history.mutation():
            self.assertEqual(self.history.state, HistoryState.MUTATING)
            with self.assertRaises(ConcurrentMutationError):
                with self.history.mutation():
                    pass
        self.assertEqual(self.history.state, HistoryState.IDLE)

    def test_failed_mutation_leaves_no_entry(self) -> None:
        with self.assertRaises(RuntimeError):
            with self.history.mutation():
                self.history.snapshot_before_mutation()
                try:
                    raise RuntimeError("encode failed")
                except RuntimeError:
                    self.history.discard_pre_mutation_snapshot()
                    raise
        self.assertEqual(self.history.depth, 0)
        self.assertIs(self.history.current, ORIGINAL)
        self.assertEqual(self.history.state, HistoryState.IDLE)

    def test_mutation_requires_document(self) -> None:
        with self.assertRaises(DocumentNotLoadedError):
            with HistoryManager().mutation():
                pass


if __name__ == "__main__":
    unittest.main()
