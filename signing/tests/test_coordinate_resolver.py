"""
signing/tests/test_coordinate_resolver.py

Unit tests for raw position -> PDF point resolution.
"""

from __future__ import annotations

import unittest

from signing.exceptions.errors import InvalidTargetPageError
from signing.logic.coordinate_resolver import CoordinateResolver
from signing.models.element_position import PageMetrics, RawPosition
from signing.models.signing_enums import CoordinateMode, FieldType

LETTER = PageMetrics(612.0, 792.0)


class TestPageNormalization(unittest.TestCase):
    def test_one_based_pages(self) -> None:
        self.assertEqual(CoordinateResolver.normalize_page(1), 0)
        self.assertEqual(CoordinateResolver.normalize_page(3), 2)

    def test_zero_is_first_page(self) -> None:
        self.assertEqual(CoordinateResolver.normalize_page(0), 0)

    def test_negative_page_rejected(self) -> None:
        with self.assertRaises(InvalidTargetPageError):
            CoordinateResolver.normalize_page(-1)

    def test_page_out_of_range(self) -> None:
        with self.assertRaises(InvalidTargetPageError) as cm:
            CoordinateResolver.page_index_for(5, 3, what="signature")
        self.assertIn("Invalid signature page index 5", str(cm.exception))
        self.assertEqual(cm.exception.page_count, 3)


class TestPercentMode(unittest.TestCase):
    def setUp(self) -> None:
        self.resolver = CoordinateResolver(CoordinateMode.PERCENT)

    def test_y_flipped_from_top(self) -> None:
        pos = self.resolver.resolve(RawPosition(x=50, y=10, height=5, page_number=1), [LETTER])
        self.assertAlmostEqual(pos.x, 306.0)
        self.assertAlmostEqual(pos.height, 39.6)
        self.assertAlmostEqual(pos.y, 792.0 - 79.2 - 39.6)
        self.assertEqual(pos.page_index, 0)

    def test_values_clamped(self) -> None:
        pos = self.resolver.resolve(RawPosition(x=150, y=-20), [LETTER])
        self.assertAlmostEqual(pos.x, 612.0)
        self.assertAlmostEqual(pos.y, 792.0)

    def test_bottom_edge_clamped_at_zero(self) -> None:
        pos = self.resolver.resolve(RawPosition(x=0, y=100, height=10), [LETTER])
        self.assertEqual(pos.y, 0.0)

    def test_large_dimensions_are_points(self) -> None:
        pos = self.resolver.resolve(RawPosition(x=0, y=0, width=150, height=20), [LETTER])
        self.assertEqual(pos.width, 150.0)
        self.assertAlmostEqual(pos.height, 158.4)

    def test_uses_metrics_of_target_page(self) -> None:
        pages = [LETTER, PageMetrics(842.0, 595.0)]
        pos = self.resolver.resolve(RawPosition(x=50, y=50, page_number=2), pages)
        self.assertEqual(pos.page_index, 1)
        self.assertAlmostEqual(pos.x, 421.0)
        self.assertAlmostEqual(pos.y, 297.5)


class TestOtherModes(unittest.TestCase):
    def test_points_are_literal(self) -> None:
        resolver = CoordinateResolver(CoordinateMode.POINTS)
        pos = resolver.resolve(RawPosition(x=50, y=40, width=80, height=30), [LETTER])
        self.assertEqual((pos.x, pos.y, pos.width, pos.height), (50.0, 40.0, 80.0, 30.0))

    def test_normalized_fractions(self) -> None:
        resolver = CoordinateResolver(CoordinateMode.NORMALIZED)
        pos = resolver.resolve(RawPosition(x=0.5, y=0.25, width=0.1), [LETTER])
        self.assertAlmostEqual(pos.x, 306.0)
        self.assertAlmostEqual(pos.y, 594.0)
        self.assertAlmostEqual(pos.width, 61.2)

    def test_auto_sniffs_magnitude(self) -> None:
        resolver = CoordinateResolver(CoordinateMode.AUTO)
        pos = resolver.resolve(RawPosition(x=200, y=50), [LETTER])
        self.assertEqual(pos.x, 200.0)
        self.assertAlmostEqual(pos.y, 396.0)

    def test_resolution_is_deterministic(self) -> None:
        resolver = CoordinateResolver(CoordinateMode.PERCENT)
        entry = RawPosition(x=12.5, y=33.3, width=20, height=8, page_number=1)
        self.assertEqual(resolver.resolve(entry, [LETTER]), resolver.resolve(entry, [LETTER]))


class TestBatch(unittest.TestCase):
    def setUp(self) -> None:
        self.resolver = CoordinateResolver(CoordinateMode.PERCENT)

    def test_bucketing(self) -> None:
        entries = [
            RawPosition.from_dict({"x": 10, "y": 10, "pageNumber": 1}),
            RawPosition.from_dict({"x": 10, "y": 20, "pageNumber": 1, "type": "NAME"}),
            RawPosition.from_dict({"x": 10, "y": 30, "pageNumber": 1, "type": "DATE"}),
            RawPosition.from_dict({"x": 10, "y": 40, "pageNumber": 1, "type": "STAMP"}),
        ]
        resolved = self.resolver.resolve_targets(entries, [LETTER])
        self.assertEqual(len(resolved.signature_targets), 2)
        self.assertTrue(all(t.type == FieldType.SIGNATURE for t in resolved.signature_targets))
        self.assertEqual(len(resolved.metadata_targets.name), 1)
        self.assertEqual(len(resolved.metadata_targets.date), 1)
        self.assertEqual(resolved.metadata_targets.email, ())

    def test_invalid_metadata_entry_dropped(self) -> None:
        entries = [
            RawPosition(x=10, y=10, page_number=1),
            RawPosition(x=10, y=10, page_number=4, type=FieldType.EMAIL),
        ]
        resolved = self.resolver.resolve_targets(entries, [LETTER])
        self.assertEqual(len(resolved.signature_targets), 1)
        self.assertTrue(resolved.metadata_targets.is_empty)
        self.assertEqual(len(resolved.dropped), 1)

    def test_invalid_signature_entry_raises(self) -> None:
        entries = [RawPosition(x=10, y=10, page_number=5)]
        with self.assertRaises(InvalidTargetPageError):
            self.resolver.resolve_targets(entries, [LETTER, LETTER, LETTER])


if __name__ == "__main__":
    unittest.main()
