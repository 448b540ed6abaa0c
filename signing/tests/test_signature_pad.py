"""
signing/tests/test_signature_pad.py

Tests for stroke capture and PNG export.
"""

from __future__ import annotations

import io
import unittest

from PIL import Image

from signing.exceptions.errors import EmptySignatureError, InvalidSignatureImageError, ValidationError
from signing.logic.signature_pad import SignaturePad
from signing.tests.pdf_fixtures import make_png


class TestSignaturePad(unittest.TestCase):
    def setUp(self) -> None:
        self.pad = SignaturePad(300, 120)

    def _draw(self) -> None:
        self.pad.begin_stroke(10, 60)
        for x in range(20, 200, 10):
            self.pad.add_point(x, 60 + (x % 30))
        self.pad.end_stroke()

    def test_new_pad_is_empty(self) -> None:
        self.assertTrue(self.pad.is_empty)
        with self.assertRaises(EmptySignatureError) as cm:
            self.pad.to_png()
        self.assertEqual(str(cm.exception), "Please draw your signature")

    def test_strokes_render_to_transparent_png(self) -> None:
        self._draw()
        self.assertFalse(self.pad.is_empty)
        self.assertEqual(len(self.pad.strokes), 1)
        with Image.open(io.BytesIO(self.pad.to_png())) as im:
            self.assertEqual(im.size, (300, 120))
            self.assertEqual(im.mode, "RGBA")
            self.assertEqual(im.getpixel((299, 0))[3], 0)
            self.assertIsNotNone(im.getbbox())

    def test_single_tap_is_a_dot(self) -> None:
        self.pad.begin_stroke(50, 50)
        self.pad.end_stroke()
        with Image.open(io.BytesIO(self.pad.to_png())) as im:
            self.assertEqual(im.getpixel((50, 50))[3], 255)

    def test_clear(self) -> None:
        self._draw()
        self.pad.clear()
        self.assertTrue(self.pad.is_empty)

    def test_import_image(self) -> None:
        self.pad.import_image(make_png((240, 80)))
        self.assertFalse(self.pad.is_empty)
        self.assertEqual(self.pad.image_size, (240, 80))
        with Image.open(io.BytesIO(self.pad.to_png())) as im:
            self.assertEqual(im.size, (240, 80))

    def test_import_rejects_non_image(self) -> None:
        with self.assertRaises(InvalidSignatureImageError) as cm:
            self.pad.import_image(b"nope")
        self.assertIsInstance(cm.exception, ValidationError)
        self.assertNotIsInstance(cm.exception, EmptySignatureError)
        self.assertTrue(self.pad.is_empty)

    def test_drawing_replaces_imported_image(self) -> None:
        self.pad.import_image(make_png((240, 80)))
        self._draw()
        self.assertEqual(self.pad.image_size, (300, 120))


if __name__ == "__main__":
    unittest.main()
