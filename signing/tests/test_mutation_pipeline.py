"""
signing/tests/test_mutation_pipeline.py

Tests for applying a placement plan to a document snapshot.
"""

from __future__ import annotations

import io
import unittest

from pypdf import PdfReader

from signing.exceptions.errors import DocumentDecodeError, EmbedError, InvalidTargetPageError
from signing.logic.mutation_pipeline import DocumentMutationPipeline
from signing.models.document_snapshot import DocumentSnapshot
from signing.models.placement_plan import DrawImageOperation, DrawTextOperation, PlacementPlan
from signing.models.signing_enums import FieldType
from signing.tests.pdf_fixtures import LETTER, make_pdf, make_png


def _image(page: int) -> DrawImageOperation:
    return DrawImageOperation(page_index=page, x=72, y=100, width=130, height=65)


def _text(page: int, text: str, *, optional: bool = False) -> DrawTextOperation:
    return DrawTextOperation(page_index=page, text=text, x=72, y=89, size=11.5, field=FieldType.NAME,
                             optional=optional)


class TestDocumentMutationPipeline(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.pipeline = DocumentMutationPipeline()
        self.original = DocumentSnapshot(make_pdf([LETTER, LETTER]), is_original=True)
        self.png = make_png()

    async def test_apply_produces_new_snapshot(self) -> None:
        plan = PlacementPlan(image_operations=(_image(0),), text_operations=(_text(0, "Ann Smith"),))
        result = await self.pipeline.apply(self.original, plan, self.png)

        self.assertFalse(result.is_original)
        self.assertNotEqual(result.data, self.original.data)
        reader = PdfReader(io.BytesIO(result.data))
        self.assertEqual(len(reader.pages), 2)
        self.assertIn("Ann Smith", reader.pages[0].extract_text())
        self.assertGreaterEqual(len(reader.pages[0].images), 1)
        self.assertEqual(len(reader.pages[1].images), 0)

    async def test_invalid_signature_page_aborts(self) -> None:
        before = bytes(self.original.data)
        plan = PlacementPlan(image_operations=(_image(0), _image(4)))
        with self.assertRaises(InvalidTargetPageError):
            await self.pipeline.apply(self.original, plan, self.png)
        self.assertEqual(self.original.data, before)

    async def test_optional_text_on_missing_page_skipped(self) -> None:
        plan = PlacementPlan(
            image_operations=(_image(1),),
            text_operations=(_text(7, "lost", optional=True), _text(1, "kept", optional=True)),
        )
        with self.assertLogs("signing.logic.mutation_pipeline", level="WARNING") as logs:
            result = await self.pipeline.apply(self.original, plan, self.png)
        self.assertTrue(any("Skipping" in line for line in logs.output))
        text = PdfReader(io.BytesIO(result.data)).pages[1].extract_text()
        self.assertIn("kept", text)
        self.assertNotIn("lost", text)

    async def test_mandatory_text_on_missing_page_raises(self) -> None:
        plan = PlacementPlan(image_operations=(_image(0),), text_operations=(_text(9, "block"),))
        with self.assertRaises(InvalidTargetPageError):
            await self.pipeline.apply(self.original, plan, self.png)

    async def test_bad_image_raises_embed_error(self) -> None:
        plan = PlacementPlan(image_operations=(_image(0),))
        with self.assertRaises(EmbedError):
            await self.pipeline.apply(self.original, plan, b"\x89PNG broken")

    async def test_bad_document_raises_decode_error(self) -> None:
        plan = PlacementPlan(image_operations=(_image(0),))
        with self.assertRaises(DocumentDecodeError):
            await self.pipeline.apply(DocumentSnapshot(b"garbage"), plan, self.png)


if __name__ == "__main__":
    unittest.main()
