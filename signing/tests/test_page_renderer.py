"""
signing/tests/test_page_renderer.py

pypdfium2 preview rendering and the explicit one-time initialization.
"""

from __future__ import annotations

import unittest

from signing.exceptions.errors import InvalidTargetPageError, RendererNotInitializedError
from signing.logic import page_renderer
from signing.tests.pdf_fixtures import LETTER, make_pdf


class TestPageRenderer(unittest.TestCase):
    def test_render_before_init_refused(self) -> None:
        saved = page_renderer._initialized
        page_renderer._initialized = False
        try:
            with self.assertRaises(RendererNotInitializedError):
                page_renderer.render_page(make_pdf(), 0)
        finally:
            page_renderer._initialized = saved

    def test_initialize_is_idempotent(self) -> None:
        page_renderer.initialize_renderer()
        page_renderer.initialize_renderer()
        self.assertTrue(page_renderer.is_renderer_initialized())

    def test_render_page_size(self) -> None:
        page_renderer.initialize_renderer()
        image = page_renderer.render_page(make_pdf([LETTER, (200.0, 100.0)]), 1, scale=2.0)
        self.assertEqual(image.size, (400, 200))

    def test_render_all_pages(self) -> None:
        page_renderer.initialize_renderer()
        images = page_renderer.render_pages(make_pdf([LETTER, LETTER, LETTER]), scale=0.5)
        self.assertEqual([im.size for im in images], [(306, 396)] * 3)

    def test_render_missing_page(self) -> None:
        page_renderer.initialize_renderer()
        with self.assertRaises(InvalidTargetPageError):
            page_renderer.render_page(make_pdf(), 3)


class TestSessionRendering(unittest.IsolatedAsyncioTestCase):
    async def test_all_pages_rendered_fires_once(self) -> None:
        from signing.logic.editor_session import EditorSession
        from signing.models.editor_config import EditorConfig

        calls = []
        session = EditorSession(EditorConfig(pdf_bytes=make_pdf([LETTER, LETTER]),
                                             on_all_pages_rendered=calls.append))
        page_renderer.initialize_renderer()
        await session.load()
        await session.render_pages(0.25)
        await session.render_pages(0.25)
        self.assertEqual(calls, [2])


if __name__ == "__main__":
    unittest.main()
