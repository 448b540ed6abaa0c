# signing/logic/page_renderer.py
"""
Page preview rasterizer (pypdfium2).

The PDFium library is initialized once per process through an explicit
``initialize_renderer()`` call before the first page is drawn.
"""
from __future__ import annotations
import logging
import threading
from typing import List

import pypdfium2 as pdfium
from PIL import Image

from ..exceptions.errors import DocumentDecodeError, InvalidTargetPageError, RendererNotInitializedError

logger = logging.getLogger(__name__)

_initialized = False
_init_lock = threading.Lock()


def initialize_renderer() -> None:
    """Idempotent one-time setup."""
    global _initialized
    with _init_lock:
        if _initialized:
            return
        # Opening an empty document forces the native library to load.
        pdfium.PdfDocument.new().close()
        _initialized = True
        logger.debug("PDF renderer initialized (pypdfium2 %s)", getattr(pdfium, "V_PYPDFIUM2", "?"))


def is_renderer_initialized() -> bool:
    return _initialized


def _open(data: bytes) -> pdfium.PdfDocument:
    if not _initialized:
        raise RendererNotInitializedError()
    try:
        return pdfium.PdfDocument(data)
    except pdfium.PdfiumError as ex:
        raise DocumentDecodeError(f"Unable to render PDF: {ex}") from ex


def render_page(data: bytes, index: int, scale: float = 1.0) -> Image.Image:
    """Page ``index`` (0-based) as a Pillow image; 1 pt = ``scale`` px."""
    pdf = _open(data)
    try:
        if index < 0 or index >= len(pdf):
            raise InvalidTargetPageError(index + 1, len(pdf), what="preview")
        page = pdf[index]
        try:
            return page.render(scale=scale).to_pil()
        finally:
            page.close()
    finally:
        pdf.close()


def render_pages(data: bytes, scale: float = 1.0) -> List[Image.Image]:
    pdf = _open(data)
    images: List[Image.Image] = []
    try:
        for i in range(len(pdf)):
            page = pdf[i]
            try:
                images.append(page.render(scale=scale).to_pil())
            finally:
                page.close()
    finally:
        pdf.close()
    return images
