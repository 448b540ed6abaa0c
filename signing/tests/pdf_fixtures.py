"""Small in-memory PDFs and signature images for the signing tests."""
from __future__ import annotations

import io
from typing import Sequence, Tuple

from PIL import Image, ImageDraw
from reportlab.pdfgen import canvas

LETTER = (612.0, 792.0)


def make_pdf(pages: Sequence[Tuple[float, float]] = (LETTER,)) -> bytes:
    """One page per size, each labelled 'Page N'."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=pages[0])
    for i, size in enumerate(pages, start=1):
        c.setPageSize(size)
        c.setFont("Helvetica", 12)
        c.drawString(36, size[1] - 36, f"Page {i}")
        c.showPage()
    c.save()
    return buf.getvalue()


def make_png(size: Tuple[int, int] = (200, 100)) -> bytes:
    """Transparent PNG with a diagonal black stroke."""
    img = Image.new("RGBA", size, (0, 0, 0, 0))
    ImageDraw.Draw(img).line([(5, size[1] - 5), (size[0] - 5, 5)], fill=(0, 0, 0, 255), width=3)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
