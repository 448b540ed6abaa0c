from __future__ import annotations
from dataclasses import dataclass
from io import BytesIO
from typing import List, Tuple, Union

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError
from PIL import Image, UnidentifiedImageError
from reportlab.pdfgen import canvas
from reportlab.lib.utils import ImageReader

from ..exceptions.errors import DocumentDecodeError, EmbedError, EncodeError, InvalidTargetPageError
from ..models.element_position import PageMetrics
from ..models.placement_plan import RGB, TEXT_PRIMARY
from .placement_planner import scale_to_fit

TEXT_FONT = "Helvetica"


class EmbeddedImage:
    """Signature raster embedded once per document and drawn on any page."""

    def __init__(self, image: Image.Image) -> None:
        self._image = image.convert("RGBA")

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    def scale_to_fit(self, width: float, height: float) -> Tuple[float, float]:
        return scale_to_fit((self.width, self.height), (width, height))

    def reader(self) -> ImageReader:
        return ImageReader(self._image)


@dataclass(frozen=True)
class _ImageDraw:
    image: EmbeddedImage
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class _TextDraw:
    text: str
    x: float
    y: float
    size: float
    color: RGB


class PdfPageModel:
    """
    One page of a loaded document. Draw calls are recorded and painted into a
    same-sized overlay that is merged onto the page when the document is saved.
    Coordinates are points relative to the media box's bottom-left corner.
    """

    def __init__(self, index: int, page) -> None:
        self.index = index
        self._page = page
        box = page.mediabox
        self._left = float(box.left)
        self._bottom = float(box.bottom)
        self.width = float(box.width)
        self.height = float(box.height)
        self._draws: List[Union[_ImageDraw, _TextDraw]] = []

    @property
    def metrics(self) -> PageMetrics:
        return PageMetrics(self.width, self.height)

    @property
    def has_drawings(self) -> bool:
        return bool(self._draws)

    def draw_image(self, image: EmbeddedImage, x: float, y: float, width: float, height: float) -> None:
        self._draws.append(_ImageDraw(image, float(x), float(y), float(width), float(height)))

    def draw_text(self, text: str, x: float, y: float, size: float, color: RGB = TEXT_PRIMARY) -> None:
        self._draws.append(_TextDraw(str(text), float(x), float(y), float(size), color))

    def _make_overlay(self) -> bytes:
        """Overlay page (same size as the target page) with all recorded draws in order."""
        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=(self.width, self.height))
        for draw in self._draws:
            x = self._left + draw.x
            y = self._bottom + draw.y
            if isinstance(draw, _ImageDraw):
                c.drawImage(draw.image.reader(), x, y, width=draw.width, height=draw.height, mask="auto")
            else:
                r, g, b = draw.color
                c.setFillColorRGB(r, g, b)
                c.setFont(TEXT_FONT, draw.size)
                c.drawString(x, y, draw.text)
        c.save()
        return buf.getvalue()

    def _apply(self):
        if self._draws:
            overlay_reader = PdfReader(BytesIO(self._make_overlay()))
            self._page.merge_page(overlay_reader.pages[0])
        return self._page


class PdfDocumentModel:
    """In-memory mutable document: load → get_pages → embed/draw → save."""

    def __init__(self, reader: PdfReader) -> None:
        self._reader = reader
        self._pages = [PdfPageModel(i, page) for i, page in enumerate(reader.pages)]

    @classmethod
    def load(cls, data: bytes) -> "PdfDocumentModel":
        if not data:
            raise DocumentDecodeError("Document is empty")
        if b"%PDF" not in bytes(data[:1024]):
            raise DocumentDecodeError("Malformed document header")
        try:
            return cls(PdfReader(BytesIO(data)))
        except (PyPdfError, ValueError, KeyError, TypeError) as ex:
            raise DocumentDecodeError(f"Unable to read PDF: {ex}") from ex

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def get_pages(self) -> List[PdfPageModel]:
        return list(self._pages)

    def get_page(self, index: int, *, what: str = "target") -> PdfPageModel:
        if index < 0 or index >= len(self._pages):
            raise InvalidTargetPageError(index + 1, len(self._pages), what=what)
        return self._pages[index]

    def page_metrics(self) -> List[PageMetrics]:
        return [p.metrics for p in self._pages]

    def embed_image(self, data: bytes) -> EmbeddedImage:
        try:
            with Image.open(BytesIO(data)) as im:
                im.load()
                return EmbeddedImage(im)
        except (UnidentifiedImageError, OSError, ValueError) as ex:
            raise EmbedError(f"Unable to embed signature image: {ex}") from ex

    def save(self) -> bytes:
        try:
            writer = PdfWriter()
            for page_model in self._pages:
                writer.add_page(page_model._apply())
            out = BytesIO()
            writer.write(out)
            return out.getvalue()
        except (PyPdfError, ValueError, KeyError, TypeError, OSError) as ex:
            raise EncodeError(f"Unable to save PDF: {ex}") from ex


def read_page_metrics(data: bytes) -> List[PageMetrics]:
    """Page sizes of a PDF byte stream."""
    return PdfDocumentModel.load(data).page_metrics()
