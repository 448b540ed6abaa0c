# signing/logic/signature_pad.py
from __future__ import annotations
import io
from typing import List, Optional, Tuple

from PIL import Image, ImageDraw, UnidentifiedImageError

from ..exceptions.errors import EmptySignatureError, InvalidSignatureImageError

Point = Tuple[int, int]


class SignaturePad:
    """
    Freehand signature buffer, independent of any widget.

    A GUI feeds pointer events into begin/add/end; ``to_png`` renders the
    strokes onto a transparent canvas of the pad's size. An imported image
    replaces the strokes until the pad is cleared.
    """

    def __init__(self, width: int = 500, height: int = 200, *, stroke_width: int = 2) -> None:
        self.width = int(width)
        self.height = int(height)
        self.stroke_width = max(1, int(stroke_width))
        self._strokes: List[List[Point]] = []
        self._current: List[Point] = []
        self._imported: Optional[bytes] = None

    @property
    def strokes(self) -> List[List[Point]]:
        return [list(s) for s in self._strokes]

    @property
    def current_stroke(self) -> List[Point]:
        return list(self._current)

    @property
    def is_empty(self) -> bool:
        return self._imported is None and not any(self._strokes) and not self._current

    # Pointer events
    def begin_stroke(self, x: int, y: int) -> None:
        self._imported = None
        self._current = [(int(x), int(y))]

    def add_point(self, x: int, y: int) -> None:
        if self._current:
            self._current.append((int(x), int(y)))

    def end_stroke(self) -> None:
        if self._current:
            self._strokes.append(self._current)
            self._current = []

    def clear(self) -> None:
        self._strokes.clear()
        self._current = []
        self._imported = None

    def import_image(self, data: bytes) -> None:
        """Use an existing PNG/GIF as the signature."""
        try:
            with Image.open(io.BytesIO(data)) as im:
                im.verify()
        except (UnidentifiedImageError, OSError) as ex:
            raise InvalidSignatureImageError(f"Unsupported signature image: {ex}") from ex
        self._strokes.clear()
        self._current = []
        self._imported = bytes(data)

    # Export
    @property
    def image_size(self) -> Tuple[int, int]:
        if self._imported is not None:
            with Image.open(io.BytesIO(self._imported)) as im:
                return im.size
        return self.width, self.height

    def to_png(self) -> bytes:
        """Transparent PNG of the signature; raises EmptySignatureError when blank."""
        self.end_stroke()
        if self.is_empty:
            raise EmptySignatureError()
        if self._imported is not None:
            with Image.open(io.BytesIO(self._imported)) as im:
                img = im.convert("RGBA")
        else:
            img = Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))
            drw = ImageDraw.Draw(img)
            r = self.stroke_width / 2
            for poly in self._strokes:
                if len(poly) >= 2:
                    drw.line(poly, fill=(0, 0, 0, 255), width=self.stroke_width, joint="curve")
                else:
                    x, y = poly[0]
                    drw.ellipse((x - r, y - r, x + r, y + r), fill=(0, 0, 0, 255))
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()
