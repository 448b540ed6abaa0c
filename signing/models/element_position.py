from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .signing_enums import FieldType


@dataclass(frozen=True)
class PageMetrics:
    """Size of one page in PDF points (1 pt = 1/72 inch)."""
    width: float
    height: float


@dataclass(frozen=True)
class RawPosition:
    """
    Unresolved placement entry as supplied by a caller or a coordinate source.

    Units depend on the CoordinateMode chosen for the source. ``page_number``
    is 1-based; 0 is accepted as an alias for the first page.
    """
    x: float
    y: float
    width: Optional[float] = None
    height: Optional[float] = None
    page_number: int = 1
    type: FieldType = FieldType.SIGNATURE

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RawPosition":
        """Accepts both ``pageNumber`` (remote API) and ``page`` keys."""
        page = data.get("pageNumber", data.get("page_number", data.get("page")))

        def _num(key: str) -> Optional[float]:
            val = data.get(key)
            if val is None or isinstance(val, bool):
                return None
            try:
                return float(val)
            except (TypeError, ValueError):
                return None

        # "2", 2.0 and "2.0" all mean page 2; a non-numeric page raises.
        page_number = 1 if page is None or page == "" else int(float(page))

        return cls(
            x=_num("x") or 0.0,
            y=_num("y") or 0.0,
            width=_num("width"),
            height=_num("height"),
            page_number=page_number,
            type=FieldType.parse(data.get("type")),
        )


@dataclass(frozen=True)
class ElementPosition:
    """
    Resolved placement target: points on a specific page, origin bottom-left.
    ``page_index`` is 0-based.
    """
    x: float
    y: float
    page_index: int
    width: Optional[float] = None
    height: Optional[float] = None
    type: FieldType = FieldType.SIGNATURE

    @property
    def page_number(self) -> int:
        return self.page_index + 1
