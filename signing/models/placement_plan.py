from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union

from .signing_enums import FieldType

RGB = Tuple[float, float, float]   # 0.0-1.0 per channel

TEXT_PRIMARY: RGB = (0.05, 0.05, 0.05)
TEXT_SECONDARY: RGB = (0.35, 0.35, 0.35)


@dataclass(frozen=True)
class DrawImageOperation:
    """Stamp the signature image; (x, y) is its bottom-left corner."""
    page_index: int
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class DrawTextOperation:
    """
    Draw one text run with its baseline starting at (x, y).
    ``optional`` ops may be dropped on their own if their page is missing.
    """
    page_index: int
    text: str
    x: float
    y: float
    size: float
    color: RGB = TEXT_PRIMARY
    field: Optional[FieldType] = None
    optional: bool = False


DrawOperation = Union[DrawImageOperation, DrawTextOperation]


@dataclass(frozen=True)
class PlacementPlan:
    """All draw operations for one signing action, in paint order."""
    image_operations: Tuple[DrawImageOperation, ...] = ()
    text_operations: Tuple[DrawTextOperation, ...] = ()
    used_fallback_block: bool = False

    @property
    def operations(self) -> Tuple[DrawOperation, ...]:
        return self.image_operations + self.text_operations

    def __iter__(self) -> Iterator[DrawOperation]:
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.image_operations) + len(self.text_operations)
