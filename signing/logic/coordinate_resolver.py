# signing/logic/coordinate_resolver.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from ..exceptions.errors import InvalidTargetPageError
from ..models.element_position import ElementPosition, PageMetrics, RawPosition
from ..models.metadata_targets import MetadataTargetMap
from ..models.signing_enums import CoordinateMode, FieldType

logger = logging.getLogger(__name__)

_PERCENT_CEILING = 100.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


@dataclass(frozen=True)
class ResolvedTargets:
    """Output of one batch resolution."""
    signature_targets: Tuple[ElementPosition, ...]
    metadata_targets: MetadataTargetMap
    dropped: Tuple[RawPosition, ...] = ()


class CoordinateResolver:
    """
    Converts RawPosition entries into ElementPosition values in PDF points
    (origin bottom-left) for the page each entry targets.

    The interpretation of raw numbers is fixed per resolver by ``mode``; see
    CoordinateMode. Resolution is a pure function of (entry, page metrics).
    """

    def __init__(self, mode: CoordinateMode = CoordinateMode.PERCENT) -> None:
        self._mode = CoordinateMode(mode)

    @property
    def mode(self) -> CoordinateMode:
        return self._mode

    # ------------------------------------------------------------------ #
    #  Pages
    # ------------------------------------------------------------------ #
    @staticmethod
    def normalize_page(raw_page: int) -> int:
        """
        1-based page number -> 0-based index. A raw value of 0 is taken as an
        already 0-based reference to the first page.
        """
        raw = int(raw_page)
        if raw >= 1:
            return raw - 1
        if raw == 0:
            return 0
        raise InvalidTargetPageError(raw)

    @classmethod
    def page_index_for(cls, raw_page: int, page_count: int, *, what: str = "target") -> int:
        idx = cls.normalize_page(raw_page)
        if idx >= page_count:
            raise InvalidTargetPageError(raw_page, page_count, what=what)
        return idx

    # ------------------------------------------------------------------ #
    #  Single entry
    # ------------------------------------------------------------------ #
    def resolve(self, entry: RawPosition, pages: Sequence[PageMetrics]) -> ElementPosition:
        what = "text" if entry.type.is_metadata else "signature"
        idx = self.page_index_for(entry.page_number, len(pages), what=what)
        metrics = pages[idx]

        width = self._dimension(entry.width, metrics.width)
        height = self._dimension(entry.height, metrics.height)
        return ElementPosition(
            x=self._horizontal(entry.x, metrics.width),
            y=self._vertical(entry.y, metrics.height, height),
            page_index=idx,
            width=width,
            height=height,
            type=entry.type,
        )

    def _mode_for(self, value: float, *, ceiling: float = _PERCENT_CEILING) -> CoordinateMode:
        if self._mode != CoordinateMode.AUTO:
            return self._mode
        return CoordinateMode.PERCENT if value <= ceiling else CoordinateMode.POINTS

    def _fraction(self, value: float, mode: CoordinateMode) -> float:
        if mode == CoordinateMode.PERCENT:
            return _clamp(value, 0.0, _PERCENT_CEILING) / _PERCENT_CEILING
        return _clamp(value, 0.0, 1.0)

    def _horizontal(self, x: float, page_width: float) -> float:
        mode = self._mode_for(x)
        if mode == CoordinateMode.POINTS:
            return float(x)
        return self._fraction(x, mode) * page_width

    def _vertical(self, y: float, page_height: float, target_height: Optional[float]) -> float:
        mode = self._mode_for(y)
        if mode == CoordinateMode.POINTS:
            return float(y)
        # Relative values are measured from the top edge; anchor is the element's bottom.
        top_offset = self._fraction(y, mode) * page_height
        abs_y = page_height - top_offset - (target_height or 0.0)
        return _clamp(abs_y, 0.0, page_height)

    def _dimension(self, value: Optional[float], span: float) -> Optional[float]:
        if value is None:
            return None
        mode = self._mode
        if mode == CoordinateMode.POINTS:
            return float(value)
        if mode == CoordinateMode.NORMALIZED:
            return max(0.0, value) * span if value <= 1.0 else float(value)
        # PERCENT and AUTO: <= 100 is a share of the span, larger values are points.
        return max(0.0, value) / _PERCENT_CEILING * span if value <= _PERCENT_CEILING else float(value)

    # ------------------------------------------------------------------ #
    #  Batch
    # ------------------------------------------------------------------ #
    def resolve_targets(self, entries: Iterable[RawPosition], pages: Sequence[PageMetrics]) -> ResolvedTargets:
        """
        Resolve and bucket a batch. An invalid metadata entry is dropped and
        logged; an invalid signature entry raises InvalidTargetPageError.
        """
        signatures: list[ElementPosition] = []
        metadata: list[ElementPosition] = []
        dropped: list[RawPosition] = []
        for entry in entries:
            if not entry.type.is_metadata:
                signatures.append(self.resolve(entry, pages))
                continue
            try:
                metadata.append(self.resolve(entry, pages))
            except InvalidTargetPageError as exc:
                logger.warning("Dropping %s target: %s", entry.type.value, exc)
                dropped.append(entry)
        return ResolvedTargets(
            signature_targets=tuple(signatures),
            metadata_targets=MetadataTargetMap.from_positions(metadata),
            dropped=tuple(dropped),
        )
