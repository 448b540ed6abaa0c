# signing/logic/placement_planner.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..exceptions.errors import NoSignatureTargetsError
from ..models.editor_config import DEFAULT_SIGNATURE_HEIGHT, DEFAULT_SIGNATURE_WIDTH
from ..models.element_position import ElementPosition
from ..models.metadata_targets import MetadataTargetMap
from ..models.placement_plan import (
    DrawImageOperation,
    DrawTextOperation,
    PlacementPlan,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)
from ..models.signing_enums import METADATA_FIELDS, FieldType

TEXT_SIZE = 11.5

# Fallback block under a signature target (points)
FALLBACK_BLOCK_HEIGHT = 10.0
FALLBACK_GAP = 1.0
FALLBACK_LINE_HEIGHT = 10.0
FALLBACK_DATE_SIZE = TEXT_SIZE - 0.5


def scale_to_fit(image_size: Tuple[float, float], box: Tuple[float, float]) -> Tuple[float, float]:
    """
    Largest size with the image's aspect ratio that fits into ``box``.
    Small images are enlarged, large ones shrunk.
    """
    img_w, img_h = image_size
    box_w, box_h = box
    if img_w <= 0 or img_h <= 0:
        return float(box_w), float(box_h)
    scale = min(box_w / img_w, box_h / img_h)
    return img_w * scale, img_h * scale


@dataclass(frozen=True)
class MetadataValues:
    """Current metadata field values and their show flags."""
    signer_name: str = ""
    signer_email: str = ""
    date_label: str = ""
    show_name: bool = False
    show_email: bool = False
    show_date: bool = False

    def enabled_text(self, field: FieldType) -> Optional[str]:
        """Trimmed text for an enabled, non-empty field; None otherwise."""
        if field == FieldType.NAME:
            text, shown = self.signer_name, self.show_name
        elif field == FieldType.EMAIL:
            text, shown = self.signer_email, self.show_email
        elif field == FieldType.DATE:
            text, shown = self.date_label, self.show_date
        else:
            return None
        text = (text or "").strip()
        return text if shown and text else None

    @property
    def any_enabled(self) -> bool:
        return any(self.enabled_text(f) for f in METADATA_FIELDS)


class PlacementPlanner:
    """
    Computes the draw operations of one "commit signature" action.
    Pure: no I/O, no document access.
    """

    def __init__(
        self,
        *,
        default_width: float = DEFAULT_SIGNATURE_WIDTH,
        default_height: float = DEFAULT_SIGNATURE_HEIGHT,
    ) -> None:
        self._default_width = float(default_width)
        self._default_height = float(default_height)

    def plan(
        self,
        *,
        image_size: Tuple[float, float],
        signature_targets: Sequence[ElementPosition],
        metadata: MetadataValues,
        metadata_targets: MetadataTargetMap = MetadataTargetMap(),
    ) -> PlacementPlan:
        if not signature_targets:
            raise NoSignatureTargetsError()

        images = tuple(self._image_operation(image_size, t) for t in signature_targets)

        texts: list[DrawTextOperation] = []
        placed_via_coordinates = False
        for field in METADATA_FIELDS:
            text = metadata.enabled_text(field)
            targets = metadata_targets.targets_for(field)
            if not text or not targets:
                continue
            for target in targets:
                texts.append(DrawTextOperation(
                    page_index=target.page_index,
                    text=text,
                    x=target.x,
                    y=target.y,
                    size=TEXT_SIZE,
                    color=TEXT_PRIMARY,
                    field=field,
                    optional=True,
                ))
            placed_via_coordinates = True

        use_fallback = metadata.any_enabled and not placed_via_coordinates
        if use_fallback:
            for target in signature_targets:
                texts.extend(self._fallback_block(target, metadata))

        return PlacementPlan(
            image_operations=images,
            text_operations=tuple(texts),
            used_fallback_block=use_fallback,
        )

    def _image_operation(self, image_size: Tuple[float, float], target: ElementPosition) -> DrawImageOperation:
        box = (
            target.width if target.width is not None else self._default_width,
            target.height if target.height is not None else self._default_height,
        )
        width, height = scale_to_fit(image_size, box)
        return DrawImageOperation(
            page_index=target.page_index,
            x=target.x,
            y=target.y,
            width=width,
            height=height,
        )

    @staticmethod
    def _fallback_block(target: ElementPosition, metadata: MetadataValues) -> list[DrawTextOperation]:
        """Name, email, date stacked under the signature's bottom edge."""
        ops: list[DrawTextOperation] = []
        y = target.y - FALLBACK_BLOCK_HEIGHT - FALLBACK_GAP
        for field in METADATA_FIELDS:
            text = metadata.enabled_text(field)
            if not text:
                continue
            is_date = field == FieldType.DATE
            ops.append(DrawTextOperation(
                page_index=target.page_index,
                text=text,
                x=target.x,
                y=y,
                size=FALLBACK_DATE_SIZE if is_date else TEXT_SIZE,
                color=TEXT_SECONDARY if is_date else TEXT_PRIMARY,
                field=field,
            ))
            y -= FALLBACK_LINE_HEIGHT
        return ops
