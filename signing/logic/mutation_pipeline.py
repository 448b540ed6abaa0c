# signing/logic/mutation_pipeline.py
from __future__ import annotations
import logging
from typing import Callable

from ..exceptions.errors import InvalidTargetPageError
from ..models.document_snapshot import DocumentSnapshot
from ..models.placement_plan import PlacementPlan
from .pdf_object_model import PdfDocumentModel

logger = logging.getLogger(__name__)


class DocumentMutationPipeline:
    """
    Applies a PlacementPlan to a snapshot and returns a new snapshot.

    Nothing is published on failure: the caller only receives a snapshot when
    every mandatory step succeeded. Decode and encode run inline on the
    calling task; ``apply`` is awaitable so callers treat it like the other
    suspension points of a session.
    """

    def __init__(self, *, document_loader: Callable[[bytes], PdfDocumentModel] = PdfDocumentModel.load) -> None:
        self._load = document_loader

    async def apply(self, snapshot: DocumentSnapshot, plan: PlacementPlan, signature_png: bytes) -> DocumentSnapshot:
        return self.apply_sync(snapshot, plan, signature_png)

    def apply_sync(self, snapshot: DocumentSnapshot, plan: PlacementPlan, signature_png: bytes) -> DocumentSnapshot:
        doc = self._load(snapshot.data)

        # Signature pages are mandatory: resolve all of them before drawing anything.
        image_pages = [
            (op, doc.get_page(op.page_index, what="signature")) for op in plan.image_operations
        ]
        image = doc.embed_image(signature_png) if image_pages else None

        for op, page in image_pages:
            page.draw_image(image, op.x, op.y, op.width, op.height)

        skipped = 0
        for op in plan.text_operations:
            try:
                page = doc.get_page(op.page_index, what="text")
            except InvalidTargetPageError as exc:
                if not op.optional:
                    raise
                skipped += 1
                logger.warning("Skipping %s text placement: %s", getattr(op.field, "value", "text"), exc)
                continue
            page.draw_text(op.text, op.x, op.y, op.size, op.color)

        data = doc.save()
        logger.debug(
            "Applied %d image and %d text operations (%d skipped), %d -> %d bytes",
            len(plan.image_operations), len(plan.text_operations) - skipped, skipped,
            len(snapshot), len(data),
        )
        return DocumentSnapshot(data=data, is_original=False)
