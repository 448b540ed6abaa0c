# signing/logic/editor_session.py
from __future__ import annotations
import asyncio
import logging
import sqlite3
from datetime import datetime
from typing import Any, Callable, List, Optional, Tuple

from core.helpers.date_time_helper import signing_date_label

from ..exceptions.errors import (
    DocumentDecodeError,
    DocumentNotLoadedError,
    EmptySignatureError,
    InvalidTargetPageError,
    MissingEndpointError,
    MissingSourceError,
    NoSignatureTargetsError,
    SigningError,
    ValidationError,
)
from ..models.document_snapshot import DocumentSnapshot
from ..models.editor_config import EditorConfig, SubmissionMetadata
from ..models.element_position import ElementPosition, PageMetrics, RawPosition
from ..models.metadata_targets import MetadataTargetMap
from ..models.notice import Notice
from ..models.signing_enums import CoordinateMode, HistoryState, NoticeLevel
from . import page_renderer
from .coordinate_resolver import CoordinateResolver
from .history_manager import HistoryManager
from .mutation_pipeline import DocumentMutationPipeline
from .pdf_object_model import read_page_metrics
from .placement_planner import MetadataValues, PlacementPlanner
from .remote_api import SigningApiClient, decode_pdf_data
from .signature_pad import SignaturePad

logger = logging.getLogger(__name__)

FEATURE = "Signing"


class EditorSession:
    """
    One editing session over one document.

    Works with fixed caller positions and with template coordinates alike;
    the two sources only differ in their CoordinateMode. All public actions
    catch failures at their boundary, report them through callbacks and a
    Notice, and leave the active snapshot untouched.

    Results of ``load`` and ``change_template`` are dropped when the session
    was closed (or a newer request started) while they were in flight.
    """

    def __init__(
        self,
        config: EditorConfig,
        *,
        api: Optional[SigningApiClient] = None,
        pipeline: Optional[DocumentMutationPipeline] = None,
        pad: Optional[SignaturePad] = None,
        event_logger=None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config
        self.api = api or SigningApiClient(config.fetch_config)
        self.pipeline = pipeline or DocumentMutationPipeline()
        self.pad = pad or SignaturePad()
        self.history = HistoryManager(enabled=config.enable_undo)
        self._event_logger = event_logger
        self._clock = clock

        self._fixed_resolver = CoordinateResolver(config.fixed_coordinate_mode)
        self._template_resolver = CoordinateResolver(config.template_coordinate_mode)
        self._planner = PlacementPlanner(
            default_width=config.default_signature_width,
            default_height=config.default_signature_height,
        )

        # Mutable session state
        self.document_id: Optional[str] = config.document_id
        self.session_token: Optional[str] = config.session_token
        self.template_id: Optional[str] = config.template_id
        self.signer_name: str = config.signer_name
        self.signer_email: str = config.signer_email
        self.signature_position: Optional[RawPosition] = config.signature_position

        self.page_metrics: Tuple[PageMetrics, ...] = ()
        self.signature_targets: Tuple[ElementPosition, ...] = ()
        self.metadata_targets: MetadataTargetMap = MetadataTargetMap.empty()
        self._template_entries: Optional[List[RawPosition]] = None
        self._target_error: Optional[InvalidTargetPageError] = None

        self.loading = False
        self.error: Optional[str] = None
        self.has_signature = False
        self.is_submitting = False
        self.closed = False
        self.notices: List[Notice] = []

        self._load_generation = 0
        self._targets_generation = 0
        self._pages_ready_notified = False

    # ------------------------------------------------------------------ #
    #  Read access
    # ------------------------------------------------------------------ #
    @property
    def current(self) -> Optional[DocumentSnapshot]:
        return self.history.current

    @property
    def page_count(self) -> int:
        return len(self.page_metrics)

    @property
    def is_mutating(self) -> bool:
        return self.history.state == HistoryState.MUTATING

    @property
    def signed_bytes(self) -> Optional[bytes]:
        """Bytes of the modified document, None while nothing was added."""
        if not self.history.has_unsaved_modification or self.history.current is None:
            return None
        return self.history.current.data

    # ------------------------------------------------------------------ #
    #  Load / targets
    # ------------------------------------------------------------------ #
    async def load(self) -> Optional[DocumentSnapshot]:
        self._load_generation += 1
        generation = self._load_generation
        self.loading = True
        self.error = None
        try:
            if self.template_id:
                data, _ = await asyncio.gather(self._load_document(), self._refresh_coordinates())
            else:
                data = await self._load_document()
            if generation != self._load_generation:
                logger.debug("Discarding stale document load")
                return None
            metrics = read_page_metrics(data)
        except SigningError as exc:
            if generation == self._load_generation:
                self.loading = False
                self._fail_load(exc)
            return None

        snapshot = DocumentSnapshot(data, is_original=True)
        self.history.load_original(snapshot)
        self.page_metrics = tuple(metrics)
        self.has_signature = False
        self._pages_ready_notified = False
        self._hydrate_targets()
        self.loading = False
        logger.info("Loaded document %s (%d pages)", self.document_id or "<inline>", len(metrics))
        if self.config.on_load_success:
            self.config.on_load_success(len(metrics))
        return snapshot

    async def change_template(self, template_id: Optional[str]) -> None:
        """Drop the current template's targets and fetch the new ones."""
        self.template_id = template_id
        self._template_entries = None
        self.metadata_targets = MetadataTargetMap.empty()
        if template_id:
            await self._refresh_coordinates()
        else:
            self._targets_generation += 1
            self._hydrate_targets()

    def close(self) -> None:
        """Tear down; results of in-flight load or coordinate requests are discarded."""
        self.closed = True
        self._load_generation += 1
        self._targets_generation += 1

    def cancel(self) -> None:
        if self.config.on_cancel:
            self.config.on_cancel()

    async def _load_document(self) -> bytes:
        cfg = self.config
        if cfg.pdf_bytes is not None:
            return bytes(cfg.pdf_bytes)
        if cfg.pdf_data:
            return decode_pdf_data(cfg.pdf_data)
        if cfg.pdf_url:
            return await self.api.fetch_pdf_url(cfg.pdf_url)
        if not self.document_id and not self.template_id:
            raise MissingSourceError("Provide a documentId, templateId, pdfData, or pdfUrl to load a document.")

        if not self.document_id:
            self.document_id = await self.api.create_document(
                self.template_id,
                signer_name=cfg.signer_name,
                signer_email=cfg.signer_email,
                meta=cfg.document_meta,
            )
        if not self.session_token:
            self.session_token = await self.api.create_session(self.document_id)
        return await self.api.fetch_document_view(self.document_id)

    async def _refresh_coordinates(self) -> None:
        self._targets_generation += 1
        generation = self._targets_generation
        try:
            entries = await self.api.fetch_coordinates(self.template_id)
        except SigningError as exc:
            if generation != self._targets_generation:
                return
            logger.warning("Failed to fetch signature positions for %s: %s", self.template_id, exc)
            self._template_entries = None
            self._notify(NoticeLevel.ERROR, str(exc) or "Failed to fetch signature positions")
            self._hydrate_targets()
            return
        if generation != self._targets_generation:
            logger.debug("Discarding stale coordinates for template %s", self.template_id)
            return
        self._template_entries = entries
        self._hydrate_targets()

    def _hydrate_targets(self) -> None:
        """Resolve template or fixed targets against the loaded page metrics."""
        if not self.page_metrics:
            return
        self._target_error = None
        self.signature_targets = ()
        self.metadata_targets = MetadataTargetMap.empty()
        try:
            if self._template_entries:
                resolved = self._template_resolver.resolve_targets(self._template_entries, self.page_metrics)
                self.metadata_targets = resolved.metadata_targets
                if resolved.signature_targets:
                    self.signature_targets = resolved.signature_targets
                    return
            self.signature_targets = self._fixed_targets()
        except InvalidTargetPageError as exc:
            logger.warning("Signature target cannot be placed: %s", exc)
            self._target_error = exc
            if self._template_entries:
                text_entries = [e for e in self._template_entries if e.type.is_metadata]
                self.metadata_targets = self._template_resolver.resolve_targets(
                    text_entries, self.page_metrics).metadata_targets

    def _fixed_targets(self) -> Tuple[ElementPosition, ...]:
        pos = self.signature_position
        if pos is None:
            return ()
        return (self._fixed_resolver.resolve(pos, self.page_metrics),)

    def place_signature(self, position: RawPosition, *, mode: CoordinateMode = CoordinateMode.POINTS) -> None:
        """Move the fixed signature position (used when the template supplies none)."""
        self.signature_position = position
        self._fixed_resolver = CoordinateResolver(mode)
        self._hydrate_targets()

    def _fail_load(self, exc: Exception) -> None:
        self.error = str(exc)
        logger.error("Load failed: %s", exc)
        self._notify(NoticeLevel.ERROR, f"Load failed: {exc}")
        self._audit("LoadFailed", level="ERROR", message=str(exc))
        if self.config.on_load_error:
            self.config.on_load_error(exc)
        if self.config.on_error:
            self.config.on_error(exc)

    # ------------------------------------------------------------------ #
    #  Signing
    # ------------------------------------------------------------------ #
    def metadata_values(self) -> MetadataValues:
        cfg = self.config
        return MetadataValues(
            signer_name=self.signer_name,
            signer_email=self.signer_email,
            date_label=signing_date_label(cfg.date_format, self._clock()),
            show_name=cfg.show_signer_name,
            show_email=cfg.show_signer_email,
            show_date=cfg.show_signing_date,
        )

    async def commit_signature(self) -> Optional[DocumentSnapshot]:
        """Stamp the pad's signature (and enabled metadata) onto the current document."""
        generation = self._load_generation
        try:
            if self.pad.is_empty:
                raise EmptySignatureError()
            if self._target_error is not None:
                raise self._target_error
            if not self.signature_targets:
                raise NoSignatureTargetsError()
            current = self.history.current
            if current is None:
                raise DocumentNotLoadedError()

            png = self.pad.to_png()
            plan = self._planner.plan(
                image_size=self.pad.image_size,
                signature_targets=self.signature_targets,
                metadata=self.metadata_values(),
                metadata_targets=self.metadata_targets,
            )
            with self.history.mutation():
                self.history.snapshot_before_mutation()
                try:
                    snapshot = await self.pipeline.apply(current, plan, png)
                except BaseException:
                    self.history.discard_pre_mutation_snapshot()
                    raise
                if generation != self._load_generation:
                    self.history.discard_pre_mutation_snapshot()
                    logger.debug("Discarding signature for a replaced document")
                    return None
                self.history.publish(snapshot)
        except ValidationError as exc:
            level = NoticeLevel.WARNING if isinstance(exc, EmptySignatureError) else NoticeLevel.ERROR
            self._notify(level, str(exc))
            return None
        except SigningError as exc:
            logger.error("Failed to add signature: %s", exc)
            self._notify(NoticeLevel.ERROR, str(exc) or "Failed to add signature")
            self._audit("SignatureFailed", level="ERROR", message=str(exc))
            return None

        self.pad.clear()
        self.has_signature = True
        self._notify(NoticeLevel.SUCCESS, "Signature added!")
        self._audit(
            "SignatureCommitted",
            message=f"{len(plan.image_operations)} signature(s), {len(plan.text_operations)} text run(s)"
                    + (" (fallback block)" if plan.used_fallback_block else ""),
        )
        return snapshot

    def undo(self) -> Optional[DocumentSnapshot]:
        if self.is_mutating:
            self._notify(NoticeLevel.WARNING, "Another change is still being applied")
            return None
        previous = self.history.undo()
        if previous is None:
            self._notify(NoticeLevel.INFO, "Nothing to undo")
            return None
        self.has_signature = False
        self._notify(NoticeLevel.SUCCESS, "Undone")
        self._audit("Undo", message=f"{self.history.depth} entries left")
        return previous

    def reset(self) -> Optional[DocumentSnapshot]:
        if self.history.original is None:
            return None
        if self.is_mutating:
            self._notify(NoticeLevel.WARNING, "Another change is still being applied")
            return None
        original = self.history.reset()
        self.pad.clear()
        self.has_signature = False
        self._notify(NoticeLevel.INFO, "Document reset")
        self._audit("Reset")
        return original

    # ------------------------------------------------------------------ #
    #  Submission
    # ------------------------------------------------------------------ #
    async def submit(self) -> Any:
        """Send the signed document; returns the server response or None."""
        if self.is_submitting:
            self._notify(NoticeLevel.WARNING, "Submission already in progress")
            return None
        signed = self.signed_bytes
        if signed is None:
            self._notify(NoticeLevel.WARNING, "Please add your signature before submitting")
            return None
        sign_config = self.config.sign_config
        if not sign_config.endpoint and not self.session_token and not self.document_id:
            self._notify(NoticeLevel.ERROR, MissingEndpointError().args[0])
            return None

        metadata = SubmissionMetadata(
            document_id=self.document_id,
            document_name=self.config.document_name,
            signer_name=self.signer_name,
            signer_email=self.signer_email,
        )
        self.is_submitting = True
        try:
            if not sign_config.endpoint and self.session_token:
                response = await self.api.submit_to_session(
                    self.session_token, signed, sign_config=sign_config, metadata=metadata,
                )
            else:
                response = await self.api.submit_to_document(
                    signed, document_id=self.document_id, sign_config=sign_config, metadata=metadata,
                )
        except SigningError as exc:
            logger.error("Submit failed: %s", exc)
            self._audit("SubmitFailed", level="ERROR", message=str(exc))
            if self.config.on_error:
                self.config.on_error(exc)
            self._notify(NoticeLevel.ERROR, str(exc) or "Submit failed")
            return None
        finally:
            self.is_submitting = False

        self._audit("SubmitSuccess", message=f"{len(signed)} bytes")
        if self.config.on_success:
            self.config.on_success(response)
        self._notify(NoticeLevel.SUCCESS, "Document signed successfully")
        return response

    # ------------------------------------------------------------------ #
    #  Preview
    # ------------------------------------------------------------------ #
    async def render_pages(self, scale: float = 1.0) -> list:
        """
        Rasterize every page of the active snapshot. ``on_all_pages_rendered``
        fires once per loaded document.
        """
        current = self.history.current
        if current is None:
            raise DocumentNotLoadedError()
        try:
            images = page_renderer.render_pages(current.data, scale)
        except DocumentDecodeError as exc:
            self._notify(NoticeLevel.ERROR, str(exc))
            if self.config.on_error:
                self.config.on_error(exc)
            return []
        if not self._pages_ready_notified and images:
            self._pages_ready_notified = True
            if self.config.on_all_pages_rendered:
                self.config.on_all_pages_rendered(len(images))
        return images

    # ------------------------------------------------------------------ #
    #  Notices / audit
    # ------------------------------------------------------------------ #
    def _notify(self, level: NoticeLevel, message: str) -> None:
        notice = Notice(level, message)
        self.notices.append(notice)
        if self.config.notify:
            self.config.notify(notice)

    def _audit(self, event: str, *, level: str = "INFO", message: Optional[str] = None) -> None:
        if self._event_logger is None:
            return
        try:
            self._event_logger.log(FEATURE, event, level=level, reference_id=self.document_id, message=message)
        except (sqlite3.Error, OSError) as ex:
            logger.warning("Event log write failed (%s): %s", event, ex)
