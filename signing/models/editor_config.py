# signing/models/editor_config.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Literal, Mapping, Optional

from .element_position import RawPosition
from .notice import Notice
from .signing_enums import CoordinateMode

DEFAULT_SIGNATURE_WIDTH = 130.0
DEFAULT_SIGNATURE_HEIGHT = 65.0


@dataclass(frozen=True)
class FetchConfig:
    """
    Transport settings for every remote call.
    ``get_auth_headers`` wins over static ``headers`` when both are given.
    """
    base_url: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)
    get_auth_headers: Optional[Callable[[], Awaitable[Mapping[str, str]]]] = None
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class SignConfig:
    """Optional custom submission endpoint."""
    endpoint: Optional[str] = None
    method: Literal["POST", "PUT"] = "POST"
    content_type: Literal["json", "form-data"] = "form-data"


@dataclass(frozen=True)
class SubmissionMetadata:
    document_id: Optional[str] = None
    document_name: Optional[str] = None
    signer_name: Optional[str] = None
    signer_email: Optional[str] = None


@dataclass(frozen=True)
class EditorConfig:
    """
    Immutable input of one editing session.

    Document source precedence: ``pdf_bytes``, ``pdf_data`` (base64 or data
    URL), ``pdf_url``, then ``document_id`` / ``template_id`` through the
    remote API. Page numbers in ``signature_position`` are 1-based.
    """
    # Document source
    pdf_bytes: Optional[bytes] = field(default=None, repr=False)
    pdf_data: Optional[str] = field(default=None, repr=False)
    pdf_url: Optional[str] = None
    document_id: Optional[str] = None
    template_id: Optional[str] = None
    session_token: Optional[str] = None
    document_meta: Optional[Dict[str, Any]] = None

    # Transport
    fetch_config: FetchConfig = field(default_factory=FetchConfig)
    sign_config: SignConfig = field(default_factory=SignConfig)

    # Signer
    document_name: str = "document"
    signer_name: str = ""
    signer_email: str = ""

    # Placement
    signature_position: Optional[RawPosition] = None
    fixed_coordinate_mode: CoordinateMode = CoordinateMode.POINTS
    template_coordinate_mode: CoordinateMode = CoordinateMode.PERCENT
    default_signature_width: float = DEFAULT_SIGNATURE_WIDTH
    default_signature_height: float = DEFAULT_SIGNATURE_HEIGHT
    date_format: str = "%m/%d/%Y"

    # Auto-rendered metadata
    show_signer_name: bool = False
    show_signer_email: bool = False
    show_signing_date: bool = False

    enable_undo: bool = True

    # Callbacks
    on_load_success: Optional[Callable[[int], None]] = None
    on_load_error: Optional[Callable[[Exception], None]] = None
    on_all_pages_rendered: Optional[Callable[[int], None]] = None
    on_success: Optional[Callable[[Any], None]] = None
    on_error: Optional[Callable[[Exception], None]] = None
    on_cancel: Optional[Callable[[], None]] = None
    notify: Optional[Callable[[Notice], None]] = None

    @classmethod
    def from_settings(cls, service, **overrides: Any) -> "EditorConfig":
        """
        Build a config from the ``[Api]`` and ``[Placement]`` sections of a
        ConfigService; keyword arguments override individual fields.
        """
        api = service.api
        placement = service.placement
        values: Dict[str, Any] = {
            "fetch_config": FetchConfig(
                base_url=api.base_url or None,
                timeout_seconds=float(api.timeout_seconds),
            ),
            "default_signature_width": float(placement.signature_width),
            "default_signature_height": float(placement.signature_height),
            "date_format": placement.date_format,
            "fixed_coordinate_mode": CoordinateMode(placement.fixed_coordinate_mode),
            "template_coordinate_mode": CoordinateMode(placement.template_coordinate_mode),
            "enable_undo": bool(placement.enable_undo),
        }
        values.update(overrides)
        return cls(**values)
