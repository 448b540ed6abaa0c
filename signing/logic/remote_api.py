# signing/logic/remote_api.py
from __future__ import annotations
import base64
import binascii
import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from ..exceptions.errors import FetchError, MissingEndpointError, SubmissionError
from ..models.editor_config import FetchConfig, SignConfig, SubmissionMetadata
from ..models.element_position import RawPosition

logger = logging.getLogger(__name__)

DOCUMENTS_CREATE = "/api/documents"
SESSIONS_CREATE = "/api/sessions"


def document_view_endpoint(document_id: str) -> str:
    return f"/api/documents/{document_id}/view"


def document_sign_endpoint(document_id: str) -> str:
    return f"/api/documents/{document_id}/sign"


def session_sign_endpoint(session_token: str) -> str:
    return f"/api/sessions/public/{session_token}/sign"


def template_coordinates_endpoint(template_id: str) -> str:
    return f"/api/templates/{template_id}/coordinates"


def resolve_endpoint(endpoint: str, base_url: Optional[str]) -> str:
    """Prefix a relative endpoint with ``base_url``; absolute URLs pass through."""
    if endpoint.startswith(("http://", "https://")) or not base_url:
        return endpoint
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"


def decode_pdf_data(data: str) -> bytes:
    """Base64 string or ``data:`` URL -> raw bytes."""
    cleaned = data.split("base64,", 1)[1] if "base64," in data else data
    try:
        return base64.b64decode(cleaned.strip(), validate=False)
    except (binascii.Error, ValueError) as ex:
        raise FetchError(f"Invalid base64 PDF payload: {ex}") from ex


def _read_json(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return {"raw": response.text}


def _error_text(payload: Any, default: str) -> str:
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return default


def _failed(response: httpx.Response, payload: Any) -> bool:
    return response.is_error or (isinstance(payload, dict) and payload.get("success") is False)


class SigningApiClient:
    """
    Async client for the document, session, coordinate and submission
    endpoints. One short-lived ``httpx.AsyncClient`` per call; pass
    ``transport`` to route requests elsewhere (tests use MockTransport).
    """

    def __init__(self, fetch_config: Optional[FetchConfig] = None, *,
                 transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.fetch_config = fetch_config or FetchConfig()
        self._transport = transport

    # ------------------------------------------------------------------ #
    #  Transport
    # ------------------------------------------------------------------ #
    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=self.fetch_config.timeout_seconds,
            follow_redirects=True,
        )

    async def _headers(self, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        cfg = self.fetch_config
        auth = await cfg.get_auth_headers() if cfg.get_auth_headers else cfg.headers
        headers = dict(auth or {})
        headers.update(extra or {})
        return headers

    def url(self, endpoint: str) -> str:
        return resolve_endpoint(endpoint, self.fetch_config.base_url)

    async def _request(self, method: str, endpoint: str, *, error_cls=FetchError, **kwargs) -> httpx.Response:
        url = self.url(endpoint)
        headers = await self._headers(kwargs.pop("headers", None))
        if "files" in kwargs:
            # multipart boundary is set by httpx
            for key in [k for k in headers if k.lower() == "content-type"]:
                del headers[key]
        try:
            async with self._client() as client:
                return await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as ex:
            logger.warning("%s %s failed: %s", method, url, ex)
            raise error_cls(f"Request to {url} failed: {ex}") from ex

    # ------------------------------------------------------------------ #
    #  Document / session bootstrap
    # ------------------------------------------------------------------ #
    async def create_document(self, template_id: str, *, signer_name: str = "", signer_email: str = "",
                              meta: Optional[Dict[str, Any]] = None) -> str:
        body = {"templateId": template_id, "signerEmail": signer_email, "signerName": signer_name, "meta": meta}
        response = await self._request("POST", DOCUMENTS_CREATE, json=body)
        payload = _read_json(response)
        if _failed(response, payload):
            raise FetchError(_error_text(payload, "Failed to create document"), status_code=response.status_code)
        data = payload.get("data") if isinstance(payload, dict) else None
        doc_id = (data or {}).get("id") if isinstance(data, dict) else None
        doc_id = doc_id or (payload.get("id") if isinstance(payload, dict) else None)
        if not doc_id:
            raise FetchError("No document id returned", status_code=response.status_code)
        logger.info("Created document %s from template %s", doc_id, template_id)
        return str(doc_id)

    async def create_session(self, document_id: str) -> str:
        response = await self._request("POST", SESSIONS_CREATE, json={"documentId": document_id})
        payload = _read_json(response)
        if _failed(response, payload):
            raise FetchError(_error_text(payload, "Failed to create session"), status_code=response.status_code)
        token = None
        if isinstance(payload, dict):
            data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
            token = payload.get("sessionToken") or payload.get("token") or data.get("sessionToken")
        if not token:
            raise FetchError("No session token returned", status_code=response.status_code)
        return str(token)

    async def fetch_document_view(self, document_id: str) -> bytes:
        response = await self._request("GET", document_view_endpoint(document_id))
        if response.is_error:
            raise FetchError(response.text or "Failed to fetch document", status_code=response.status_code)
        return await self._extract_pdf(response)

    async def fetch_pdf_url(self, url: str) -> bytes:
        response = await self._request("GET", url)
        if response.is_error:
            raise FetchError(f"Failed to load provided PDF ({response.status_code})",
                             status_code=response.status_code)
        return response.content

    async def _extract_pdf(self, response: httpx.Response) -> bytes:
        """Raw PDF body, or a JSON payload carrying base64 data or a download URL."""
        content_type = response.headers.get("content-type", "")
        if "application/pdf" in content_type or "application/octet-stream" in content_type:
            return response.content
        payload = _read_json(response)
        if not isinstance(payload, dict):
            raise FetchError("Document payload missing a PDF resource")
        data = payload.get("data")
        candidates: List[Any] = []
        if isinstance(data, dict):
            candidates += [data.get("fileBase64"), data.get("file"), data.get("content")]
        else:
            candidates.append(data)
        candidates += [payload.get("file"), payload.get("fileUrl"), payload.get("url")]
        candidate = next((c for c in candidates if isinstance(c, str) and c), None)

        if candidate is None and isinstance(data, dict) and isinstance(data.get("fileUrl"), str):
            candidate = data["fileUrl"]
        if candidate is None:
            raise FetchError("Document payload missing a PDF resource")
        if candidate.startswith("http"):
            async with self._client() as client:
                try:
                    remote = await client.get(candidate)
                except httpx.HTTPError as ex:
                    raise FetchError(f"Unable to download PDF asset: {ex}") from ex
            if remote.is_error:
                raise FetchError("Unable to download PDF asset", status_code=remote.status_code)
            return remote.content
        return decode_pdf_data(candidate)

    # ------------------------------------------------------------------ #
    #  Coordinates
    # ------------------------------------------------------------------ #
    async def fetch_coordinates(self, template_id: str) -> List[RawPosition]:
        """Raw template entries; units are interpreted later by the resolver."""
        if not template_id:
            raise FetchError("templateId is required to fetch signature positions")
        response = await self._request("GET", template_coordinates_endpoint(template_id),
                                       headers={"Content-Type": "application/json"})
        payload = _read_json(response)
        if _failed(response, payload):
            raise FetchError(_error_text(payload, "Failed to fetch signature positions"),
                             status_code=response.status_code)
        entries = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            return []
        try:
            return [RawPosition.from_dict(e) for e in entries if isinstance(e, dict)]
        except (TypeError, ValueError, OverflowError) as ex:
            raise FetchError(f"Malformed signature position: {ex}") from ex

    # ------------------------------------------------------------------ #
    #  Submission
    # ------------------------------------------------------------------ #
    async def submit_to_session(self, session_token: str, pdf: bytes, *,
                                sign_config: Optional[SignConfig] = None,
                                metadata: Optional[SubmissionMetadata] = None) -> Any:
        sign_config = sign_config or SignConfig()
        metadata = metadata or SubmissionMetadata()
        endpoint = sign_config.endpoint or session_sign_endpoint(session_token)
        body = {
            "sessionToken": session_token,
            "signedPdfBase64": base64.b64encode(pdf).decode("ascii"),
            "signerName": metadata.signer_name,
            "signerEmail": metadata.signer_email,
        }
        response = await self._request(sign_config.method, endpoint, error_cls=SubmissionError, json=body)
        return self._submission_result(response)

    async def submit_to_document(self, pdf: bytes, *, document_id: Optional[str] = None,
                                 sign_config: Optional[SignConfig] = None,
                                 metadata: Optional[SubmissionMetadata] = None) -> Any:
        sign_config = sign_config or SignConfig()
        metadata = metadata or SubmissionMetadata()
        endpoint = sign_config.endpoint or (document_sign_endpoint(document_id) if document_id else None)
        if not endpoint:
            raise MissingEndpointError("Document id or custom sign endpoint is required for submission")

        if sign_config.content_type == "json":
            body = {
                "documentId": document_id,
                "documentName": metadata.document_name,
                "signerName": metadata.signer_name,
                "signerEmail": metadata.signer_email,
                "signedPdfBase64": base64.b64encode(pdf).decode("ascii"),
            }
            response = await self._request(sign_config.method, endpoint, error_cls=SubmissionError, json=body)
            return self._submission_result(response)

        file_name = f"{metadata.document_name or 'document'}_signed.pdf"
        form: Dict[str, str] = {}
        if document_id:
            form["documentId"] = document_id
        if metadata.signer_name:
            form["signerName"] = metadata.signer_name
        if metadata.signer_email:
            form["signerEmail"] = metadata.signer_email
        response = await self._request(
            sign_config.method, endpoint, error_cls=SubmissionError,
            data=form, files={"signedPdf": (file_name, pdf, "application/pdf")},
        )
        return self._submission_result(response)

    @staticmethod
    def _submission_result(response: httpx.Response) -> Any:
        payload = _read_json(response)
        if _failed(response, payload):
            raise SubmissionError(_error_text(payload, "Submit failed"), status_code=response.status_code)
        return payload
