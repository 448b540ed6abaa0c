"""Signing feature exceptions."""
from __future__ import annotations

from typing import Optional


class SigningError(Exception):
    """Base exception for the signing feature."""


# --------------------------------------------------------------------------- #
#  Load
# --------------------------------------------------------------------------- #
class LoadError(SigningError):
    """Document or coordinates could not be loaded."""


class DocumentDecodeError(LoadError):
    """Bytes are not a readable PDF document."""


class FetchError(LoadError):
    """Remote call failed or answered with a non-success payload."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MissingSourceError(LoadError):
    """No document source was configured."""


# --------------------------------------------------------------------------- #
#  Validation
# --------------------------------------------------------------------------- #
class ValidationError(SigningError):
    """Precondition of a user action not met; state is unchanged."""


class EmptySignatureError(ValidationError):
    def __init__(self, message: str = "Please draw your signature") -> None:
        super().__init__(message)


class InvalidSignatureImageError(ValidationError):
    """Imported file is not a readable image."""


class NoSignatureTargetsError(ValidationError):
    def __init__(self, message: str = "Signature positions not set") -> None:
        super().__init__(message)


class DocumentNotLoadedError(ValidationError):
    def __init__(self, message: str = "PDF not loaded yet") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
#  Placement / mutation
# --------------------------------------------------------------------------- #
class PlacementError(SigningError):
    """A target cannot be placed on the document."""


class InvalidTargetPageError(PlacementError, IndexError):
    """Resolved page index has no corresponding page."""

    def __init__(self, page_number: int, page_count: Optional[int] = None, *, what: str = "target") -> None:
        msg = f"Invalid {what} page index {page_number}"
        if page_count is not None:
            msg += f" (document has {page_count} page{'s' if page_count != 1 else ''})"
        super().__init__(msg)
        self.page_number = page_number
        self.page_count = page_count


class MutationError(SigningError):
    """Applying a placement plan failed."""


class EmbedError(MutationError):
    """Signature image could not be embedded."""


class EncodeError(MutationError):
    """Mutated document could not be serialized."""


class ConcurrentMutationError(MutationError):
    def __init__(self, message: str = "Another change is still being applied") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
#  Submission / rendering
# --------------------------------------------------------------------------- #
class SubmissionError(SigningError):
    """Signed document could not be submitted."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MissingEndpointError(SubmissionError):
    def __init__(self, message: str = "No submission endpoint configured") -> None:
        super().__init__(message)


class RendererNotInitializedError(SigningError):
    def __init__(self, message: str = "Call initialize_renderer() before rendering pages") -> None:
        super().__init__(message)
