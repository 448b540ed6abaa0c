from __future__ import annotations
from dataclasses import dataclass

from .signing_enums import NoticeLevel


@dataclass(frozen=True)
class Notice:
    """Short user-facing message (status bar / toast)."""
    level: NoticeLevel
    message: str
