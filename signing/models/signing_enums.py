# signing/models/signing_enums.py
from __future__ import annotations
from enum import Enum
from typing import Optional


class FieldType(str, Enum):
    """What a placement target receives."""
    SIGNATURE = "SIGNATURE"
    NAME = "NAME"
    EMAIL = "EMAIL"
    DATE = "DATE"

    @classmethod
    def parse(cls, value: Optional[str]) -> "FieldType":
        """Absent or unrecognized tags resolve to SIGNATURE."""
        if isinstance(value, FieldType):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.SIGNATURE

    @property
    def is_metadata(self) -> bool:
        return self is not FieldType.SIGNATURE


METADATA_FIELDS = (FieldType.NAME, FieldType.EMAIL, FieldType.DATE)


class CoordinateMode(str, Enum):
    """
    How raw x/y/width/height values of one data source are interpreted.

    PERCENT     0-100 of the page span, y measured from the top edge
    NORMALIZED  0-1 of the page span, y measured from the top edge
    POINTS      literal PDF points, origin bottom-left
    AUTO        legacy magnitude sniffing: <= 100 percent, > 100 points.
                Only used when a caller asks for it; absolute coordinates
                <= 100 pt are misread as percentages in this mode.
    """
    PERCENT = "percent"
    NORMALIZED = "normalized"
    POINTS = "points"
    AUTO = "auto"


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class HistoryState(str, Enum):
    IDLE = "idle"
    MUTATING = "mutating"
