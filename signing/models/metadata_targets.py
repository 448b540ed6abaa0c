from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Tuple

from .element_position import ElementPosition
from .signing_enums import METADATA_FIELDS, FieldType


@dataclass(frozen=True)
class MetadataTargetMap:
    """Resolved NAME/EMAIL/DATE targets, each with zero or more positions."""
    name: Tuple[ElementPosition, ...] = ()
    email: Tuple[ElementPosition, ...] = ()
    date: Tuple[ElementPosition, ...] = ()

    @classmethod
    def empty(cls) -> "MetadataTargetMap":
        return cls()

    @classmethod
    def from_positions(cls, positions: Iterable[ElementPosition]) -> "MetadataTargetMap":
        """Buckets positions by type; signature positions are ignored."""
        buckets = {field: [] for field in METADATA_FIELDS}
        for pos in positions:
            if pos.type in buckets:
                buckets[pos.type].append(pos)
        return cls(
            name=tuple(buckets[FieldType.NAME]),
            email=tuple(buckets[FieldType.EMAIL]),
            date=tuple(buckets[FieldType.DATE]),
        )

    def targets_for(self, field: FieldType) -> Tuple[ElementPosition, ...]:
        if field == FieldType.NAME:
            return self.name
        if field == FieldType.EMAIL:
            return self.email
        if field == FieldType.DATE:
            return self.date
        return ()

    @property
    def is_empty(self) -> bool:
        return not (self.name or self.email or self.date)

    def __len__(self) -> int:
        return len(self.name) + len(self.email) + len(self.date)
