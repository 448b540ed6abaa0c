from __future__ import annotations
from dataclasses import dataclass, field


@dataclass(frozen=True)
class DocumentSnapshot:
    """One immutable state of the edited PDF."""
    data: bytes = field(repr=False)
    is_original: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.data, bytes):
            object.__setattr__(self, "data", bytes(self.data))

    def same_bytes(self, other: "DocumentSnapshot | None") -> bool:
        return other is not None and (other is self or other.data == self.data)

    def __len__(self) -> int:
        return len(self.data)
