from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class BulkError:
    key: str
    error: str


@dataclass
class BulkResult:
    """Outcome of a non-transactional batch: each row succeeds or fails on its own."""

    created_ids: List[int] = field(default_factory=list)
    errors: List[BulkError] = field(default_factory=list)

    @property
    def created(self) -> int:
        return len(self.created_ids)

    @property
    def failed(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict:
        return {
            "created": self.created,
            "errors": self.failed,
            "created_ids": list(self.created_ids),
            "error_details": [{"key": e.key, "error": e.error} for e in self.errors],
        }
