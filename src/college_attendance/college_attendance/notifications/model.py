from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..core.enums import DispatchOutcome, NotificationType


@dataclass(frozen=True)
class PushMessage:
    title: str
    body: str
    kind: NotificationType
    data: Dict[str, str] = field(default_factory=dict)

    def payload(self) -> Dict[str, str]:
        """Flat string map sent alongside the notification."""
        return {"type": self.kind.value, "title": self.title, **{k: str(v) for k, v in self.data.items()}}


@dataclass(frozen=True)
class DispatchResult:
    student_id: int
    outcome: DispatchOutcome
    reason: Optional[str] = None

    @property
    def sent(self) -> bool:
        return self.outcome == DispatchOutcome.SENT

    @classmethod
    def skipped(cls, student_id: int, reason: str) -> "DispatchResult":
        return cls(student_id, DispatchOutcome.SKIPPED, reason)

    @classmethod
    def failed(cls, student_id: int, reason: str) -> "DispatchResult":
        return cls(student_id, DispatchOutcome.FAILED, reason)


@dataclass
class DispatchReport:
    results: List[DispatchResult] = field(default_factory=list)

    def add(self, result: DispatchResult) -> None:
        self.results.append(result)

    def _count(self, outcome: DispatchOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def succeeded(self) -> int:
        return self._count(DispatchOutcome.SENT)

    @property
    def failed(self) -> int:
        return self._count(DispatchOutcome.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(DispatchOutcome.SKIPPED)

    def to_dict(self) -> dict:
        return {"succeeded": self.succeeded, "failed": self.failed, "skipped": self.skipped}


@dataclass(frozen=True)
class MulticastResult:
    """Per-token outcome of a multi-target send, in the order the tokens were given."""

    outcomes: Tuple[bool, ...] = ()

    @property
    def success_count(self) -> int:
        return sum(1 for ok in self.outcomes if ok)

    @property
    def failure_count(self) -> int:
        return len(self.outcomes) - self.success_count
