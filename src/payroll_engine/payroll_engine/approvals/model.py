from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence


@dataclass(frozen=True)
class ApprovalEntry:
    """One row of an admin-submitted batch; fields may be missing or malformed."""

    user_id: Any = None
    year: Any = None
    month: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ApprovalEntry":
        return cls(user_id=data.get("user_id"), year=data.get("year"), month=data.get("month"))


@dataclass(frozen=True)
class EntryOutcome:
    entry: ApprovalEntry
    ok: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class BatchResult:
    outcomes: Sequence[EntryOutcome] = field(default_factory=tuple)

    @property
    def approved_count(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def succeeded(self) -> list[EntryOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def skipped(self) -> list[EntryOutcome]:
        return [o for o in self.outcomes if not o.ok]
