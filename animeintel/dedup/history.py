"""History store contract consumed by the dedup gate."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Union


@dataclass(frozen=True)
class HistoryEntry:
    id: Union[int, str]
    title: str
    slug: Optional[str] = None
    event_fingerprint: Optional[str] = None
    truth_fingerprint: Optional[str] = None
    claim_type: Optional[str] = None


@dataclass(frozen=True)
class DeclinedEntry:
    title: str


class HistoryStore(Protocol):
    def list_recent(self, limit: int) -> List[HistoryEntry]:
        ...

    def list_declined(self) -> List[DeclinedEntry]:
        ...

    def get_source_tier(self, name: str) -> Optional[int]:
        ...


@dataclass
class InMemoryHistoryStore:
    """Process-local store. Newest entries first, like the Postgres reader."""

    published: List[HistoryEntry] = field(default_factory=list)
    declined: List[DeclinedEntry] = field(default_factory=list)
    source_tiers: Dict[str, int] = field(default_factory=dict)

    def record(self, entry: HistoryEntry) -> None:
        self.published.insert(0, entry)

    def decline(self, title: str) -> None:
        self.declined.append(DeclinedEntry(title=title))

    def list_recent(self, limit: int) -> List[HistoryEntry]:
        return list(self.published[: max(0, limit)])

    def list_declined(self) -> List[DeclinedEntry]:
        return list(self.declined)

    def get_source_tier(self, name: str) -> Optional[int]:
        return self.source_tiers.get(name)
