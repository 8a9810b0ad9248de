"""Shared ingestion data types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class SourceType(str, Enum):
    BREAKING = "breaking"
    COMMUNITY = "community"
    TRENDING = "trending"
    GENERAL = "general"


class ClaimType(str, Enum):
    NEW_SEASON_CONFIRMED = "NEW_SEASON_CONFIRMED"
    DATE_ANNOUNCED = "DATE_ANNOUNCED"
    DELAY = "DELAY"
    NEW_KEY_VISUAL = "NEW_KEY_VISUAL"
    TRAILER_DROP = "TRAILER_DROP"
    CAST_ADDITION = "CAST_ADDITION"
    STAFF_UPDATE = "STAFF_UPDATE"
    TRENDING_UPDATE = "TRENDING_UPDATE"


@dataclass(frozen=True)
class RawItem:
    """Normalized item as returned by a source adapter.

    `assets` are image URLs tied to the announcement itself (e.g. the key
    visual attached to a news post); they short-circuit image harvesting.
    """

    title: str
    source: str
    image: Optional[str] = None
    description: Optional[str] = None
    source_type: SourceType = SourceType.GENERAL
    subject_id: Optional[str] = None
    assets: Tuple[str, ...] = ()
    published_at: Optional[datetime] = None
    raw: Optional[Dict[str, Any]] = None


@dataclass
class Candidate:
    """Aggregated topic backed by one or more corroborating sources.

    Unique by `key` within one aggregation run. Fields after `score` are
    filled progressively: aggregation backfills image/description, topic
    synthesis fills slug/content/claim data, the pipeline fills fingerprints,
    tier and relevance.
    """

    title: str
    key: str
    sources: List[str] = field(default_factory=list)
    score: int = 0
    image: Optional[str] = None
    description: Optional[str] = None
    claim_type: Optional[ClaimType] = None
    subject_id: Optional[str] = None
    season_label: Optional[str] = None
    event_fingerprint: Optional[str] = None
    truth_fingerprint: Optional[str] = None
    has_breaking_vote: bool = False
    announcement_assets: List[str] = field(default_factory=list)
    slug: Optional[str] = None
    content: Optional[str] = None
    signal_date: Optional[str] = None
    source_tier: Optional[int] = None
    relevance_score: Optional[int] = None
