"""Source trust tiers and relevance scoring.

Deterministic, explainable scoring:
- source tier (1 premier/official, 2 community/aggregator, 3 unknown)
- relevance 0-100 from tier plus headline signal words
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional


logger = logging.getLogger(__name__)

TierLookup = Callable[[str], Optional[int]]

# Name fragments; matched case-insensitively as substrings. Always win over the store.
TIER_1_FRAGMENTS = (
    "animenewsnetwork",
    "crunchyroll",
    "variety",
    "hollywoodreporter",
    "deadline",
    "mainichi",
    "mantan-web",
)

TIER_2_FRAGMENTS = (
    "anilist",
    "myanimelist",
    "twitter",
    "x.com",
    "reddit",
    "instagram",
)

DEFAULT_TIER = 3

POSITIVE_SIGNALS = ("announced", "confirmed", "premiere", "new season", "trailer")
NEGATIVE_SIGNALS = ("rumor", "speculation", "leak")


def get_source_tier(name: Optional[str], lookup: Optional[TierLookup] = None) -> int:
    """Resolve a source's tier: allow-lists first, then the persisted store."""
    if not name:
        return DEFAULT_TIER
    n = name.lower()
    if any(k in n for k in TIER_1_FRAGMENTS):
        return 1
    if any(k in n for k in TIER_2_FRAGMENTS):
        return 2
    if lookup is None:
        return DEFAULT_TIER
    try:
        tier = lookup(name)
    except Exception as e:
        logger.warning("Source tier lookup failed for %s: %s", name, e)
        return DEFAULT_TIER
    if tier in (1, 2, 3):
        return int(tier)
    return DEFAULT_TIER


def best_source_tier(sources: Iterable[str], lookup: Optional[TierLookup] = None) -> int:
    tiers = [get_source_tier(s, lookup) for s in sources]
    return min(tiers) if tiers else DEFAULT_TIER


def calculate_relevance_score(title: str, tier: int) -> int:
    score = 50
    if tier == 1:
        score += 30
    elif tier == 2:
        score += 15
    t = (title or "").lower()
    if any(s in t for s in POSITIVE_SIGNALS):
        score += 5
    if any(s in t for s in NEGATIVE_SIGNALS):
        score -= 10
    return max(0, min(100, score))
