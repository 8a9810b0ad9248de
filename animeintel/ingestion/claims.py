"""Claim type, season label and subject detection from headline text."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from animeintel.ingestion.item_types import ClaimType
from animeintel.ingestion.text_utils import normalize


# Ordered: first match wins. "delay" outranks "date" so "delayed to April" is a delay.
CLAIM_PATTERNS: List[Tuple[ClaimType, str]] = [
    (ClaimType.DELAY, r"\b(delay(ed)?|postpone(d)?|reschedule(d)?|hiatus)\b"),
    (ClaimType.NEW_SEASON_CONFIRMED, r"\b(season\s*\d+|\d+(st|nd|rd|th)\s+season|sequel|renewed|new season)\b"),
    (ClaimType.DATE_ANNOUNCED, r"\b(premiere(s)?\s+(on|in)|release date|airs?\s+(on|in)|broadcast date|set for)\b"),
    (ClaimType.TRAILER_DROP, r"\b(trailer|teaser|pv)\b"),
    (ClaimType.NEW_KEY_VISUAL, r"\b(key\s+visual|visual|poster)\b"),
    (ClaimType.CAST_ADDITION, r"\b(cast|voice actor|joins)\b"),
    (ClaimType.STAFF_UPDATE, r"\b(director|staff|studio|composer)\b"),
]

_SEASON_PATTERNS: List[Tuple[str, str]] = [
    (r"\bseason\s*(\d+)\b", "season {}"),
    (r"\b(\d+)(?:st|nd|rd|th)\s+season\b", "season {}"),
    (r"\bpart\s*(\d+)\b", "part {}"),
    (r"\bcour\s*(\d+)\b", "cour {}"),
]


def detect_claim_type(title: str, description: Optional[str] = None) -> ClaimType:
    blob = f"{title or ''} {description or ''}".lower()
    for claim, pat in CLAIM_PATTERNS:
        if re.search(pat, blob):
            return claim
    return ClaimType.TRENDING_UPDATE


def extract_season_label(title: str) -> str:
    """Return a canonical season/variant label, or "0" when none is stated."""
    t = (title or "").lower()
    for pat, fmt in _SEASON_PATTERNS:
        m = re.search(pat, t)
        if m:
            return fmt.format(int(m.group(1)))
    if re.search(r"\b(movie|film)\b", t):
        return "movie"
    return "0"


# Words that frame an announcement rather than name the show.
SUBJECT_FILLER = frozenset(
    {
        "officially", "official", "confirmed", "confirms", "confirm", "announced", "announces",
        "announce", "revealed", "reveals", "reveal", "gets", "get", "anime", "tv", "new",
        "the", "of", "for", "a", "an", "is", "has", "have", "been", "with", "and",
        "discussion", "thread",
    }
)

_ANNOUNCER_CLAUSE = re.compile(r"\b(confirmed|announced|revealed)\s+by\b.*$")
_EPISODE = re.compile(r"\b(episode|ep)\s*\d+\b")


def extract_subject(title: str) -> str:
    """Show name left after dropping claim, season and announcement wording.

    "Frieren Season 2 Officially Confirmed by Madhouse" -> "frieren". Returns
    "" when nothing but framing words remain.
    """
    t = normalize(title)
    t = _ANNOUNCER_CLAUSE.sub(" ", t)
    t = _EPISODE.sub(" ", t)
    for _, pat in CLAIM_PATTERNS:
        t = re.sub(pat, " ", t)
    for pat, _ in _SEASON_PATTERNS:
        t = re.sub(pat, " ", t)
    t = re.sub(r"\b(movie|film)\b", " ", t)
    return " ".join(w for w in t.split() if w not in SUBJECT_FILLER)
