"""Content-addressed identities for candidates.

Two hashes coexist on a candidate:

- event fingerprint: one exact reported instance (subject, event type,
  announcement key, and the signal date or asset that carried it).
- truth fingerprint: the underlying fact (subject, event type, season label),
  independent of who reported it or when.

Season confirmations are suppressed on the truth hash, so a second outlet
repeating "Season 2 confirmed" is dropped, while distinct updates for the
same show (new trailer, cast reveal) still get distinct event hashes.
"""

from __future__ import annotations

import hashlib
from typing import Any, Optional

from animeintel.ingestion.item_types import Candidate


DEFAULT_SEASON_LABEL = "0"


def _norm(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "value"):
        value = value.value
    return " ".join(str(value).split()).lower()


def _digest(*parts: Any) -> str:
    raw = "|".join(_norm(p) for p in parts)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def event_fingerprint(
    subject_id: Any,
    event_type: Any,
    canonical_announcement_key: Any,
    primary_signal_date_or_asset_id: Any,
) -> str:
    return _digest(subject_id, event_type, canonical_announcement_key, primary_signal_date_or_asset_id)


def truth_fingerprint(subject_id: Any, event_type: Any, season_label: Optional[Any] = None) -> str:
    season = season_label if (season_label is not None and _norm(season_label)) else DEFAULT_SEASON_LABEL
    return _digest(subject_id, event_type, season)


def assign_fingerprints(candidate: Candidate) -> Candidate:
    """Set both fingerprints on a synthesized candidate.

    The primary signal is the tied asset when one exists, else the signal date.
    """
    subject = candidate.subject_id or candidate.key
    event_type = candidate.claim_type
    signal = (
        candidate.announcement_assets[0]
        if candidate.announcement_assets
        else (candidate.signal_date or "")
    )
    candidate.event_fingerprint = event_fingerprint(subject, event_type, candidate.key, signal)
    candidate.truth_fingerprint = truth_fingerprint(subject, event_type, candidate.season_label)
    return candidate
