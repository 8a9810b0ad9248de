"""Deduplication and trust gate.

`validate` runs ordered checks and stops at the first rejection:

1. banned topic (never bypassed)
2. truth-level suppression for one-shot event types
3. exact-signal suppression on the event fingerprint
4. legacy title/slug match for records without fingerprints
5. visual requirement (present, not the fallback asset, reachable)

`force` bypasses checks 2-4. Rejections are returned, never raised.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Union

from animeintel.config import PipelineSettings
from animeintel.dedup.history import HistoryEntry, HistoryStore
from animeintel.ingestion.item_types import Candidate
from animeintel.ingestion.text_utils import alnum_key, significant_words


logger = logging.getLogger(__name__)

DECLINED = "DECLINED"


class RejectReason(str, Enum):
    BANNED_TOPIC = "banned_topic"
    DUPLICATE_FACT = "duplicate_fact"
    DUPLICATE_EVENT = "duplicate_event"
    DUPLICATE_TITLE = "duplicate_title"
    MISSING_IMAGE = "missing_image"
    FALLBACK_IMAGE = "fallback_image"
    UNREACHABLE_IMAGE = "unreachable_image"
    DECLINED_TOPIC = "declined_topic"
    FUZZY_DUPLICATE = "fuzzy_duplicate"
    HISTORY_UNAVAILABLE = "history_unavailable"


@dataclass(frozen=True)
class GateDecision:
    accepted: bool
    reason: Optional[RejectReason] = None
    detail: str = ""

    @classmethod
    def accept(cls) -> "GateDecision":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: RejectReason, detail: str = "") -> "GateDecision":
        return cls(accepted=False, reason=reason, detail=detail)


def is_banned(text: str, patterns: Sequence[str]) -> Optional[str]:
    blob = (text or "").lower()
    for p in patterns:
        if re.search(p, blob, flags=re.IGNORECASE):
            return p
    return None


def _is_network_url(url: str) -> bool:
    return url.lower().startswith(("http://", "https://"))


@dataclass
class DedupGate:
    settings: PipelineSettings
    reachable: Optional[Callable[[str], bool]] = None

    def validate(
        self,
        candidate: Candidate,
        history: Sequence[HistoryEntry],
        force: bool = False,
        require_image: bool = True,
    ) -> GateDecision:
        s = self.settings

        pattern = is_banned(f"{candidate.title} {candidate.content or ''}", s.banned_topics)
        if pattern:
            logger.warning("Rejected banned topic %r (pattern %s)", candidate.title, pattern)
            return GateDecision.reject(RejectReason.BANNED_TOPIC, pattern)

        claim = candidate.claim_type.value if candidate.claim_type else ""
        if not force:
            if candidate.truth_fingerprint and claim in s.strict_truth_event_types:
                for h in history:
                    if h.truth_fingerprint and h.truth_fingerprint == candidate.truth_fingerprint:
                        return GateDecision.reject(RejectReason.DUPLICATE_FACT, f"matches {h.id}")

            if candidate.event_fingerprint:
                for h in history:
                    if h.event_fingerprint and h.event_fingerprint == candidate.event_fingerprint:
                        return GateDecision.reject(RejectReason.DUPLICATE_EVENT, f"matches {h.id}")

            key = alnum_key(candidate.title)
            for h in history:
                if key and alnum_key(h.title) == key:
                    return GateDecision.reject(RejectReason.DUPLICATE_TITLE, f"title matches {h.id}")
                if candidate.slug and h.slug and h.slug == candidate.slug:
                    return GateDecision.reject(RejectReason.DUPLICATE_TITLE, f"slug matches {h.id}")

        if not require_image:
            return GateDecision.accept()

        image = (candidate.image or "").strip()
        if not image:
            return GateDecision.reject(RejectReason.MISSING_IMAGE)
        if image == s.fallback_image:
            return GateDecision.reject(RejectReason.FALLBACK_IMAGE)
        if _is_network_url(image) and self.reachable is not None and not self.reachable(image):
            return GateDecision.reject(RejectReason.UNREACHABLE_IMAGE, image)
        return GateDecision.accept()


def word_overlap(a: str, b: str) -> float:
    wa = significant_words(a)
    wb = significant_words(b)
    if not wa or not wb:
        return 0.0
    shared = len(set(wa) & set(wb))
    return shared / max(len(wa), len(wb))


def check_for_duplicate(
    title: str,
    store: HistoryStore,
    *,
    threshold: float = 0.7,
    recent_limit: int = 200,
) -> Union[str, int, None]:
    """Fuzzy title match against declined topics first, then recent posts.

    Returns DECLINED, the matched post id, or None.
    """
    if not significant_words(title):
        return None
    for d in store.list_declined():
        if word_overlap(title, d.title) > threshold:
            return DECLINED
    for h in store.list_recent(recent_limit):
        if word_overlap(title, h.title) > threshold:
            return h.id
    return None


def validate(
    candidate: Candidate,
    history: Sequence[HistoryEntry],
    force: bool = False,
    require_image: bool = True,
    *,
    settings: Optional[PipelineSettings] = None,
    reachable: Optional[Callable[[str], bool]] = None,
) -> GateDecision:
    return DedupGate(settings or PipelineSettings(), reachable).validate(candidate, history, force, require_image)
