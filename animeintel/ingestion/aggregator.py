"""Multi-source candidate aggregation.

Raw items from every adapter are fuzzy-merged into topics keyed by their
normalized title. Each distinct source label adds one point of
corroboration to the topic it lands in.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from animeintel.ingestion.adapters import BaseAdapter
from animeintel.ingestion.claims import detect_claim_type, extract_season_label, extract_subject
from animeintel.ingestion.item_types import Candidate, RawItem, SourceType
from animeintel.ingestion.text_utils import normalize, slugify, titles_overlap


logger = logging.getLogger(__name__)


@dataclass
class CandidatePool:
    """Candidates for one aggregation run, keyed by normalized title."""

    entries: Dict[str, Candidate] = field(default_factory=dict)

    def find(self, key: str) -> Optional[Candidate]:
        if key in self.entries:
            return self.entries[key]
        for existing_key, cand in self.entries.items():
            if titles_overlap(existing_key, key):
                return cand
        return None

    def candidates(self) -> List[Candidate]:
        return list(self.entries.values())


def add_vote(pool: CandidatePool, item: RawItem) -> Optional[Candidate]:
    """Record one source's vote for the topic an item belongs to."""
    key = normalize(item.title)
    if not key:
        return None
    cand = pool.find(key)
    if cand is None:
        cand = Candidate(title=item.title.strip(), key=key)
        pool.entries[key] = cand
    if item.source not in cand.sources:
        cand.sources.append(item.source)
        cand.score += 1
    if item.source_type == SourceType.BREAKING:
        cand.has_breaking_vote = True
    # Backfill only; first writer keeps the field.
    if not cand.image and item.image:
        cand.image = item.image
    if not cand.description and item.description:
        cand.description = item.description
    if not cand.subject_id and item.subject_id:
        cand.subject_id = item.subject_id
    for asset in item.assets:
        if asset not in cand.announcement_assets:
            cand.announcement_assets.append(asset)
    return cand


def exclude_published(items: Iterable[RawItem], published_titles: Iterable[str]) -> List[RawItem]:
    """Drop items whose title overlaps anything already published."""
    published = [p for p in (normalize(t) for t in published_titles) if p]
    out: List[RawItem] = []
    for it in items:
        key = normalize(it.title)
        if any(titles_overlap(key, p) for p in published):
            logger.info("Skipping already-published topic: %s", it.title)
            continue
        out.append(it)
    return out


def rank_candidates(pool: CandidatePool) -> List[Candidate]:
    """Score descending; breaking-news backing wins ties. Stable for equal keys."""
    return sorted(pool.candidates(), key=lambda c: (-c.score, not c.has_breaking_vote))


def synthesize_topic(candidate: Candidate, now: Optional[datetime] = None) -> Candidate:
    """Fill the topic record fields the sources did not supply."""
    now = now or datetime.now(timezone.utc)
    day = now.date().isoformat()
    if not candidate.claim_type:
        candidate.claim_type = detect_claim_type(candidate.title, candidate.description)
    if not candidate.season_label:
        candidate.season_label = extract_season_label(candidate.title)
    if not candidate.subject_id:
        candidate.subject_id = extract_subject(candidate.title) or candidate.key
    if not candidate.slug:
        candidate.slug = f"{slugify(candidate.title) or 'intel'}-{day}"
    if not candidate.content:
        candidate.content = candidate.description or (
            f"{candidate.title} is trending across {candidate.score} "
            f"source{'s' if candidate.score != 1 else ''} today."
        )
    if not candidate.signal_date:
        candidate.signal_date = day
    return candidate


def _safe_fetch(adapter: BaseAdapter) -> List[RawItem]:
    try:
        return list(adapter.fetch() or [])
    except Exception as e:
        logger.warning("Adapter %s raised past its boundary: %s", getattr(adapter, "name", adapter), e)
        return []


def collect_items(adapters: Sequence[BaseAdapter], *, max_workers: int = 3) -> List[RawItem]:
    """Fetch every adapter concurrently. A failed adapter contributes nothing."""
    if not adapters:
        return []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(adapters)))) as pool:
        results = list(pool.map(_safe_fetch, adapters))
    items: List[RawItem] = []
    for adapter, batch in zip(adapters, results):
        logger.info("Adapter %s returned %d items", getattr(adapter, "name", "?"), len(batch))
        items.extend(batch)
    return items


def aggregate_items(items: Iterable[RawItem], published_titles: Iterable[str] = ()) -> List[Candidate]:
    pool = CandidatePool()
    for it in exclude_published(items, published_titles):
        add_vote(pool, it)
    return rank_candidates(pool)


def aggregate(
    adapters: Sequence[BaseAdapter],
    *,
    published_titles: Iterable[str] = (),
    max_workers: int = 3,
) -> List[Candidate]:
    """Fan out to all adapters, merge and rank. Always completes."""
    items = collect_items(adapters, max_workers=max_workers)
    ranked = aggregate_items(items, published_titles)
    logger.info("Aggregated %d raw items into %d candidates", len(items), len(ranked))
    return ranked
