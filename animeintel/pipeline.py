"""One pipeline run: aggregate, identify, gate and illustrate candidates.

Candidates are processed one at a time, highest corroboration first. The
history is re-read before every candidate and merged with what this run has
already accepted, so two sources of the same story in one batch cannot both
get through.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from animeintel.config import PipelineSettings
from animeintel.dedup.gate import (
    DECLINED,
    DedupGate,
    GateDecision,
    RejectReason,
    check_for_duplicate,
    word_overlap,
)
from animeintel.dedup.history import HistoryEntry, HistoryStore
from animeintel.identity.fingerprints import assign_fingerprints
from animeintel.ingestion.adapters import BaseAdapter
from animeintel.ingestion.aggregator import aggregate, synthesize_topic
from animeintel.ingestion.item_types import Candidate
from animeintel.scoring.trust import best_source_tier, calculate_relevance_score
from animeintel.visuals.image_types import ImageSelection
from animeintel.visuals.probe import is_reachable
from animeintel.visuals.selector import ImageSelector


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    candidate: Candidate
    decision: GateDecision
    image: Optional[ImageSelection] = None

    @property
    def accepted(self) -> bool:
        return self.decision.accepted


@dataclass
class PipelineRun:
    results: List[PipelineResult] = field(default_factory=list)

    def accepted_results(self) -> List[PipelineResult]:
        return [r for r in self.results if r.accepted]


def _history_entry(c: Candidate, idx: int) -> HistoryEntry:
    return HistoryEntry(
        id=f"run-{idx}",
        title=c.title,
        slug=c.slug,
        event_fingerprint=c.event_fingerprint,
        truth_fingerprint=c.truth_fingerprint,
        claim_type=c.claim_type.value if c.claim_type else None,
    )


@dataclass
class CandidatePipeline:
    store: HistoryStore
    selector: ImageSelector
    settings: PipelineSettings
    reachable: Optional[Callable[[str], bool]] = None

    def _history(self, accepted: Sequence[HistoryEntry]) -> List[HistoryEntry]:
        return list(accepted) + self.store.list_recent(self.settings.recent_history_limit)

    def resolve_subject(self, candidate: Candidate) -> None:
        """Use the metadata service's media id as the subject when no source supplied one."""
        if candidate.subject_id:
            return
        meta = self.selector.metadata(candidate.title)
        if meta and meta.media_id:
            candidate.subject_id = meta.media_id

    def prepare(self, candidate: Candidate, now: datetime) -> Candidate:
        self.resolve_subject(candidate)
        synthesize_topic(candidate, now)
        assign_fingerprints(candidate)
        tier = best_source_tier(candidate.sources, self.store.get_source_tier)
        candidate.source_tier = tier
        candidate.relevance_score = calculate_relevance_score(candidate.title, tier)
        return candidate

    def evaluate(
        self,
        candidate: Candidate,
        accepted: Sequence[HistoryEntry],
        *,
        force: bool = False,
        now: Optional[datetime] = None,
    ) -> PipelineResult:
        now = now or datetime.now(timezone.utc)
        gate = DedupGate(self.settings, self.reachable)
        self.prepare(candidate, now)

        try:
            history = self._history(accepted)
            dup = None
            if not force:
                dup = check_for_duplicate(
                    candidate.title,
                    self.store,
                    threshold=self.settings.overlap_threshold,
                    recent_limit=self.settings.recent_history_limit,
                )
        except Exception as e:
            logger.warning("History unavailable for %r: %s", candidate.title, e)
            return PipelineResult(candidate, GateDecision.reject(RejectReason.HISTORY_UNAVAILABLE, str(e)))

        if dup == DECLINED:
            return PipelineResult(candidate, GateDecision.reject(RejectReason.DECLINED_TOPIC))
        if dup is None and not force:
            for h in accepted:
                if word_overlap(candidate.title, h.title) > self.settings.overlap_threshold:
                    dup = h.id
                    break
        if dup is not None:
            return PipelineResult(candidate, GateDecision.reject(RejectReason.FUZZY_DUPLICATE, f"matches {dup}"))

        pre = gate.validate(candidate, history, force=force, require_image=False)
        if not pre.accepted:
            return PipelineResult(candidate, pre)

        image = self.selector.select(candidate)
        candidate.image = image.url
        decision = gate.validate(candidate, history, force=force)
        return PipelineResult(candidate, decision, image)

    def run(
        self,
        adapters: Sequence[BaseAdapter],
        *,
        force: bool = False,
        now: Optional[datetime] = None,
    ) -> PipelineRun:
        now = now or datetime.now(timezone.utc)
        published: List[str] = []
        if not force:
            try:
                published = [h.title for h in self.store.list_recent(self.settings.recent_history_limit)]
            except Exception as e:
                logger.warning("Could not read history for pre-filter: %s", e)
        ranked = aggregate(adapters, published_titles=published, max_workers=self.settings.max_source_workers)

        run = PipelineRun()
        accepted: List[HistoryEntry] = []
        for cand in ranked:
            if len(accepted) >= self.settings.max_accepted:
                logger.info("Accepted cap %d reached; %d candidates left unprocessed",
                            self.settings.max_accepted, len(ranked) - len(run.results))
                break
            result = self.evaluate(cand, accepted, force=force, now=now)
            run.results.append(result)
            if result.accepted:
                accepted.insert(0, _history_entry(cand, len(run.results)))
                logger.info("Accepted %r (score=%d, tier=%s, relevance=%s)",
                            cand.title, cand.score, cand.source_tier, cand.relevance_score)
            else:
                logger.info("Rejected %r: %s %s", cand.title,
                            result.decision.reason.value if result.decision.reason else "", result.decision.detail)
        return run


def run_pipeline(
    adapters: Sequence[BaseAdapter],
    store: HistoryStore,
    *,
    settings: Optional[PipelineSettings] = None,
    selector: Optional[ImageSelector] = None,
    reachable: Optional[Callable[[str], bool]] = None,
    force: bool = False,
    now: Optional[datetime] = None,
) -> PipelineRun:
    settings = settings or PipelineSettings()
    pipeline = CandidatePipeline(
        store=store,
        selector=selector or ImageSelector.from_settings(settings),
        settings=settings,
        reachable=reachable or (lambda url: is_reachable(url, timeout=settings.http_timeout)),
    )
    return pipeline.run(adapters, force=force, now=now)
