"""Best-image selection for a topic.

Stages, stopping early when one is definitive:

A. Announcement-tied asset: use the first one, keyword classification only.
B. Harvest: metadata banner/cover (tier 3), the official site's preview
   image (tier 1), clean-art community searches (tier 1) and broad
   community searches (tier 6).

Every URL is probed and must pass the size and aspect gates before it is
scored. TEXT_HEAVY candidates get a perceptual second look, then the ranking
prefers a non-poster image over a weak poster. With nothing usable, the
official assets are retried at a relaxed size, and after that the branded
fallback is returned with `is_fallback=True`.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from animeintel.config import PipelineSettings
from animeintel.ingestion.claims import extract_subject
from animeintel.ingestion.item_types import Candidate
from animeintel.visuals.classification import classify
from animeintel.visuals.entropy import apply_visual_override
from animeintel.visuals.harvest import (
    AniListMetadataLookup,
    CommunityImageSearch,
    MetadataResult,
    crawl_official_site_image,
)
from animeintel.visuals.image_types import Classification, ImageSelection, RawImage, ScoredImage
from animeintel.visuals.probe import ProbeResult, passes_gates, probe_image


logger = logging.getLogger(__name__)

BANNER_ORIGIN = "AniList Banner"
COVER_ORIGIN = "AniList Cover"
SITE_ORIGIN = "Official Website"
ANNOUNCEMENT_ORIGIN = "Announcement Asset"
BROAD_SEARCH_ORIGIN = "Reddit Community"

CLEAN_SEARCH_PHRASES = ("clean visual", "scenery", "artwork")
BROAD_SEARCH_SUFFIXES = ("official", "")

POSTER_LABELS = ("poster", "cover", "official site", "official website")


def score_image(tier: int, width: int, height: int, origin: str) -> float:
    if tier < 1:
        raise ValueError(f"tier must be >= 1, got {tier}")
    score = 100.0 - (tier - 1) * 10
    label = (origin or "").lower()
    aspect = width / height if height else 0.0
    if aspect < 1.0 and any(k in label for k in ("cover", "official site", "official website")):
        score -= 30  # portrait cover/site art is usually a poster with a logo on it
    if aspect > 1.2:
        score += 15  # wide: banner or scenery
    return score


def is_poster_labeled(img: ScoredImage) -> bool:
    label = (img.origin or "").lower()
    return any(k in label for k in POSTER_LABELS)


def is_presumed_poster(img: ScoredImage) -> bool:
    return img.score < 80 and is_poster_labeled(img)


def pick_winner(ranked: Sequence[ScoredImage]) -> Optional[ScoredImage]:
    """Top score, unless it is a weak poster and a decent non-poster exists."""
    if not ranked:
        return None
    top = ranked[0]
    if is_presumed_poster(top):
        for alt in ranked[1:]:
            if not is_poster_labeled(alt) and alt.score > 60:
                logger.info("Re-rolled poster %s in favour of %s", top.url, alt.url)
                return alt
    return top


@dataclass
class ImageSelector:
    settings: PipelineSettings
    lookup: Callable[[str], Optional[MetadataResult]]
    search: Callable[[str], List[str]]
    crawl: Callable[[str], Optional[str]]
    probe: Callable[[str], ProbeResult]
    max_probe_workers: int = 4
    _probe_cache: Dict[str, ProbeResult] = field(default_factory=dict, init=False, repr=False)
    _meta_cache: Dict[str, Optional[MetadataResult]] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> "ImageSelector":
        t = settings.http_timeout
        community = CommunityImageSearch(
            delay=settings.search_delay,
            retry_delay=settings.rate_limit_retry_delay,
            timeout=t,
            user_agent=settings.user_agent,
        )
        return cls(
            settings=settings,
            lookup=AniListMetadataLookup(timeout=t).lookup,
            search=community.search,
            crawl=lambda url: crawl_official_site_image(url, timeout=t),
            probe=lambda url: probe_image(url, timeout=t, max_bytes=settings.max_image_bytes),
        )

    # -- harvesting --------------------------------------------------------

    def metadata(self, title: str) -> Optional[MetadataResult]:
        """Metadata for the show a headline is about. One lookup per show per selector."""
        term = extract_subject(title) or title
        if term not in self._meta_cache:
            self._meta_cache[term] = self.lookup(term)
        return self._meta_cache[term]

    def _official_assets(self, meta: Optional[MetadataResult]) -> List[RawImage]:
        out: List[RawImage] = []
        if meta and meta.banner_image:
            out.append(RawImage(meta.banner_image, BANNER_ORIGIN, 3))
        if meta and meta.cover_image:
            out.append(RawImage(meta.cover_image, COVER_ORIGIN, 3))
        return out

    def _site_assets(self, meta: Optional[MetadataResult]) -> List[RawImage]:
        if not meta or not meta.official_site_url:
            return []
        url = self.crawl(meta.official_site_url)
        return [RawImage(url, SITE_ORIGIN, 1)] if url else []

    def _community_assets(self, title: str) -> List[RawImage]:
        out: List[RawImage] = []
        for phrase in CLEAN_SEARCH_PHRASES:
            for url in self.search(f"{title} {phrase}"):
                out.append(RawImage(url, f"Reddit Search ({phrase})", 1))
        for suffix in BROAD_SEARCH_SUFFIXES:
            for url in self.search(f"{title} {suffix}".strip()):
                out.append(RawImage(url, BROAD_SEARCH_ORIGIN, 6))
        return out

    def harvest(self, title: str) -> List[RawImage]:
        meta = self.metadata(title)
        official = self._official_assets(meta)
        with ThreadPoolExecutor(max_workers=2) as pool:
            site_future = pool.submit(self._site_assets, meta)
            community_future = pool.submit(self._community_assets, title)
            site = site_future.result()
            community = community_future.result()
        seen = set()
        out: List[RawImage] = []
        # Earlier entries win, so a URL keeps its most trusted origin.
        for raw in sorted(official + site + community, key=lambda r: r.tier):
            if raw.url in seen:
                continue
            seen.add(raw.url)
            out.append(raw)
        return out

    # -- validation + scoring ---------------------------------------------

    def _measure(self, url: str) -> ProbeResult:
        try:
            return self.probe(url)
        except Exception as e:
            logger.warning("Image check raised for %s: %s", url, e)
            return ProbeResult(status="error", error=str(e))

    def _probe_all(self, raws: Sequence[RawImage]) -> None:
        todo = [r.url for r in raws if r.url not in self._probe_cache]
        if not todo:
            return
        with ThreadPoolExecutor(max_workers=max(1, self.max_probe_workers)) as pool:
            for url, res in zip(todo, pool.map(self._measure, todo)):
                self._probe_cache[url] = res

    def evaluate(self, raws: Sequence[RawImage], min_short_side: int) -> List[ScoredImage]:
        """Probe, gate, score and classify. Only gated images are returned."""
        s = self.settings
        self._probe_all(raws)
        pool: List[ScoredImage] = []
        for raw in raws:
            res = self._probe_cache.get(raw.url)
            if res is None or not res.ok:
                logger.debug("Dropped %s: %s", raw.url, res.status if res else "no_probe")
                continue
            gate = passes_gates(
                res.width,
                res.height,
                min_short_side=min_short_side,
                min_aspect=s.min_aspect,
                max_aspect=s.max_aspect,
            )
            if gate:
                logger.debug("Dropped %s (%dx%d): %s", raw.url, res.width, res.height, gate)
                continue
            img = ScoredImage(
                url=raw.url,
                origin=raw.origin,
                tier=raw.tier,
                width=res.width,
                height=res.height,
                score=score_image(raw.tier, res.width, res.height, raw.origin),
                classification=classify(raw.origin, raw.url),
                content=res.content,
            )
            pool.append(apply_visual_override(img, s))
        pool.sort(key=lambda c: c.score, reverse=True)
        return pool

    # -- entry point -------------------------------------------------------

    def fallback(self) -> ImageSelection:
        return ImageSelection(
            url=self.settings.fallback_image,
            classification=Classification.CLEAN,
            origin="fallback",
            is_fallback=True,
        )

    def select(self, candidate: Candidate) -> ImageSelection:
        title = candidate.title
        if candidate.announcement_assets:
            url = candidate.announcement_assets[0]
            return ImageSelection(url=url, classification=classify(ANNOUNCEMENT_ORIGIN, url), origin=ANNOUNCEMENT_ORIGIN)

        self._probe_cache.clear()
        raws = self.harvest(title)
        ranked = self.evaluate(raws, self.settings.min_short_side)

        if not ranked:
            official = [r for r in raws if r.origin in (BANNER_ORIGIN, COVER_ORIGIN)]
            if official:
                logger.info("No image passed gates for %r; retrying official assets relaxed", title)
                ranked = self.evaluate(official, self.settings.relaxed_min_short_side)

        winner = pick_winner(ranked)
        self._probe_cache.clear()
        if winner is None:
            logger.warning("No usable image for %r; returning fallback asset", title)
            return self.fallback()
        logger.info(
            "Image for %r: %s (%s, %dx%d, score %.1f, %s)",
            title,
            winner.url,
            winner.origin,
            winner.width,
            winner.height,
            winner.score,
            winner.classification.value,
        )
        return ImageSelection(
            url=winner.url,
            classification=winner.classification,
            origin=winner.origin,
            score=winner.score,
        )
