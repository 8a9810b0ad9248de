"""Runtime settings for the candidate pipeline.

Every threshold here was picked empirically; treat them as tunables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import FrozenSet, Tuple

from dotenv import load_dotenv


DEFAULT_BANNED_TOPICS: Tuple[str, ...] = (
    r"\bhentai\b",
    r"\bnsfw\b",
    r"\bpiracy\b",
    r"\bleaked\s+episode\b",
)

FALLBACK_IMAGE = "/hero-bg-final.png"


@dataclass(frozen=True)
class PipelineSettings:
    # dedup
    overlap_threshold: float = 0.7
    recent_history_limit: int = 200
    strict_truth_event_types: FrozenSet[str] = frozenset({"NEW_SEASON_CONFIRMED"})
    banned_topics: Tuple[str, ...] = DEFAULT_BANNED_TOPICS
    # image gates
    min_short_side: int = 450
    relaxed_min_short_side: int = 300
    min_aspect: float = 0.6
    max_aspect: float = 1.6
    max_image_bytes: int = 15_000_000
    # visual override
    flat_cell_entropy: float = 6.8
    min_flat_cells: int = 4
    center_entropy_limit: float = 7.6
    corner_entropy_limit: float = 7.5
    # network
    http_timeout: float = 15.0
    search_delay: float = 1.0
    rate_limit_retry_delay: float = 5.0
    # run bounds
    max_accepted: int = 20
    max_source_workers: int = 3
    fallback_image: str = FALLBACK_IMAGE
    user_agent: str = "AnimeIntel/1.0"


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    return float(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    return int(raw) if raw else default


def load_settings() -> PipelineSettings:
    """Build settings from the environment (and a `.env` file if present)."""
    load_dotenv()
    d = PipelineSettings()
    banned_raw = os.environ.get("BANNED_TOPICS", "").strip()
    banned = tuple(p.strip() for p in banned_raw.split(",") if p.strip()) if banned_raw else d.banned_topics
    strict_raw = os.environ.get("STRICT_TRUTH_EVENT_TYPES", "").strip()
    strict = (
        frozenset(s.strip().upper() for s in strict_raw.split(",") if s.strip())
        if strict_raw
        else d.strict_truth_event_types
    )
    return PipelineSettings(
        overlap_threshold=_env_float("DUP_OVERLAP_THRESHOLD", d.overlap_threshold),
        recent_history_limit=_env_int("RECENT_HISTORY_LIMIT", d.recent_history_limit),
        strict_truth_event_types=strict,
        banned_topics=banned,
        min_short_side=_env_int("IMAGE_MIN_SHORT_SIDE", d.min_short_side),
        relaxed_min_short_side=_env_int("IMAGE_RELAXED_MIN_SHORT_SIDE", d.relaxed_min_short_side),
        min_aspect=_env_float("IMAGE_MIN_ASPECT", d.min_aspect),
        max_aspect=_env_float("IMAGE_MAX_ASPECT", d.max_aspect),
        max_image_bytes=_env_int("IMAGE_MAX_BYTES", d.max_image_bytes),
        flat_cell_entropy=_env_float("OVERRIDE_FLAT_CELL_ENTROPY", d.flat_cell_entropy),
        min_flat_cells=_env_int("OVERRIDE_MIN_FLAT_CELLS", d.min_flat_cells),
        center_entropy_limit=_env_float("OVERRIDE_CENTER_ENTROPY", d.center_entropy_limit),
        corner_entropy_limit=_env_float("OVERRIDE_CORNER_ENTROPY", d.corner_entropy_limit),
        http_timeout=_env_float("HTTP_TIMEOUT", d.http_timeout),
        search_delay=_env_float("SEARCH_DELAY", d.search_delay),
        rate_limit_retry_delay=_env_float("SEARCH_RETRY_DELAY", d.rate_limit_retry_delay),
        max_accepted=_env_int("MAX_ACCEPTED_PER_RUN", d.max_accepted),
        max_source_workers=_env_int("MAX_SOURCE_WORKERS", d.max_source_workers),
        fallback_image=os.environ.get("FALLBACK_IMAGE", "").strip() or d.fallback_image,
        user_agent=os.environ.get("HTTP_USER_AGENT", "").strip() or d.user_agent,
    )
