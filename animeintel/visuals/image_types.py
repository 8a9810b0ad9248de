"""Image candidate records used during one selection call."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Classification(str, Enum):
    CLEAN = "CLEAN"
    TEXT_HEAVY = "TEXT_HEAVY"


@dataclass(frozen=True)
class RawImage:
    """Harvested, not yet validated. `tier` is 1 (best) to 6 (worst)."""

    url: str
    origin: str
    tier: int


@dataclass
class ScoredImage:
    url: str
    origin: str
    tier: int
    width: int
    height: int
    score: float = 0.0
    classification: Classification = Classification.CLEAN
    content: Optional[bytes] = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class ImageSelection:
    """Imagery handed to the publishing layer.

    `is_fallback` marks the branded placeholder: no real image was found.
    """

    url: str
    classification: Classification
    origin: str = ""
    score: float = 0.0
    is_fallback: bool = False
