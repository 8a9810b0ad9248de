"""Keyword classification of image candidates.

Rules are evaluated top to bottom; the first predicate that matches decides.
Each predicate looks at the lowercased origin label and URL.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List

from animeintel.visuals.image_types import Classification


TEXT_KEYWORDS = ("poster", "visual", "magazine", "trailer", "screenshot", "cover", "official website")
CLEAN_KEYWORDS = ("clean", "artwork", "scenery", "background", "banner", "conceptual", "production art")


@dataclass(frozen=True)
class ImageContext:
    origin: str
    url: str

    @property
    def label(self) -> str:
        return (self.origin or "").lower()

    @property
    def blob(self) -> str:
        return f"{self.origin or ''} {self.url or ''}".lower()


def banner_label(ctx: ImageContext) -> bool:
    return "banner" in ctx.label


def has_text_keyword(ctx: ImageContext) -> bool:
    return any(k in ctx.blob for k in TEXT_KEYWORDS)


def has_clean_keyword(ctx: ImageContext) -> bool:
    return any(k in ctx.blob for k in CLEAN_KEYWORDS)


def text_keyword_with_clean_override(ctx: ImageContext) -> bool:
    return has_text_keyword(ctx) and has_clean_keyword(ctx)


@dataclass(frozen=True)
class ClassificationRule:
    name: str
    predicate: Callable[[ImageContext], bool]
    result: Classification


CLASSIFICATION_RULES: List[ClassificationRule] = [
    ClassificationRule("banner_label", banner_label, Classification.CLEAN),
    ClassificationRule("text_with_clean_keyword", text_keyword_with_clean_override, Classification.CLEAN),
    ClassificationRule("text_keyword", has_text_keyword, Classification.TEXT_HEAVY),
    ClassificationRule("default", lambda ctx: True, Classification.CLEAN),
]


def matching_rule(origin: str, url: str) -> ClassificationRule:
    ctx = ImageContext(origin=origin, url=url)
    for rule in CLASSIFICATION_RULES:
        if rule.predicate(ctx):
            return rule
    return CLASSIFICATION_RULES[-1]


def classify(origin: str, url: str) -> Classification:
    return matching_rule(origin, url).result
