"""Title normalization helpers for merging and dedup."""

from __future__ import annotations

import re
from typing import List, Sequence


_NON_WORD = re.compile(r"[^\w\s]+")
_WS = re.compile(r"\s+")


def normalize(title: str) -> str:
    """Lowercase, strip non-word characters, collapse whitespace, trim."""
    if not title:
        return ""
    t = _NON_WORD.sub(" ", str(title).lower())
    return _WS.sub(" ", t).strip()


def _contains_tokens(haystack: Sequence[str], needle: Sequence[str]) -> bool:
    n = len(needle)
    if n == 0 or n > len(haystack):
        return False
    for i in range(len(haystack) - n + 1):
        if list(haystack[i : i + n]) == list(needle):
            return True
    return False


def titles_overlap(a: str, b: str) -> bool:
    """True if two normalized titles are equal or one contains the other.

    Containment is checked on whole tokens so "one" does not match "phone".
    """
    if not a or not b:
        return False
    if a == b:
        return True
    ta = a.split(" ")
    tb = b.split(" ")
    return _contains_tokens(ta, tb) or _contains_tokens(tb, ta)


def slugify(text: str) -> str:
    return normalize(text).replace("_", " ").replace(" ", "-")


def alnum_key(title: str) -> str:
    """Alphanumeric-only lowercase form used by the legacy title check."""
    return re.sub(r"[^a-z0-9]", "", (title or "").lower())


def significant_words(title: str) -> List[str]:
    """Distinct words longer than 3 characters, punctuation stripped."""
    out: List[str] = []
    for w in (title or "").lower().split():
        w = re.sub(r"[^\w]", "", w)
        if len(w) > 3 and w not in out:
            out.append(w)
    return out
