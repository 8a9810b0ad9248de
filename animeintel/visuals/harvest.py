"""Image URL harvesting from metadata, official sites and community search."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from animeintel.ingestion.adapters import ANILIST_URL
from animeintel.ingestion.text_utils import normalize, titles_overlap
from animeintel.visuals.probe import BROWSER_UA


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetadataResult:
    media_id: Optional[str] = None
    banner_image: Optional[str] = None
    cover_image: Optional[str] = None
    official_site_url: Optional[str] = None
    matched_title: Optional[str] = None


METADATA_QUERY = """
query ($search: String) {
  Media(search: $search, type: ANIME, sort: SEARCH_MATCH) {
    id
    title { romaji english }
    synonyms
    bannerImage
    coverImage { extraLarge }
    externalLinks { site url }
  }
}
"""


def title_matches(query: str, titles: List[str]) -> Optional[str]:
    """Return the first returned title that contains (or is contained by) the query, on whole tokens."""
    q = normalize(query)
    if not q:
        return None
    for t in titles:
        n = normalize(t)
        if titles_overlap(q, n):
            return t
    return None


@dataclass(frozen=True)
class AniListMetadataLookup:
    timeout: float = 15.0
    endpoint: str = ANILIST_URL

    def lookup(self, title: str) -> Optional[MetadataResult]:
        try:
            resp = requests.post(
                self.endpoint,
                json={"query": METADATA_QUERY, "variables": {"search": title}},
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data: Dict[str, Any] = resp.json() or {}
        except Exception as e:
            logger.info("Metadata lookup failed for %r: %s", title, e)
            return None
        media = (data.get("data") or {}).get("Media")
        if not isinstance(media, dict):
            return None
        t = media.get("title") or {}
        names = [n for n in (t.get("english"), t.get("romaji"), *(media.get("synonyms") or [])) if n]
        matched = title_matches(title, names)
        if not matched:
            # A loose search hit would leak another show's art into this topic.
            logger.info("Metadata lookup for %r returned unrelated media %s", title, names[:2])
            return None
        site = None
        for link in media.get("externalLinks") or []:
            if isinstance(link, dict) and link.get("site") == "Official Site" and link.get("url"):
                site = link["url"]
                break
        return MetadataResult(
            media_id=str(media["id"]) if media.get("id") is not None else None,
            banner_image=media.get("bannerImage"),
            cover_image=(media.get("coverImage") or {}).get("extraLarge"),
            official_site_url=site,
            matched_title=matched,
        )


def crawl_official_site_image(url: str, *, timeout: float = 15.0) -> Optional[str]:
    """Primary preview image (og:image, then twitter:image) of a site."""
    if not url:
        return None
    try:
        resp = requests.get(url, headers={"User-Agent": BROWSER_UA}, timeout=timeout)
        if resp.status_code >= 400:
            return None
        soup = BeautifulSoup(resp.text, "html.parser")
    except Exception as e:
        logger.info("Official site crawl failed for %s: %s", url, e)
        return None
    for attr, name in (("property", "og:image"), ("name", "twitter:image"), ("property", "twitter:image")):
        tag = soup.find("meta", attrs={attr: name})
        if tag and tag.get("content"):
            return urljoin(url, tag["content"].strip())
    return None


IMAGE_HOST_HINTS = ("i.redd.it", "i.imgur.com", "imgur.com", "static")


@dataclass
class CommunityImageSearch:
    """Reddit search for image posts.

    Requests are spaced by `delay` seconds. A 429 gets exactly one retry after
    `retry_delay`; a second failure is a miss for that term.
    """

    subreddit: str = "anime"
    delay: float = 1.0
    retry_delay: float = 5.0
    timeout: float = 15.0
    limit: int = 5
    user_agent: str = "AnimeIntel/1.0"
    _last_request: float = field(default=0.0, init=False, repr=False)

    def _wait_turn(self) -> None:
        if self._last_request:
            remaining = self.delay - (time.monotonic() - self._last_request)
            if remaining > 0:
                time.sleep(remaining)
        self._last_request = time.monotonic()

    def _get(self, term: str) -> requests.Response:
        self._wait_turn()
        return requests.get(
            f"https://www.reddit.com/r/{self.subreddit}/search.json",
            params={"q": term, "restrict_sr": 1, "sort": "relevance", "limit": self.limit},
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout,
        )

    def search(self, term: str) -> List[str]:
        try:
            resp = self._get(term)
            if resp.status_code == 429:
                logger.info("Community search rate-limited for %r; retrying once", term)
                time.sleep(self.retry_delay)
                resp = self._get(term)
            if resp.status_code >= 400:
                return []
            data = resp.json() or {}
        except Exception as e:
            logger.info("Community search failed for %r: %s", term, e)
            return []
        urls: List[str] = []
        for child in (data.get("data") or {}).get("children") or []:
            d = child.get("data") if isinstance(child, dict) else None
            if not isinstance(d, dict):
                continue
            u = str(d.get("url") or "")
            if not u or not any(h in u for h in IMAGE_HOST_HINTS):
                continue
            if u.endswith((".gif", ".gifv")) or "external-preview" in u:
                continue
            if u not in urls:
                urls.append(u)
        return urls
