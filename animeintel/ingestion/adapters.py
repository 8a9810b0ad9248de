"""Source adapters for anime news signals.

Each adapter normalizes one feed into RawItem. Contract: `fetch()` never
raises. Transport or parse failures are logged and yield an empty list, so a
dead source only lowers corroboration for this run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from time import mktime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import feedparser
import requests

from animeintel.ingestion.item_types import RawItem, SourceType


logger = logging.getLogger(__name__)

ANILIST_URL = "https://graphql.anilist.co"


def _struct_to_dt(st: Any) -> Optional[datetime]:
    if not st:
        return None
    try:
        return datetime.fromtimestamp(mktime(st), tz=timezone.utc)
    except Exception:
        return None


def _entry_images(entry: Any) -> Tuple[str, ...]:
    """Collect image URLs from media:content, media:thumbnail and enclosures."""
    urls: List[str] = []
    for key in ("media_content", "media_thumbnail"):
        for m in entry.get(key) or []:
            u = m.get("url") if isinstance(m, dict) else None
            if u and u not in urls:
                urls.append(u)
    for enc in entry.get("enclosures") or []:
        if (enc.get("type") or "").startswith("image/") and enc.get("href"):
            if enc["href"] not in urls:
                urls.append(enc["href"])
    return tuple(urls)


class BaseAdapter:
    name: str = "base"
    source_type: SourceType = SourceType.GENERAL

    def fetch(self) -> List[RawItem]:
        raise NotImplementedError


@dataclass(frozen=True)
class RSSNewsAdapter(BaseAdapter):
    """Breaking-news RSS feeds. Images attached to an entry are announcement-tied."""

    feeds: Sequence[Tuple[str, str]]  # (source label, feed url)
    limit: int = 50
    timeout: float = 15.0
    user_agent: str = "AnimeIntel/1.0"
    name: str = "rss"
    source_type: SourceType = SourceType.BREAKING

    def fetch(self) -> List[RawItem]:
        out: List[RawItem] = []
        for label, feed_url in self.feeds:
            try:
                resp = requests.get(feed_url, headers={"User-Agent": self.user_agent}, timeout=self.timeout)
                resp.raise_for_status()
                parsed = feedparser.parse(resp.content)
            except Exception as e:
                logger.warning("RSS fetch failed for %s: %s", label, e)
                continue
            if getattr(parsed, "bozo", False) and not parsed.entries:
                logger.warning("RSS feed %s unreadable: %s", label, getattr(parsed, "bozo_exception", "unknown"))
                continue
            for entry in (parsed.entries or [])[: self.limit]:
                title = entry.get("title")
                if not title:
                    continue
                summary = entry.get("summary")
                assets = _entry_images(entry)
                out.append(
                    RawItem(
                        title=str(title).strip(),
                        source=label,
                        image=assets[0] if assets else None,
                        description=str(summary).strip()[:500] if isinstance(summary, str) else None,
                        source_type=self.source_type,
                        assets=assets,
                        published_at=_struct_to_dt(entry.get("published_parsed") or entry.get("updated_parsed")),
                        raw={"link": entry.get("link")},
                    )
                )
        return out


@dataclass(frozen=True)
class RedditTopicAdapter(BaseAdapter):
    """Hot posts from a subreddit. Titles are cut before " - " to drop episode suffixes."""

    subreddit: str = "anime"
    limit: int = 50
    timeout: float = 15.0
    user_agent: str = "AnimeIntel/1.0"
    name: str = "reddit"
    source_type: SourceType = SourceType.COMMUNITY

    @property
    def label(self) -> str:
        return f"Reddit r/{self.subreddit}"

    def fetch(self) -> List[RawItem]:
        url = f"https://www.reddit.com/r/{self.subreddit}/hot.json"
        try:
            resp = requests.get(
                url,
                params={"limit": min(max(self.limit, 1), 100)},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json() or {}
        except Exception as e:
            logger.warning("Reddit fetch failed for r/%s: %s", self.subreddit, e)
            return []
        out: List[RawItem] = []
        for child in (data.get("data") or {}).get("children") or []:
            d = child.get("data") if isinstance(child, dict) else None
            if not isinstance(d, dict) or d.get("stickied"):
                continue
            title = str(d.get("title") or "").split(" - ")[0].strip()
            if not title:
                continue
            image = d.get("url") if d.get("post_hint") == "image" else None
            selftext = d.get("selftext")
            out.append(
                RawItem(
                    title=title,
                    source=self.label,
                    image=image,
                    description=str(selftext)[:500] if selftext else None,
                    source_type=self.source_type,
                    raw={"permalink": d.get("permalink"), "flair": d.get("link_flair_text")},
                )
            )
        return out


TRENDING_QUERY = """
query ($perPage: Int) {
  Page(perPage: $perPage) {
    media(type: ANIME, sort: TRENDING_DESC) {
      id
      title { romaji english }
      description(asHtml: false)
      bannerImage
      coverImage { extraLarge }
    }
  }
}
"""


@dataclass(frozen=True)
class AniListTrendingAdapter(BaseAdapter):
    per_page: int = 25
    timeout: float = 15.0
    endpoint: str = ANILIST_URL
    name: str = "anilist"
    source_type: SourceType = SourceType.TRENDING

    def fetch(self) -> List[RawItem]:
        try:
            resp = requests.post(
                self.endpoint,
                json={"query": TRENDING_QUERY, "variables": {"perPage": self.per_page}},
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data: Dict[str, Any] = resp.json() or {}
        except Exception as e:
            logger.warning("AniList trending fetch failed: %s", e)
            return []
        media = ((data.get("data") or {}).get("Page") or {}).get("media") or []
        out: List[RawItem] = []
        for m in media:
            if not isinstance(m, dict):
                continue
            titles = m.get("title") or {}
            title = titles.get("english") or titles.get("romaji")
            if not title:
                continue
            desc = m.get("description")
            out.append(
                RawItem(
                    title=str(title).strip(),
                    source="AniList Trending",
                    image=m.get("bannerImage") or (m.get("coverImage") or {}).get("extraLarge"),
                    description=str(desc).strip()[:500] if desc else None,
                    source_type=self.source_type,
                    subject_id=str(m["id"]) if m.get("id") is not None else None,
                    raw={"romaji": titles.get("romaji")},
                )
            )
        return out


def default_news_feeds() -> List[Tuple[str, str]]:
    """Starter breaking-news feed set."""
    return [
        ("AnimeNewsNetwork", "https://www.animenewsnetwork.com/news/rss.xml?ann-edition=w"),
        ("Crunchyroll News", "https://cr-news-api-service.prd.crunchyrollsvc.com/v1/en-US/rss"),
    ]


def default_adapters(*, timeout: float = 15.0, user_agent: str = "AnimeIntel/1.0") -> List[BaseAdapter]:
    return [
        RSSNewsAdapter(default_news_feeds(), timeout=timeout, user_agent=user_agent),
        RedditTopicAdapter(timeout=timeout, user_agent=user_agent),
        AniListTrendingAdapter(timeout=timeout),
    ]
