import unittest
from unittest.mock import MagicMock, patch

import requests

from animeintel.ingestion.adapters import AniListTrendingAdapter, RedditTopicAdapter, RSSNewsAdapter
from animeintel.ingestion.item_types import SourceType


RSS_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Anime News Network</title>
    <item>
      <title>Oshi no Ko Season 3 Confirmed</title>
      <link>https://www.animenewsnetwork.com/news/2026-10-19/oshi-no-ko-season-3</link>
      <description>The anime's official website announced a third season.</description>
      <pubDate>Mon, 19 Oct 2026 09:00:00 GMT</pubDate>
      <enclosure url="https://cdn.animenewsnetwork.com/kv.jpg" type="image/jpeg" length="1000"/>
    </item>
    <item>
      <title>Dandadan cast addition</title>
      <link>https://www.animenewsnetwork.com/news/2026-10-19/dandadan</link>
    </item>
  </channel>
</rss>
"""


def _response(payload=None, content=b""):
    resp = MagicMock()
    resp.status_code = 200
    resp.raise_for_status.return_value = None
    resp.json.return_value = payload or {}
    resp.content = content
    return resp


class TestRSSNewsAdapter(unittest.TestCase):
    @patch("animeintel.ingestion.adapters.requests.get")
    def test_parses_entries_and_assets(self, mock_get):
        mock_get.return_value = _response(content=RSS_XML)
        items = RSSNewsAdapter([("AnimeNewsNetwork", "https://example.com/rss.xml")]).fetch()
        self.assertEqual(len(items), 2)
        first = items[0]
        self.assertEqual(first.title, "Oshi no Ko Season 3 Confirmed")
        self.assertEqual(first.source, "AnimeNewsNetwork")
        self.assertEqual(first.source_type, SourceType.BREAKING)
        self.assertEqual(first.assets, ("https://cdn.animenewsnetwork.com/kv.jpg",))
        self.assertEqual(first.image, "https://cdn.animenewsnetwork.com/kv.jpg")
        self.assertIsNotNone(first.published_at)
        self.assertEqual(items[1].assets, ())

    @patch("animeintel.ingestion.adapters.requests.get", side_effect=requests.ConnectionError("down"))
    def test_dead_feed_returns_empty(self, mock_get):
        self.assertEqual(RSSNewsAdapter([("AnimeNewsNetwork", "https://example.com/rss.xml")]).fetch(), [])


class TestRedditTopicAdapter(unittest.TestCase):
    @patch("animeintel.ingestion.adapters.requests.get")
    def test_titles_truncated_and_stickies_skipped(self, mock_get):
        mock_get.return_value = _response(
            {
                "data": {
                    "children": [
                        {"data": {"title": "Weekly discussion thread", "stickied": True}},
                        {"data": {"title": "Kaiju No. 8 - Episode 4 discussion", "selftext": "spoilers below"}},
                        {"data": {"title": "Frieren fanart", "post_hint": "image", "url": "https://i.redd.it/f.png"}},
                    ]
                }
            }
        )
        items = RedditTopicAdapter().fetch()
        self.assertEqual([i.title for i in items], ["Kaiju No. 8", "Frieren fanart"])
        self.assertEqual(items[0].source, "Reddit r/anime")
        self.assertEqual(items[0].source_type, SourceType.COMMUNITY)
        self.assertIsNone(items[0].image)
        self.assertEqual(items[1].image, "https://i.redd.it/f.png")

    @patch("animeintel.ingestion.adapters.requests.get", side_effect=requests.Timeout("slow"))
    def test_timeout_returns_empty(self, mock_get):
        self.assertEqual(RedditTopicAdapter().fetch(), [])


class TestAniListTrendingAdapter(unittest.TestCase):
    @patch("animeintel.ingestion.adapters.requests.post")
    def test_trending_media(self, mock_post):
        mock_post.return_value = _response(
            {
                "data": {
                    "Page": {
                        "media": [
                            {
                                "id": 163139,
                                "title": {"english": "Kaiju No. 8", "romaji": "Kaijuu 8-gou"},
                                "bannerImage": "https://s4.anilist.co/banner.jpg",
                            },
                            {"id": 2, "title": {}},
                        ]
                    }
                }
            }
        )
        items = AniListTrendingAdapter().fetch()
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].title, "Kaiju No. 8")
        self.assertEqual(items[0].subject_id, "163139")
        self.assertEqual(items[0].source, "AniList Trending")
        self.assertEqual(items[0].source_type, SourceType.TRENDING)

    @patch("animeintel.ingestion.adapters.requests.post")
    def test_http_error_returns_empty(self, mock_post):
        resp = _response()
        resp.raise_for_status.side_effect = requests.HTTPError("503")
        mock_post.return_value = resp
        self.assertEqual(AniListTrendingAdapter().fetch(), [])


if __name__ == "__main__":
    unittest.main()
