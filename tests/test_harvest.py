import unittest
from unittest.mock import MagicMock, patch

import requests

from animeintel.visuals.harvest import (
    AniListMetadataLookup,
    CommunityImageSearch,
    crawl_official_site_image,
    title_matches,
)


def _response(status=200, payload=None, text=""):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload or {}
    resp.text = text
    return resp


SEARCH_PAYLOAD = {
    "data": {
        "children": [
            {"data": {"url": "https://i.redd.it/frieren-scenery.png"}},
            {"data": {"url": "https://i.redd.it/reaction.gif"}},
            {"data": {"url": "https://external-preview.redd.it/static/abc.jpg"}},
            {"data": {"url": "https://www.reddit.com/r/anime/comments/xyz"}},
            {"data": {"url": "https://i.imgur.com/kv.jpg"}},
        ]
    }
}


class TestCommunitySearch(unittest.TestCase):
    @patch("animeintel.visuals.harvest.time.sleep")
    @patch("animeintel.visuals.harvest.requests.get")
    def test_rate_limit_retried_once(self, mock_get, mock_sleep):
        mock_get.side_effect = [_response(429), _response(200, SEARCH_PAYLOAD)]
        search = CommunityImageSearch(delay=0.0, retry_delay=5.0)
        urls = search.search("Frieren scenery")
        self.assertEqual(urls, ["https://i.redd.it/frieren-scenery.png", "https://i.imgur.com/kv.jpg"])
        self.assertEqual(mock_get.call_count, 2)
        mock_sleep.assert_called_once_with(5.0)

    @patch("animeintel.visuals.harvest.time.sleep")
    @patch("animeintel.visuals.harvest.requests.get")
    def test_second_rate_limit_is_a_miss(self, mock_get, mock_sleep):
        mock_get.side_effect = [_response(429), _response(429)]
        search = CommunityImageSearch(delay=0.0, retry_delay=5.0)
        self.assertEqual(search.search("Frieren scenery"), [])
        self.assertEqual(mock_get.call_count, 2)

    @patch("animeintel.visuals.harvest.requests.get", side_effect=requests.ConnectionError("down"))
    def test_transport_error_is_a_miss(self, mock_get):
        self.assertEqual(CommunityImageSearch(delay=0.0).search("Frieren"), [])


class TestMetadataLookup(unittest.TestCase):
    def test_title_guard(self):
        self.assertEqual(title_matches("Oshi no Ko", ["[Oshi no Ko] Season 3"]), "[Oshi no Ko] Season 3")
        self.assertIsNone(title_matches("Oshi no Ko", ["Bleach", "BLEACH: Thousand-Year Blood War"]))
        self.assertIsNone(title_matches("Frieren Season 2 Confirmed", ["Re"]))
        self.assertEqual(title_matches("Frieren", ["Frieren: Beyond Journey's End"]), "Frieren: Beyond Journey's End")

    @patch("animeintel.visuals.harvest.requests.post")
    def test_unrelated_media_rejected(self, mock_post):
        mock_post.return_value = _response(
            200, {"data": {"Media": {"id": 1, "title": {"english": "Bleach", "romaji": "Bleach"}}}}
        )
        self.assertIsNone(AniListMetadataLookup().lookup("Oshi no Ko"))

    @patch("animeintel.visuals.harvest.requests.post")
    def test_matching_media(self, mock_post):
        mock_post.return_value = _response(
            200,
            {
                "data": {
                    "Media": {
                        "id": 150672,
                        "title": {"english": "Oshi no Ko", "romaji": "Oshi no Ko"},
                        "synonyms": [],
                        "bannerImage": "https://s4.anilist.co/banner.jpg",
                        "coverImage": {"extraLarge": "https://s4.anilist.co/cover.jpg"},
                        "externalLinks": [
                            {"site": "Twitter", "url": "https://twitter.com/anime_oshinoko"},
                            {"site": "Official Site", "url": "https://ichigoproduction.com/"},
                        ],
                    }
                }
            },
        )
        meta = AniListMetadataLookup().lookup("Oshi no Ko")
        self.assertEqual(meta.media_id, "150672")
        self.assertEqual(meta.banner_image, "https://s4.anilist.co/banner.jpg")
        self.assertEqual(meta.cover_image, "https://s4.anilist.co/cover.jpg")
        self.assertEqual(meta.official_site_url, "https://ichigoproduction.com/")

    @patch("animeintel.visuals.harvest.requests.post", side_effect=requests.Timeout("slow"))
    def test_lookup_failure_is_none(self, mock_post):
        self.assertIsNone(AniListMetadataLookup().lookup("Oshi no Ko"))


class TestOfficialSiteCrawl(unittest.TestCase):
    @patch("animeintel.visuals.harvest.requests.get")
    def test_og_image_resolved(self, mock_get):
        mock_get.return_value = _response(
            200, text='<html><head><meta property="og:image" content="/img/kv.jpg"></head></html>'
        )
        self.assertEqual(
            crawl_official_site_image("https://ichigoproduction.com/"),
            "https://ichigoproduction.com/img/kv.jpg",
        )

    @patch("animeintel.visuals.harvest.requests.get")
    def test_twitter_image_fallback(self, mock_get):
        mock_get.return_value = _response(
            200, text='<html><head><meta name="twitter:image" content="https://cdn.example.com/tw.jpg"></head></html>'
        )
        self.assertEqual(crawl_official_site_image("https://example.com/"), "https://cdn.example.com/tw.jpg")

    @patch("animeintel.visuals.harvest.requests.get")
    def test_error_page(self, mock_get):
        mock_get.return_value = _response(404)
        self.assertIsNone(crawl_official_site_image("https://example.com/"))


if __name__ == "__main__":
    unittest.main()
