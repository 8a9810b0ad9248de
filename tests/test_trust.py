import unittest

from animeintel.scoring.trust import best_source_tier, calculate_relevance_score, get_source_tier


class TestSourceTier(unittest.TestCase):
    def test_allow_lists(self):
        self.assertEqual(get_source_tier("AnimeNewsNetwork"), 1)
        self.assertEqual(get_source_tier("Crunchyroll News"), 1)
        self.assertEqual(get_source_tier("Reddit r/anime"), 2)
        self.assertEqual(get_source_tier("AniList Trending"), 2)
        self.assertEqual(get_source_tier("Some Blog"), 3)
        self.assertEqual(get_source_tier(None), 3)

    def test_allow_list_beats_store(self):
        self.assertEqual(get_source_tier("AnimeNewsNetwork", lambda name: 3), 1)

    def test_store_lookup(self):
        self.assertEqual(get_source_tier("Some Blog", {"Some Blog": 2}.get), 2)

    def test_store_failure_defaults_to_unknown(self):
        def boom(name):
            raise ConnectionError("db down")

        self.assertEqual(get_source_tier("Some Blog", boom), 3)
        self.assertEqual(get_source_tier("Some Blog", lambda name: 9), 3)

    def test_best_tier_is_minimum(self):
        self.assertEqual(best_source_tier(["Some Blog", "Reddit r/anime", "AnimeNewsNetwork"]), 1)
        self.assertEqual(best_source_tier([]), 3)


class TestRelevance(unittest.TestCase):
    def test_tier_and_signals(self):
        self.assertEqual(calculate_relevance_score("Frieren Season 2 confirmed", 1), 85)
        self.assertEqual(calculate_relevance_score("Frieren rumor", 3), 40)
        self.assertEqual(calculate_relevance_score("Frieren", 2), 65)

    def test_always_clamped(self):
        for title in ("", "trailer announced", "leak rumor speculation"):
            for tier in (1, 2, 3):
                s = calculate_relevance_score(title, tier)
                self.assertGreaterEqual(s, 0)
                self.assertLessEqual(s, 100)


if __name__ == "__main__":
    unittest.main()
