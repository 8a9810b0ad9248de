import unittest
from datetime import datetime, timezone

from animeintel.identity.fingerprints import assign_fingerprints, event_fingerprint, truth_fingerprint
from animeintel.ingestion.aggregator import synthesize_topic
from animeintel.ingestion.item_types import Candidate, ClaimType


class TestFingerprints(unittest.TestCase):
    def test_event_fingerprint_ignores_case_and_spacing(self):
        a = event_fingerprint("Kaiju No. 8", "NEW_SEASON_CONFIRMED", "kaiju no 8", "2026-10-19")
        b = event_fingerprint("  kaiju  no. 8 ", ClaimType.NEW_SEASON_CONFIRMED, "KAIJU NO 8", "2026-10-19")
        self.assertEqual(a, b)
        self.assertEqual(len(a), 64)

    def test_event_fingerprint_discriminates_signal(self):
        a = event_fingerprint("163139", "TRAILER_DROP", "kaiju no 8", "2026-10-19")
        b = event_fingerprint("163139", "TRAILER_DROP", "kaiju no 8", "2026-10-20")
        self.assertNotEqual(a, b)

    def test_truth_fingerprint_default_season(self):
        self.assertEqual(truth_fingerprint("163139", "DELAY"), truth_fingerprint("163139", "DELAY", "0"))
        self.assertEqual(truth_fingerprint("163139", "DELAY", ""), truth_fingerprint("163139", "DELAY", None))

    def test_truth_fingerprint_discriminates_fields(self):
        base = truth_fingerprint("163139", "NEW_SEASON_CONFIRMED", "season 2")
        self.assertNotEqual(base, truth_fingerprint("163139", "NEW_SEASON_CONFIRMED", "season 3"))
        self.assertNotEqual(base, truth_fingerprint("163139", "TRAILER_DROP", "season 2"))
        self.assertNotEqual(base, truth_fingerprint("999", "NEW_SEASON_CONFIRMED", "season 2"))

    def test_same_fact_from_two_outlets_shares_truth_only(self):
        first = Candidate(title="Frieren Season 2 Confirmed", key="frieren season 2 confirmed",
                          sources=["AnimeNewsNetwork"], subject_id="154587")
        second = Candidate(title="Frieren Season 2 Confirmed", key="frieren season 2 confirmed",
                           sources=["Crunchyroll News"], subject_id="154587")
        synthesize_topic(first, datetime(2026, 10, 18, tzinfo=timezone.utc))
        synthesize_topic(second, datetime(2026, 10, 19, tzinfo=timezone.utc))
        assign_fingerprints(first)
        assign_fingerprints(second)
        self.assertEqual(first.truth_fingerprint, second.truth_fingerprint)
        self.assertNotEqual(first.event_fingerprint, second.event_fingerprint)

    def test_asset_is_primary_signal(self):
        c = Candidate(title="Dandadan key visual", key="dandadan key visual", subject_id="171018",
                      announcement_assets=["https://cdn.example.com/kv.jpg"])
        synthesize_topic(c, datetime(2026, 10, 19, tzinfo=timezone.utc))
        assign_fingerprints(c)
        expected = event_fingerprint("171018", ClaimType.NEW_KEY_VISUAL, "dandadan key visual",
                                     "https://cdn.example.com/kv.jpg")
        self.assertEqual(c.event_fingerprint, expected)


if __name__ == "__main__":
    unittest.main()
