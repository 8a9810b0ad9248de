import os
import unittest
from unittest.mock import patch

from animeintel.config import FALLBACK_IMAGE, PipelineSettings, load_settings


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        s = PipelineSettings()
        self.assertEqual(s.overlap_threshold, 0.7)
        self.assertEqual(s.min_short_side, 450)
        self.assertEqual(s.fallback_image, FALLBACK_IMAGE)
        self.assertIn("NEW_SEASON_CONFIRMED", s.strict_truth_event_types)

    @patch.dict(
        os.environ,
        {
            "DUP_OVERLAP_THRESHOLD": "0.8",
            "BANNED_TOPICS": r"\bspoilers?\b, \bleak\b",
            "STRICT_TRUTH_EVENT_TYPES": "new_season_confirmed,delay",
            "IMAGE_MIN_SHORT_SIDE": "600",
            "MAX_ACCEPTED_PER_RUN": "5",
        },
    )
    def test_environment_overrides(self):
        s = load_settings()
        self.assertEqual(s.overlap_threshold, 0.8)
        self.assertEqual(s.banned_topics, (r"\bspoilers?\b", r"\bleak\b"))
        self.assertEqual(s.strict_truth_event_types, frozenset({"NEW_SEASON_CONFIRMED", "DELAY"}))
        self.assertEqual(s.min_short_side, 600)
        self.assertEqual(s.max_accepted, 5)


if __name__ == "__main__":
    unittest.main()
