import unittest
from datetime import datetime, timedelta, timezone

from raindrop_sync.core.time_utils import UTC, ensure_aware, is_within_quiet_hours


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 3, 1, hour, minute)


class TestQuietHours(unittest.TestCase):
    def test_window_wrapping_midnight(self):
        self.assertTrue(is_within_quiet_hours(_at(23, 30), "23:00", "07:00"))
        self.assertTrue(is_within_quiet_hours(_at(3), "23:00", "07:00"))
        self.assertFalse(is_within_quiet_hours(_at(7), "23:00", "07:00"))
        self.assertFalse(is_within_quiet_hours(_at(12), "23:00", "07:00"))

    def test_same_day_window(self):
        self.assertTrue(is_within_quiet_hours(_at(13), "12:00", "14:00"))
        self.assertFalse(is_within_quiet_hours(_at(14), "12:00", "14:00"))
        self.assertFalse(is_within_quiet_hours(_at(11, 59), "12:00", "14:00"))

    def test_start_equal_end_is_all_day(self):
        self.assertTrue(is_within_quiet_hours(_at(9), "08:00", "08:00"))


class TestEnsureAware(unittest.TestCase):
    def test_naive_becomes_utc(self):
        self.assertEqual(ensure_aware(datetime(2025, 1, 1)).tzinfo, UTC)

    def test_aware_is_kept(self):
        plus_two = timezone(timedelta(hours=2))
        value = datetime(2025, 1, 1, tzinfo=plus_two)
        self.assertIs(ensure_aware(value).tzinfo, plus_two)

    def test_none(self):
        self.assertIsNone(ensure_aware(None))


if __name__ == "__main__":
    unittest.main()
