"""
Unit tests for off-hours detection
"""

from datetime import datetime, timezone as dt_timezone

from django.test import SimpleTestCase, override_settings

from orders.timeutils import is_off_hours


@override_settings(OFF_HOURS_START=18, OFF_HOURS_END=9, FARM_TIME_ZONE='Asia/Colombo')
class OffHoursTest(SimpleTestCase):
    """Test the overnight off-hours window"""

    def test_window_wraps_midnight(self):
        self.assertTrue(is_off_hours(datetime(2025, 6, 1, 18, 0)))
        self.assertTrue(is_off_hours(datetime(2025, 6, 1, 23, 59)))
        self.assertTrue(is_off_hours(datetime(2025, 6, 2, 0, 30)))
        self.assertTrue(is_off_hours(datetime(2025, 6, 2, 8, 59)))

    def test_working_hours(self):
        self.assertFalse(is_off_hours(datetime(2025, 6, 2, 9, 0)))
        self.assertFalse(is_off_hours(datetime(2025, 6, 2, 12, 0)))
        self.assertFalse(is_off_hours(datetime(2025, 6, 2, 17, 59)))

    def test_aware_times_use_farm_time_zone(self):
        # 13:00 UTC is 18:30 in Colombo
        self.assertTrue(is_off_hours(datetime(2025, 6, 2, 13, 0, tzinfo=dt_timezone.utc)))
        # 05:00 UTC is 10:30 in Colombo
        self.assertFalse(is_off_hours(datetime(2025, 6, 2, 5, 0, tzinfo=dt_timezone.utc)))

    @override_settings(OFF_HOURS_START=12, OFF_HOURS_END=14)
    def test_same_day_window(self):
        self.assertTrue(is_off_hours(datetime(2025, 6, 2, 12, 30)))
        self.assertFalse(is_off_hours(datetime(2025, 6, 2, 14, 0)))
