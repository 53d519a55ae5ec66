from datetime import datetime
from zoneinfo import ZoneInfo

from django.conf import settings
from django.utils import timezone


def farm_now():
    """Current time in the farm's time zone"""
    return timezone.now().astimezone(ZoneInfo(settings.FARM_TIME_ZONE))


def is_off_hours(moment=None):
    """
    True outside the farm's working hours.

    Off-hours run from OFF_HOURS_START (inclusive) to OFF_HOURS_END
    (exclusive) local time and wrap past midnight, e.g. 18:00 to 09:00.
    """
    if moment is None:
        moment = farm_now()
    elif isinstance(moment, datetime) and timezone.is_aware(moment):
        moment = moment.astimezone(ZoneInfo(settings.FARM_TIME_ZONE))

    start = settings.OFF_HOURS_START
    end = settings.OFF_HOURS_END
    hour = moment.hour

    if start > end:
        return hour >= start or hour < end
    return start <= hour < end
