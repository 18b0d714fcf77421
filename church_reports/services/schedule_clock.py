#!/usr/bin/env python3
"""
Schedule clock - computes the next trigger instant for a recurrence rule.

Pure functions, no I/O. All instants are naive local datetimes.
"""

import calendar
import logging
from datetime import date, datetime, time, timedelta
from typing import Union

from church_reports.models.scheduler import ScheduleFrequency

logger = logging.getLogger(__name__)

def parse_time_of_day(value: Union[str, time]) -> time:
    """Parse 'HH:MM' (or 'HH:MM:SS') into a time; raises ValueError"""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    text = str(value).strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(text, fmt).time().replace(second=0)
        except ValueError:
            continue
    raise ValueError(f"Invalid time of day: {value!r}")

def add_months(day: date, months: int) -> date:
    """Shift a date by whole calendar months, clamping to the month's last day"""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))

def month_bounds(day: date):
    """First and last day of the month containing `day`"""
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)

def next_trigger(frequency: Union[str, ScheduleFrequency], time_of_day: Union[str, time], now: datetime) -> datetime:
    """Calculate next run time based on frequency"""
    at = parse_time_of_day(time_of_day)
    value = frequency.value if isinstance(frequency, ScheduleFrequency) else str(frequency).strip().lower()

    if value == ScheduleFrequency.DAILY.value:
        candidate = datetime.combine(now.date(), at)
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate
    elif value == ScheduleFrequency.WEEKLY.value:
        # Always a later Monday, never today
        days_ahead = (7 - now.weekday()) % 7 or 7
        return datetime.combine(now.date() + timedelta(days=days_ahead), at)
    elif value == ScheduleFrequency.MONTHLY.value:
        first_of_month = now.date().replace(day=1)
        return datetime.combine(add_months(first_of_month, 1), at)
    elif value == ScheduleFrequency.QUARTERLY.value:
        return datetime.combine(add_months(now.date(), 3), at)
    else:
        logger.warning(f"Unknown schedule frequency {frequency!r}, falling back to one day")
        return now + timedelta(days=1)
