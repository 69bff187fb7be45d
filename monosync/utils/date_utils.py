"""Date manipulation utilities"""

from datetime import date, datetime, time, timezone


def start_of_day_utc(moment: datetime) -> datetime:
    """Truncate to 00:00:00 UTC of the same UTC day"""
    return moment.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day_utc(moment: datetime) -> datetime:
    """Last whole second of the same UTC day"""
    return moment.astimezone(timezone.utc).replace(hour=23, minute=59, second=59, microsecond=0)


def date_to_utc_datetime(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def unix_to_utc_date(timestamp: int) -> date:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).date()
