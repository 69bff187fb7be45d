"""Fetch window planning for Monobank statement requests"""

from datetime import date, datetime, timedelta
from typing import Iterator

from monosync.domain.models import FetchChunk
from monosync.utils.date_utils import date_to_utc_datetime, end_of_day_utc, start_of_day_utc

# Monobank rejects statement requests wider than 31 days
MAX_WINDOW_DAYS = 31


def compute_lookback_boundary(now: datetime, lookback: timedelta) -> datetime:
    """Oldest moment the configured lookback allows, at 00:00 UTC"""
    return start_of_day_utc(now - lookback)


def compute_fetch_start(now: datetime, lookback: timedelta, cursor_date: date | None = None) -> datetime:
    """
    Start of the history range to request.

    The lookback boundary is used unless the last imported transaction is
    older than it, in which case the range reaches back to that transaction's
    day so the gap since the previous run is covered. A cursor newer than the
    boundary does not shorten the range: the cursor stop in the fetch loop
    ends the walk once already-imported history is reached.
    """
    boundary = compute_lookback_boundary(now, lookback)
    if cursor_date is not None:
        cursor_start = date_to_utc_datetime(cursor_date)
        if cursor_start < boundary:
            return cursor_start
    return boundary


def iter_fetch_chunks(
    from_time: datetime,
    now: datetime,
    max_days: int = MAX_WINDOW_DAYS,
) -> Iterator[FetchChunk]:
    """
    Walk backward from the end of today to ``from_time`` in windows of at most
    ``max_days``.

    Chunks are yielded newest first. Adjacent chunks share a boundary, and the
    last chunk is clipped so it never starts before ``from_time``.
    """
    window = timedelta(days=max_days)
    current_end = end_of_day_utc(now)

    while current_end > from_time:
        start = max(current_end - window, from_time)
        yield FetchChunk(start=start, end=current_end)
        current_end = start
