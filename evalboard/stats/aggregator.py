"""
Stats aggregation over a trailing window of UTC calendar days.

What this module does
---------------------
Given a tenant and `days`, compute the dashboard rollup:
- whole-window scalars (total, averages, success rate, PII redacted)
- a score distribution
- a daily series with exactly `days` points (zero-filled)

Why we page through the store
-----------------------------
Hosted query APIs cap how many rows one request returns (commonly 1000).
A single "select everything in the window" silently truncates once a tenant
has more evaluations than that, which makes whole days look empty on the chart.
So we read the window in fixed-size pages (oldest first) and accumulate running
sums until a short page tells us we reached the end.

Rounding
--------
Sums are kept unrounded across pages. Rounding (half-up) happens once, when the
output model is built:
- scores and percentages: 1 decimal place
- latencies: nearest integer
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from evalboard.schemas.evaluation import EvaluationRecord
from evalboard.schemas.stats import AggregateStats, DailyStatPoint, ScoreDistribution

logger = logging.getLogger("evalboard.stats")

DEFAULT_DAYS = 7
DEFAULT_PAGE_SIZE = 1000
DEFAULT_MAX_ROWS = 100_000

SUCCESS_THRESHOLD = 70


class InvalidWindowError(ValueError):
    """Raised when `days` cannot describe a window (not an int, < 1, or out of range)."""


class WindowTooLargeError(RuntimeError):
    """Raised when the window holds more rows than the aggregator is allowed to read."""

    def __init__(self, max_rows: int) -> None:
        super().__init__(
            f"Stats window holds more than {max_rows} evaluations; narrow the window."
        )
        self.max_rows = max_rows


class EvaluationPageSource(Protocol):
    """
    Paged, tenant-filtered read access to evaluations.

    Implementations must filter by `user_id` and `created_at >= since`, and return
    rows ordered by `created_at` ascending.
    """

    def page_evaluations(
        self, user_id: str, *, since: datetime, offset: int, limit: int
    ) -> list[EvaluationRecord]: ...


@dataclass
class _DayBucket:
    count: int = 0
    sum_score: float = 0.0
    sum_latency: int = 0


@dataclass
class _Accumulator:
    """Running (unrounded) sums for one aggregation."""

    count: int = 0
    sum_score: float = 0.0
    sum_latency: int = 0
    success_count: int = 0
    sum_pii: int = 0
    distribution: ScoreDistribution = field(default_factory=ScoreDistribution)
    by_day: dict[str, _DayBucket] = field(default_factory=dict)

    def add(self, record: EvaluationRecord) -> None:
        score = record.score
        self.count += 1
        self.sum_score += score
        self.sum_latency += record.latency_ms
        self.sum_pii += record.pii_tokens_redacted or 0

        if score >= SUCCESS_THRESHOLD:
            self.success_count += 1

        if score >= 90:
            self.distribution.excellent += 1
        elif score >= 70:
            self.distribution.good += 1
        elif score >= 50:
            self.distribution.fair += 1
        else:
            self.distribution.poor += 1

        bucket = self.by_day.setdefault(day_key(record.created_at), _DayBucket())
        bucket.count += 1
        bucket.sum_score += score
        bucket.sum_latency += record.latency_ms


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are stored as UTC throughout this project.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def day_key(value: datetime) -> str:
    """UTC calendar day of a timestamp as YYYY-MM-DD."""

    return _as_utc(value).date().isoformat()


def round_half_up(value: float, places: int = 0) -> float:
    """Round like a dashboard user expects (2.5 -> 3), not banker's rounding."""

    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _mean(total: float, count: int) -> float:
    return total / count if count else 0.0


def window_start(days: int, now: datetime) -> datetime:
    """
    UTC midnight of the oldest day in a `days`-long window ending today.

    Raises InvalidWindowError for non-positive or non-integer `days`.
    """

    # bool is an int subclass; True is not a window length.
    if not isinstance(days, int) or isinstance(days, bool):
        raise InvalidWindowError(f"days must be an integer, got {days!r}")
    if days < 1:
        raise InvalidWindowError(f"days must be at least 1, got {days}")

    today = _as_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)
    try:
        return today - timedelta(days=days - 1)
    except OverflowError:
        raise InvalidWindowError(f"days={days} reaches before the earliest supported date")


def aggregate_stats(
    source: EvaluationPageSource,
    user_id: str,
    days: int = DEFAULT_DAYS,
    *,
    now: datetime | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_rows: int = DEFAULT_MAX_ROWS,
) -> AggregateStats:
    """
    Compute tenant-scoped stats for the last `days` UTC calendar days (today included).

    Behavior:
    - reads pages of `page_size` rows, oldest first, until an empty or short page
    - raises WindowTooLargeError once more than `max_rows` rows have been read
    - lets any exception from `source` propagate (no partial result, no retry)
    """

    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    if max_rows < 1:
        raise ValueError("max_rows must be >= 1")

    now = _as_utc(now or datetime.now(timezone.utc))
    start = window_start(days, now)

    acc = _Accumulator()
    pages = 0
    offset = 0
    started = time.perf_counter()

    while True:
        page = source.page_evaluations(user_id, since=start, offset=offset, limit=page_size)
        pages += 1

        if acc.count + len(page) > max_rows:
            logger.warning(
                "stats window too large user=%s days=%d max_rows=%d", user_id, days, max_rows
            )
            raise WindowTooLargeError(max_rows)

        for record in page:
            acc.add(record)

        if len(page) < page_size:
            break
        offset += page_size

    logger.info(
        "aggregated stats user=%s days=%d rows=%d pages=%d duration_ms=%.2f",
        user_id,
        days,
        acc.count,
        pages,
        (time.perf_counter() - started) * 1000.0,
    )

    return _build_stats(acc, days=days, start=start)


def _build_stats(acc: _Accumulator, *, days: int, start: datetime) -> AggregateStats:
    trends: list[DailyStatPoint] = []
    for idx in range(days):
        key = (start + timedelta(days=idx)).date().isoformat()
        bucket = acc.by_day.get(key)
        if bucket is None or bucket.count == 0:
            trends.append(DailyStatPoint(date=key, count=0, avg_score=0, avg_latency=0))
            continue
        trends.append(
            DailyStatPoint(
                date=key,
                count=bucket.count,
                avg_score=round_half_up(bucket.sum_score / bucket.count, 1),
                avg_latency=int(round_half_up(bucket.sum_latency / bucket.count)),
            )
        )

    return AggregateStats(
        days=days,
        window_start=start,
        total=acc.count,
        avg_score=round_half_up(_mean(acc.sum_score, acc.count), 1),
        avg_latency=int(round_half_up(_mean(acc.sum_latency, acc.count))),
        success_rate=round_half_up(_mean(acc.success_count, acc.count) * 100, 1),
        total_pii_redacted=acc.sum_pii,
        score_distribution=acc.distribution,
        daily_trends=trends,
    )
