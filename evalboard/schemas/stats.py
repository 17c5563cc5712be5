"""
Statistics view models returned by GET /api/evals/stats.

These are "view models" in the same sense as the rest of the API: they are shaped
for the dashboard (stat cards + trend chart + distribution), not for storage.
"""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


class DailyStatPoint(BaseModel):
    """One point on the trend chart (one UTC calendar day)."""

    date: str = Field(..., description="UTC day key, YYYY-MM-DD.")
    count: int = Field(..., ge=0)
    avg_score: float = Field(..., description="Mean score for the day, 0 when count is 0.")
    avg_latency: int = Field(..., description="Mean latency for the day, 0 when count is 0.")


class ScoreDistribution(BaseModel):
    """Score buckets: excellent >= 90, good >= 70, fair >= 50, poor < 50."""

    excellent: int = 0
    good: int = 0
    fair: int = 0
    poor: int = 0


class AggregateStats(BaseModel):
    """
    Whole-window rollup for one tenant.

    `daily_trends` always holds exactly `days` points (oldest first) so charts can
    plot it directly without filling gaps.
    """

    days: int = Field(..., ge=1)
    window_start: datetime = Field(..., description="UTC midnight of the oldest day.")
    total: int = Field(..., ge=0)
    avg_score: float = 0.0
    avg_latency: int = 0
    success_rate: float = Field(0.0, description="Percent of evaluations scoring >= 70.")
    total_pii_redacted: int = 0
    score_distribution: ScoreDistribution = Field(default_factory=ScoreDistribution)
    daily_trends: list[DailyStatPoint] = Field(default_factory=list)

    def day(self, day: date) -> DailyStatPoint | None:
        """Return the point for a calendar day (or None if outside the window)."""

        key = day.isoformat()
        for point in self.daily_trends:
            if point.date == key:
                return point
        return None
