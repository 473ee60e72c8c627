"""Year-at-a-glance activity heatmap."""
from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from .const import HEATMAP_LEVELS, HISTORY_LIMIT
from .dates import format_date, utc_today
from .models import HeatmapDay
from .storage import LocalStore


def heatmap_level(score: int) -> int:
    """Map a completed day's score onto levels 1-4."""
    return 1 + sum(1 for boundary in HEATMAP_LEVELS if score > boundary)


async def generate_heatmap(
    storage: LocalStore,
    end_date: Optional[date] = None,
    days: int = HISTORY_LIMIT,
) -> list[HeatmapDay]:
    """One entry per day, oldest first, for the ``days`` days ending at ``end_date``."""
    end_date = end_date or utc_today()
    start_date = end_date - timedelta(days=days - 1)
    activity = {
        a.date: a
        for a in await storage.get_activity_range(format_date(start_date), format_date(end_date))
    }

    heatmap = []
    for offset in range(days):
        day = format_date(start_date + timedelta(days=offset))
        entry = activity.get(day)
        if entry is not None and entry.completed:
            heatmap.append(
                HeatmapDay(date=day, count=1, level=heatmap_level(entry.score), score=entry.score, difficulty=entry.difficulty)
            )
        else:
            heatmap.append(HeatmapDay(date=day, count=0, level=0))
    return heatmap
