"""Dashboard statistics derived from a session's analysis history.

Everything here is recomputed from the full history on every call; nothing
is cached at this level.
"""
import math
from typing import Dict, Sequence

from app.models.analysis_record import AnalysisRecord
from app.schemas.dashboard import CategoryCount, DashboardMetrics, TrendPoint
from app.services.hazard_categorizer import categorize_hazard

TREND_WINDOW = 10

# Placeholder figures shown before the first scan of a session. They are
# display constants, not statistics.
DEMO_AVERAGE_SCORE = 87.4
DEMO_AVERAGE_PROGRESS = 42
DEMO_SCAN_COUNT = 128
DEMO_TREND_SERIES = (
    ("Mon", 85),
    ("Tue", 82),
    ("Wed", 88),
    ("Thu", 76),
    ("Fri", 92),
    ("Sat", 95),
    ("Sun", 94),
)
DEMO_HAZARD_BREAKDOWN = (
    ("PPE", 12),
    ("Electric", 5),
    ("Trip", 8),
)


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def demo_metrics() -> DashboardMetrics:
    return DashboardMetrics(
        average_score=DEMO_AVERAGE_SCORE,
        total_hazards=0,
        average_progress=DEMO_AVERAGE_PROGRESS,
        scan_count=DEMO_SCAN_COUNT,
        trend_series=[TrendPoint(label=label, score=score) for label, score in DEMO_TREND_SERIES],
        hazard_breakdown=[CategoryCount(name=name, count=count) for name, count in DEMO_HAZARD_BREAKDOWN],
        is_demo=True,
    )


def hazard_breakdown(records: Sequence[AnalysisRecord]) -> list[CategoryCount]:
    # dicts keep insertion order, so categories come out in order of first appearance
    counts: Dict[str, int] = {}
    for record in records:
        for hazard in record.hazards:
            key = categorize_hazard(hazard).value
            counts[key] = counts.get(key, 0) + 1
    return [CategoryCount(name=k, count=v) for k, v in counts.items()]


def trend_series(records: Sequence[AnalysisRecord], window: int = TREND_WINDOW) -> list[TrendPoint]:
    start = max(len(records) - window, 0)
    return [
        TrendPoint(label=f"Scan {i + 1}", score=records[i].safety_score)
        for i in range(start, len(records))
    ]


def compute_dashboard_metrics(records: Sequence[AnalysisRecord]) -> DashboardMetrics:
    """Aggregate a history snapshot into dashboard statistics.

    An empty history yields the demo constants (``is_demo=True``). Values
    are averaged as given: range checks belong to whoever built the records.
    """
    total = len(records)
    if total == 0:
        return demo_metrics()

    avg_score = sum(r.safety_score for r in records) / total
    avg_progress = sum(r.progress_estimate for r in records) / total

    return DashboardMetrics(
        average_score=round_half_up(avg_score, 1),
        total_hazards=sum(len(r.hazards) for r in records),
        average_progress=int(round_half_up(avg_progress)),
        scan_count=total,
        trend_series=trend_series(records),
        hazard_breakdown=hazard_breakdown(records),
        is_demo=False,
    )


class MetricsAggregator:
    """Stateless facade over :func:`compute_dashboard_metrics`."""

    def compute(self, records: Sequence[AnalysisRecord]) -> DashboardMetrics:
        return compute_dashboard_metrics(records)
