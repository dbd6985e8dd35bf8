from typing import List
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TrendPoint(_CamelModel):
    label: str
    score: int


class CategoryCount(_CamelModel):
    name: str
    count: int


class DashboardMetrics(_CamelModel):
    average_score: float
    total_hazards: int
    average_progress: int
    scan_count: int
    trend_series: List[TrendPoint]
    hazard_breakdown: List[CategoryCount]
    is_demo: bool = False
