from pydantic import BaseModel
from typing import Dict


class StatisticsSummary(BaseModel):
    total_complaints: int
    by_status: Dict[str, int]
    by_type: Dict[str, int]
    by_branch: Dict[str, int]
    total_customers: int
    total_spare_part_units: int
    low_stock_parts: int
    low_stock_threshold: int
    monthly_growth: float
    avg_resolution_days: float
    completion_rate: float
    customer_satisfaction: float


class StatisticsResponse(BaseModel):
    message: str
    data: StatisticsSummary
