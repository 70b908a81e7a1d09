# =============================================================================
# Chart Recommendations
# =============================================================================
#
# Step 3 of ingestion: FinancialData → chart hints for the dashboard.
#
# Every file gets the same three chart types. The category breakdown is
# computed from the data; the monthly series is a fixed Jan–Jul sample and
# does not look at the file's dates.
# =============================================================================

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from finsage.services.extractor import FinancialData

RECOMMENDED_CHARTS = ("pie", "bar", "line")


@dataclass(frozen=True)
class CategoryTotal:
    name: str
    value: float


@dataclass(frozen=True)
class MonthlyPoint:
    month: str
    expenses: float
    income: float


MOCK_TIMESERIES: tuple[MonthlyPoint, ...] = (
    MonthlyPoint("Jan", 9800, 12500),
    MonthlyPoint("Feb", 8900, 12800),
    MonthlyPoint("Mar", 11200, 14300),
    MonthlyPoint("Apr", 10500, 13900),
    MonthlyPoint("May", 9200, 14100),
    MonthlyPoint("Jun", 9800, 15200),
    MonthlyPoint("Jul", 10300, 15800),
)


@dataclass(frozen=True)
class ChartData:
    category_breakdown: list[CategoryTotal]
    timeseries_data: list[MonthlyPoint]
    raw_data: FinancialData


@dataclass(frozen=True)
class ChartRecommendation:
    recommended: list[str] = field(default_factory=lambda: list(RECOMMENDED_CHARTS))
    data: ChartData | None = None


def aggregate_by_category(
    categories: Iterable[str] | None,
    amounts: Iterable[float] | None,
) -> list[CategoryTotal]:
    """
    Sum amounts per category, ordered by first occurrence.

    Categories without a matching amount add 0. Returns [] when either
    input is missing.
    """
    if categories is None or amounts is None:
        return []

    amount_list = list(amounts)
    totals: dict[str, float] = {}
    for i, category in enumerate(categories):
        amount = amount_list[i] if i < len(amount_list) else 0
        totals[category] = totals.get(category, 0) + amount
    return [CategoryTotal(name=name, value=value) for name, value in totals.items()]


def generate_chart_recommendations(data: FinancialData) -> ChartRecommendation:
    return ChartRecommendation(
        recommended=list(RECOMMENDED_CHARTS),
        data=ChartData(
            category_breakdown=aggregate_by_category(data.categories, data.amounts),
            timeseries_data=list(MOCK_TIMESERIES),
            raw_data=data,
        ),
    )
