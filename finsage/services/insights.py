# =============================================================================
# Insights Service — Summary Statistics and Dashboard Cards
# =============================================================================
#
# Builds the "Automated Insights" cards shown on the dashboard from the
# latest processed file. Regenerated on every request, never stored.
#
#   FinancialData → FinancialSummary → list[FinancialInsight]
#
# When no data is available (nothing uploaded yet) the summary falls back
# to the sample figures the dashboard has always shown.
# =============================================================================

from __future__ import annotations

import logging
import statistics
from collections import Counter
from dataclasses import dataclass

from finsage.services.extractor import FinancialData

logger = logging.getLogger(__name__)

TOP_CATEGORY_COUNT = 3


@dataclass(frozen=True)
class LineItem:
    description: str
    amount: float


@dataclass(frozen=True)
class CategoryCount:
    category: str
    count: int


@dataclass(frozen=True)
class FinancialSummary:
    total_amount: float
    average_transaction: float
    median_transaction: float
    highest_expense: LineItem
    lowest_expense: LineItem
    transaction_count: int
    high_value_transaction_count: int
    top_categories: list[CategoryCount]


@dataclass(frozen=True)
class Trend:
    value: float
    is_positive: bool


@dataclass(frozen=True)
class FinancialInsight:
    title: str
    value: str | int
    description: str | None = None
    icon: str | None = None  # lucide icon name rendered by the frontend
    trend: Trend | None = None


SAMPLE_SUMMARY = FinancialSummary(
    total_amount=12345.67,
    average_transaction=123.45,
    median_transaction=100.00,
    highest_expense=LineItem("Office Supplies", 5000.00),
    lowest_expense=LineItem("Coffee", 5.00),
    transaction_count=42,
    high_value_transaction_count=8,
    top_categories=[
        CategoryCount("Office Supplies", 12),
        CategoryCount("Utilities", 8),
        CategoryCount("Rent", 4),
    ],
)


def format_currency(value: float) -> str:
    """USD formatting: 1234.5 → '$1,234.50', -3 → '-$3.00'."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def generate_financial_summary(data: FinancialData | None) -> FinancialSummary:
    if data is None or len(data) == 0:
        logger.info("No financial data available, using sample summary")
        return SAMPLE_SUMMARY

    items = [LineItem(d, a) for d, a in zip(data.descriptions, data.amounts, strict=True)]
    total = sum(data.amounts)
    mean = total / len(items)
    category_counts = Counter(data.categories or [])

    return FinancialSummary(
        total_amount=round(total, 2),
        average_transaction=round(mean, 2),
        median_transaction=round(statistics.median(data.amounts), 2),
        highest_expense=max(items, key=lambda item: item.amount),
        lowest_expense=min(items, key=lambda item: item.amount),
        transaction_count=len(items),
        high_value_transaction_count=sum(1 for a in data.amounts if a > mean),
        top_categories=[
            CategoryCount(category, count)
            for category, count in category_counts.most_common(TOP_CATEGORY_COUNT)
        ],
    )


def generate_insights(summary: FinancialSummary) -> list[FinancialInsight]:
    top = summary.top_categories[0] if summary.top_categories else None
    return [
        FinancialInsight(
            title="Total Amount",
            value=format_currency(summary.total_amount),
            icon="dollar-sign",
            description="Sum of all transactions",
        ),
        FinancialInsight(
            title="Average Transaction",
            value=format_currency(summary.average_transaction),
            icon="calculator",
            description="Mean transaction amount",
        ),
        FinancialInsight(
            title="Highest Expense",
            value=format_currency(summary.highest_expense.amount),
            icon="trending-down",
            description=summary.highest_expense.description,
        ),
        FinancialInsight(
            title="Median Transaction",
            value=format_currency(summary.median_transaction),
            icon="calculator",
            description="Middle value of all transactions",
        ),
        FinancialInsight(
            title="Transaction Count",
            value=summary.transaction_count,
            icon="hash",
            description="Total number of transactions",
        ),
        FinancialInsight(
            title="Lowest Expense",
            value=format_currency(summary.lowest_expense.amount),
            icon="trending-up",
            description=summary.lowest_expense.description,
        ),
        FinancialInsight(
            title="High Value Transactions",
            value=summary.high_value_transaction_count,
            icon="trending-up",
            description="Transactions above average amount",
        ),
        FinancialInsight(
            title="Top Category",
            value=top.category if top else "N/A",
            icon="hash",
            description=f"{top.count if top else 0} transactions",
        ),
    ]


def generate_insights_from_data(data: FinancialData | None) -> list[FinancialInsight]:
    return generate_insights(generate_financial_summary(data))
