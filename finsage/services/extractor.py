# =============================================================================
# Financial Field Extraction
# =============================================================================
#
# Step 2 of ingestion: text or CSV grid → FinancialData
# (descriptions, amounts, categories).
#
# extract_financial_data() ignores its input and returns a fixed ten-row
# record. It is the seam where a real statement parser will plug in; keep
# its signature stable.
#
# For CSVs there are two policies (settings.csv_extraction):
#   - "simplified": rows 1..4, column 0 = description, column 1 = amount
#   - "placeholder": same canned record as PDFs
# =============================================================================

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"

# Rows taken by the simplified CSV policy (header is row 0)
CSV_SAMPLE_ROWS = slice(1, 5)


@dataclass(frozen=True)
class FinancialData:
    """
    Parallel lists describing line items.

    descriptions, amounts and categories always have the same length;
    construction fails otherwise.
    """

    descriptions: list[str]
    amounts: list[float]
    categories: list[str] | None = None
    dates: list[date] | None = field(default=None)

    def __post_init__(self) -> None:
        if len(self.descriptions) != len(self.amounts):
            raise ValueError(
                f"descriptions ({len(self.descriptions)}) and amounts "
                f"({len(self.amounts)}) differ in length"
            )
        if self.categories is not None and len(self.categories) != len(self.amounts):
            raise ValueError(
                f"categories ({len(self.categories)}) and amounts "
                f"({len(self.amounts)}) differ in length"
            )

    def __len__(self) -> int:
        return len(self.amounts)


def extract_financial_data(text: str) -> FinancialData:
    """Placeholder extraction: same ten line items for every document."""
    logger.info("Extracting financial data from %d chars of text", len(text))
    return FinancialData(
        descriptions=[
            "Office Supplies",
            "Rent Payment - Q2",
            "Utilities - Electricity",
            "Utilities - Internet",
            "Consulting Services - Tech",
            "Marketing - Digital Ads",
            "Employee Benefits",
            "Software Subscriptions",
            "Travel Expenses",
            "Client Entertainment",
        ],
        amounts=[
            423.45,
            5200.00,
            356.78,
            129.99,
            2800.00,
            1500.00,
            3200.00,
            899.97,
            1245.67,
            678.30,
        ],
        categories=[
            "Office Expenses",
            "Rent",
            "Utilities",
            "Utilities",
            "Professional Services",
            "Marketing",
            "HR",
            "Software",
            "Travel",
            "Entertainment",
        ],
    )


def parse_amount(cell: str) -> float:
    """Cell → float; blanks and non-numeric cells count as 0.0."""
    try:
        value = float(cell.strip())
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def _cell(row: Sequence[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def extract_financial_data_from_csv(
    rows: Sequence[Sequence[str]],
    policy: str = "simplified",
) -> FinancialData:
    """
    Map a CSV grid to FinancialData.

    Args:
        rows: Output of parser.parse_csv_text(); row 0 is the header.
        policy: "simplified" or "placeholder" (see module header).

    Raises:
        ValueError: Unknown policy.
    """
    if policy == "placeholder":
        return extract_financial_data("")
    if policy != "simplified":
        raise ValueError(f"Unknown CSV extraction policy: {policy!r}")

    sample = rows[CSV_SAMPLE_ROWS]
    descriptions = [_cell(row, 0).strip() for row in sample]
    amounts = [parse_amount(_cell(row, 1)) for row in sample]

    logger.info("Extracted %d line items from CSV (%d rows)", len(sample), len(rows))
    return FinancialData(
        descriptions=descriptions,
        amounts=amounts,
        categories=[UNCATEGORIZED] * len(sample),
    )
