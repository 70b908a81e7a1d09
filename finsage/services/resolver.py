# =============================================================================
# Query Resolver — Rule-Based Chat Answers
# =============================================================================
#
# Maps a free-text question plus the prior conversation to a canned answer
# and a confidence score. This is the stand-in for the Gemini chat call: the
# answers are static, only the selection logic is real.
#
# RESOLUTION ORDER (first match wins):
#   1. exact      — normalised query equals a phrase key          (0.98)
#   2. substring  — normalised query contains a phrase key        (0.92)
#   3. contextual — keyword + history heuristics, fixed order     (0.85)
#   4. fallback   — templated sentence quoting the query          (0.75)
#
# DESIGN DECISION: The order lives in RULES, an explicit list of Rule
# entries, not in an if/elif chain. Tests can assert precedence by name and
# callers can pass their own list.
#
# NOTE: substring matching follows the insertion order of
# PREDEFINED_RESPONSES, so short keys such as "hi" also match inside longer
# words ("which", "this"). Reorder the table to change tie-breaks.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from finsage.errors import CredentialMissing, EmptyInput, FinSageError, UnknownError
from finsage.services.latency import Delay, get_delay
from finsage.services.session import ChatMessage, SessionContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Static Answers
# ---------------------------------------------------------------------------

PREDEFINED_RESPONSES: dict[str, str] = {
    "hello": "Hello! I'm your financial assistant. How can I help you today?",
    "hi": "Hi there! I'm ready to help with your financial queries.",
    "what is the document about": (
        "This document appears to be a financial statement for Q2 2023. It "
        "contains expenses across various categories including Office "
        "Expenses, Rent, Utilities, Professional Services, and Marketing."
    ),
    "show me total": (
        "Based on your financial data, your total expenses amount to "
        "$16,434.16 for the current period. Your total income is $24,580, "
        "resulting in a net profit of $8,145.84."
    ),
    "total unique item sales": (
        "There are 42 unique items in your sales data, with the top selling "
        "items being Premium Subscription (156 units), Basic Subscription "
        "(93 units), and Consulting Hours (78 units)."
    ),
    "total products bought": (
        "You have 156 transactions in your data, with a total of 312 "
        "individual items purchased across all transactions."
    ),
    "show me expenses": (
        "Your top expenses are: Rent ($5,200), Employee Benefits ($3,200), "
        "Consulting Services ($2,800), Marketing ($1,500), and Travel "
        "Expenses ($1,245.67)."
    ),
    "who are you": (
        "I'm your AI-powered financial assistant designed to help you "
        "understand and analyze your financial data."
    ),
    "explain the pie chart": (
        "The pie chart visualizes your expense distribution by category. The "
        "largest portion (31.6%) goes to Rent, followed by HR costs (19.5%), "
        "Professional Services (17%), Marketing (9.1%), and Travel (7.6%). "
        "Other smaller categories include Office Expenses, Utilities, "
        "Software, and Entertainment."
    ),
    "explain the bar chart": (
        "The bar chart shows your expenses by category in descending order. "
        "Rent is your highest expense at $5,200, followed by Employee "
        "Benefits at $3,200, and Consulting Services at $2,800. This "
        "visualization helps identify your major cost centers at a glance."
    ),
    "explain the line chart": (
        "The line chart displays your income (blue) and expenses (red) over "
        "the past 7 months. Your income shows a steady upward trend from "
        "$12,500 in January to $15,800 in July. Expenses have fluctuated "
        "between $8,900 and $11,200, with a notable spike in March. Overall, "
        "your profit margin has been improving since April."
    ),
    "analyze trends": (
        "Looking at your financial trends over the past 7 months, I notice "
        "several patterns: 1) Your income has grown consistently at about "
        "3-5% month-over-month, 2) March had unusually high expenses that "
        "reduced your profit margin, 3) Since April, you've maintained better "
        "expense control while growing revenue, 4) Your profit margin has "
        "improved from 21% in January to 34% in July."
    ),
    "how can i reduce costs": (
        "Based on your expense breakdown, here are some cost reduction "
        "strategies: 1) Evaluate your office space needs - rent is your "
        "largest expense, 2) Review consulting services contracts for "
        "potential renegotiation, 3) Analyze marketing spend efficiency, "
        "4) Consider consolidating software subscriptions, 5) Implement a "
        "more structured travel and entertainment policy."
    ),
}

TOTALS_ANSWER = (
    "Based on the data we've analyzed, your total expenses amount to "
    "$16,434.16 for the current period. Your major expenses are Rent "
    "($5,200), Employee Benefits ($3,200), and Consulting Services "
    "($2,800). Your total income for the same period is $24,580, resulting "
    "in a gross profit of $8,145.84."
)

EXPENSE_EXPLANATION_ANSWER = (
    "Your expenses have increased by 12% compared to last quarter. The main "
    "contributors to this increase are: 1) Consulting Services, which "
    "increased by $1,200 due to the new IT system implementation, "
    "2) Marketing expenses, up by $500 for the new campaign launch, and "
    "3) Employee Benefits, which increased by $800 due to the annual health "
    "insurance premium adjustment."
)

CHART_ANSWER = (
    "Based on your financial data, I recommend three visualizations: 1) A "
    "pie chart showing the distribution of expenses by category, which "
    "highlights that Rent (31.6%) and HR costs (19.5%) make up over half of "
    "your expenses, 2) A bar chart comparing the actual amounts for each "
    "expense category, and 3) A line chart showing your income vs. expense "
    "trends over the past 7 months, which reveals your improving profit "
    "margin."
)

TREND_ANSWER = (
    "Your financial data for Q2 2023 shows a 15% improvement in net income "
    "compared to Q1. Your monthly revenue has grown steadily at an average "
    "rate of 4.2%, while expenses have been more effectively managed with "
    "only a 1.7% average monthly increase. If these trends continue, you're "
    "projected to exceed your annual profit target by approximately 12%."
)

ROI_ANSWER = (
    "Based on the marketing expenses in your financial data ($1,500), the "
    "campaign has generated an estimated $4,200 in revenue, resulting in an "
    "ROI of 180%. This is significantly higher than your average marketing "
    "ROI of 120% from previous quarters."
)

FORECAST_ANSWER = (
    "Based on your current financial trends, I've generated a Q3 forecast. "
    "Assuming the same growth patterns, you should expect revenues of "
    "approximately $48,000 (+12% from Q2) and expenses around $18,000 "
    "(+9.5% from Q2). This would result in a net profit of about $30,000, "
    "improving your profit margin from 33% to 37%."
)

FALLBACK_TEMPLATE = (
    'I\'ve analyzed your financial data based on your query: "{query}". Your '
    "Q2 2023 financial statement shows total expenses of $16,434.16 across "
    "10 categories, with Rent, Employee Benefits, and Consulting Services "
    "being your top three expenses. Your income is trending upward with a "
    "26.4% gross margin. Would you like specific insights on any particular "
    "aspect of your finances?"
)

EXACT_CONFIDENCE = 0.98
SUBSTRING_CONFIDENCE = 0.92
CONTEXTUAL_CONFIDENCE = 0.85
FALLBACK_CONFIDENCE = 0.75

STATIC_DELAY_SECONDS = 1.0
CONTEXTUAL_DELAY_SECONDS = 1.5


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResolvedAnswer:
    """What the resolver returns for one query."""

    text: str
    confidence: float
    rule: str  # Name of the rule that produced the answer


@dataclass(frozen=True)
class Rule:
    """
    One entry in the resolution order.

    `matches(normalized, history)` decides whether the rule applies;
    `respond(normalized, query)` builds the answer text. The raw query is
    passed so templates can quote the user's own wording.
    """

    name: str
    matches: Callable[[str, Sequence[ChatMessage]], bool]
    respond: Callable[[str, str], str]
    confidence: float
    delay_seconds: float


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def normalize_query(query: str) -> str:
    return query.strip().lower()


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(kw in text for kw in keywords)


def _contained_key(normalized: str) -> str | None:
    """First phrase key (in table order) contained in the query."""
    for key in PREDEFINED_RESPONSES:
        if key in normalized:
            return key
    return None


def _last_assistant_message(history: Sequence[ChatMessage]) -> ChatMessage | None:
    for message in reversed(history):
        if message.role == "assistant":
            return message
    return None


def _follows_expense_answer(normalized: str, history: Sequence[ChatMessage]) -> bool:
    if not history or not _contains_any(normalized, ("why", "how", "what")):
        return False
    last = _last_assistant_message(history)
    return last is not None and "expenses" in last.content


def _keyword_rule(name: str, keywords: Sequence[str], answer: str) -> Rule:
    return Rule(
        name=name,
        matches=lambda normalized, history: _contains_any(normalized, keywords),
        respond=lambda normalized, query: answer,
        confidence=CONTEXTUAL_CONFIDENCE,
        delay_seconds=CONTEXTUAL_DELAY_SECONDS,
    )


# ---------------------------------------------------------------------------
# Rule Table
# ---------------------------------------------------------------------------

RULES: list[Rule] = [
    Rule(
        name="exact",
        matches=lambda normalized, history: normalized in PREDEFINED_RESPONSES,
        respond=lambda normalized, query: PREDEFINED_RESPONSES[normalized],
        confidence=EXACT_CONFIDENCE,
        delay_seconds=STATIC_DELAY_SECONDS,
    ),
    Rule(
        name="substring",
        matches=lambda normalized, history: _contained_key(normalized) is not None,
        respond=lambda normalized, query: PREDEFINED_RESPONSES[_contained_key(normalized)],
        confidence=SUBSTRING_CONFIDENCE,
        delay_seconds=STATIC_DELAY_SECONDS,
    ),
    Rule(
        name="context_totals",
        matches=lambda normalized, history: "how much" in normalized and bool(history),
        respond=lambda normalized, query: TOTALS_ANSWER,
        confidence=CONTEXTUAL_CONFIDENCE,
        delay_seconds=CONTEXTUAL_DELAY_SECONDS,
    ),
    Rule(
        name="context_expense_followup",
        matches=_follows_expense_answer,
        respond=lambda normalized, query: EXPENSE_EXPLANATION_ANSWER,
        confidence=CONTEXTUAL_CONFIDENCE,
        delay_seconds=CONTEXTUAL_DELAY_SECONDS,
    ),
    _keyword_rule("context_chart", ("chart", "graph", "visual"), CHART_ANSWER),
    _keyword_rule("context_period", ("month", "year", "quarter"), TREND_ANSWER),
    _keyword_rule("context_roi", ("roi", "return on investment"), ROI_ANSWER),
    _keyword_rule("context_forecast", ("budget", "forecast"), FORECAST_ANSWER),
    Rule(
        name="fallback",
        matches=lambda normalized, history: True,
        respond=lambda normalized, query: FALLBACK_TEMPLATE.format(query=query),
        confidence=FALLBACK_CONFIDENCE,
        delay_seconds=CONTEXTUAL_DELAY_SECONDS,
    ),
]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class QueryResolver:
    """
    Resolves chat queries against an ordered rule list.

    Args:
        rules: Resolution order. Defaults to RULES. The last rule should
            always match, otherwise unmatched queries raise UnknownError.
        delay: Awaitable used for simulated latency (see latency.py).
    """

    def __init__(
        self,
        rules: Sequence[Rule] | None = None,
        delay: Delay | None = None,
    ) -> None:
        self.rules = list(rules) if rules is not None else list(RULES)
        self._delay = delay or get_delay()

    def match(self, query: str, history: Sequence[ChatMessage] = ()) -> Rule | None:
        """Return the first rule that applies to the query, without waiting."""
        normalized = normalize_query(query)
        for rule in self.rules:
            if rule.matches(normalized, history):
                return rule
        return None

    async def resolve(
        self,
        query: str,
        history: Sequence[ChatMessage],
        session: SessionContext,
    ) -> ResolvedAnswer:
        """
        Answer a chat query.

        Raises:
            CredentialMissing: The session has no usable API key.
            EmptyInput: The query is blank after trimming.
            UnknownError: Anything else went wrong (code 500).
        """
        try:
            if not await session.has_api_key():
                raise CredentialMissing("Gemini API key is not set or is invalid")

            if not query or not query.strip():
                raise EmptyInput("Query cannot be empty")

            logger.info(
                "Processing query: '%s' (history=%d)", query[:80], len(history),
            )

            rule = self.match(query, history)
            if rule is None:
                raise LookupError("no rule matched the query")

            text = rule.respond(normalize_query(query), query)
            await self._delay(rule.delay_seconds)

            logger.info(
                "Query resolved by rule '%s' (confidence=%.2f)",
                rule.name, rule.confidence,
            )
            return ResolvedAnswer(text=text, confidence=rule.confidence, rule=rule.name)

        except FinSageError:
            raise
        except Exception as e:
            logger.exception("Query resolution failed: %s", e)
            raise UnknownError.wrap("Error processing query", e) from e
