"""Deterministic rules shared by the chains: no model calls, no I/O."""

from __future__ import annotations

import logging
import math
import re

from backend.app.models.common import DEFAULT_CURRENCY, Locale, Money
from backend.app.models.intent import IntentResult, IntentType
from backend.app.models.itinerary import (
    GeneratedItinerary,
    ItineraryDay,
    ItineraryStatistics,
)

logger = logging.getLogger(__name__)

_CJK_RE = re.compile(r"[\u4e00-\u9fff]")

ACTIONABLE_CONFIDENCE = 0.7
FALLBACK_CONFIDENCE = 0.5

# Quality scoring thresholds
MAX_ACTIVITY_VARIANCE = 4
OVERPACKED_DAY_MINUTES = 720
SPARSE_DAY_MINUTES = 240
MEAL_COVERAGE_RATIO = 0.8
UNBALANCED_PENALTY = 10
OVERPACKED_PENALTY = 15
SPARSE_PENALTY = 10
MISSING_MEALS_PENALTY = 5

# Parameters of which at least one must be present, per intent type
REQUIRED_PARAMETERS: dict[IntentType, tuple[str, ...]] = {
    IntentType.create_itinerary: ("destination", "duration"),
    IntentType.compare_prices: ("destination", "specificRequests"),
    IntentType.recommend_restaurant: ("destination",),
    IntentType.recommend_rental: ("destination",),
    IntentType.check_weather: ("destination",),
    IntentType.check_traffic: ("destination",),
}

FOLLOW_UPS: dict[IntentType, dict[str, list[str]]] = {
    IntentType.create_itinerary: {
        "en": [
            "How many days would you like to spend?",
            "What is your approximate budget?",
            "What are your main interests (nature, food, adventure)?",
        ],
        "zh": [
            "您计划旅行多少天？",
            "您的大概预算是多少？",
            "您的主要兴趣是什么（自然、美食、冒险）？",
        ],
    },
    IntentType.recommend_restaurant: {
        "en": [
            "What type of cuisine are you interested in?",
            "What is your budget per person?",
            "Any dietary restrictions?",
        ],
        "zh": [
            "您对什么类型的美食感兴趣？",
            "您的人均预算是多少？",
            "有什么饮食限制吗？",
        ],
    },
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves upward."""
    return math.floor(value + 0.5)


# Intent rules


def detect_language(text: str) -> Locale:
    """``zh`` if the text contains a CJK ideograph, else ``en``."""
    return "zh" if _CJK_RE.search(text) else "en"


def build_fallback_intent(query: str, locale: Locale) -> IntentResult:
    """Always-valid intent used when model output cannot be trusted."""
    return IntentResult(
        type=IntentType.general_query,
        confidence=FALLBACK_CONFIDENCE,
        locale=locale,
        parameters={},
        metadata={"fallback": True, "originalQuery": query},
    )


def is_actionable(intent: IntentResult) -> bool:
    """Whether an intent is confident and complete enough to act on.

    The confidence floor applies to every type; greetings, help and general
    queries have no parameter requirements beyond it.
    """
    if intent.confidence < ACTIONABLE_CONFIDENCE:
        return False
    required = REQUIRED_PARAMETERS.get(intent.type)
    if not required:
        return True
    return any(intent.parameters.get(name) for name in required)


def suggested_follow_ups(intent: IntentResult) -> list[str]:
    """Static follow-up questions for the intent's type and locale."""
    suggestions = FOLLOW_UPS.get(intent.type)
    if not suggestions:
        return []
    return list(suggestions.get(intent.locale) or suggestions["en"])


# Itinerary rules


def parse_time_of_day(value: str) -> int:
    """Minutes since midnight for an ``HH:MM`` string."""
    hours, _, minutes = value.partition(":")
    return int(hours) * 60 + int(minutes or 0)


def sort_day_activities(day: ItineraryDay) -> ItineraryDay:
    """Copy of ``day`` with activities stable-sorted by start time."""
    ordered = sorted(day.activities, key=lambda a: parse_time_of_day(a.time))
    return day.model_copy(update={"activities": ordered})


def compute_total_cost(itinerary: GeneratedItinerary) -> Money:
    """Sum activity costs, rounded to whole units.

    The first non-empty currency encountered wins. Costs in any other
    currency are left out of the total and reported in a warning.
    """
    total = 0.0
    currency: str | None = None
    skipped: list[Money] = []

    for day in itinerary.days:
        for activity in day.activities:
            cost = activity.cost
            if cost is None:
                continue
            if cost.currency and currency is None:
                currency = cost.currency
            if cost.currency and cost.currency != currency:
                skipped.append(cost)
                continue
            total += cost.amount

    if skipped:
        others = sorted({c.currency for c in skipped})
        logger.warning(
            f"Mixed currencies in itinerary; excluded {len(skipped)} cost(s) in "
            f"{', '.join(others)} from total in {currency}"
        )

    return Money(amount=round_half_up(total), currency=currency or DEFAULT_CURRENCY)


def post_process(itinerary: GeneratedItinerary) -> GeneratedItinerary:
    """Sort each day's activities and fill in a missing total cost."""
    processed = itinerary.model_copy(
        update={"days": [sort_day_activities(day) for day in itinerary.days]}
    )
    if processed.total_cost is None:
        processed = processed.model_copy(
            update={"total_cost": compute_total_cost(processed)}
        )
    return processed


def estimate_quality(itinerary: GeneratedItinerary) -> int:
    """Rule-based balance and completeness score in [0, 100].

    Deductions: unbalanced activity counts across days, each overpacked or
    sparse day, and too few days with lunch or dinner planned. An itinerary
    without days scores 0.
    """
    days = itinerary.days
    if not days:
        return 0

    score = 100

    counts = [len(day.activities) for day in days]
    mean = sum(counts) / len(counts)
    variance = sum((c - mean) ** 2 for c in counts) / len(counts)
    if variance > MAX_ACTIVITY_VARIANCE:
        score -= UNBALANCED_PENALTY

    for day in days:
        duration = day.total_duration
        if duration > OVERPACKED_DAY_MINUTES:
            score -= OVERPACKED_PENALTY
        elif duration < SPARSE_DAY_MINUTES:
            score -= SPARSE_PENALTY

    with_meals = sum(1 for day in days if day.meals.lunch or day.meals.dinner)
    if with_meals < len(days) * MEAL_COVERAGE_RATIO:
        score -= MISSING_MEALS_PENALTY

    return max(0, min(100, score))


def compute_statistics(itinerary: GeneratedItinerary) -> ItineraryStatistics:
    """Aggregate figures; averages are zero for an itinerary without days."""
    total_days = len(itinerary.days)
    total_activities = itinerary.activity_count
    total_cost = itinerary.total_cost.amount if itinerary.total_cost else 0.0

    if total_days == 0:
        return ItineraryStatistics(
            total_days=0,
            total_activities=total_activities,
            total_cost=total_cost,
            avg_activities_per_day=0,
            avg_daily_budget=0,
        )

    return ItineraryStatistics(
        total_days=total_days,
        total_activities=total_activities,
        total_cost=total_cost,
        avg_activities_per_day=round_half_up(total_activities / total_days),
        avg_daily_budget=round_half_up(total_cost / total_days),
    )
