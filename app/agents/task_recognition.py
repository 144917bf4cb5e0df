"""Keyword matching that suggests when a to-do item is something Bellhop can pick up."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

ActionType = Literal["pricing", "occupancy", "revenue", "competitor", "marketing", "general"]

MONTH_PATTERN = re.compile(
    r"(january|february|march|april|may|june|july|august|september|october|november|december)",
    re.IGNORECASE,
)
PERCENT_PATTERN = re.compile(r"(\d+)%?")


@dataclass(frozen=True)
class TaskSuggestion:
    message: str
    confidence: float
    action_type: ActionType
    parameters: dict[str, Any] | None = None


@dataclass(frozen=True)
class RecognitionPattern:
    keywords: tuple[str, ...]
    action_type: ActionType
    message: str
    confidence: float
    extract_parameters: Callable[[str], dict[str, Any]] | None = field(default=None, compare=False)


def _percentage(text: str) -> int | None:
    match = PERCENT_PATTERN.search(text)
    return int(match.group(1)) if match else None


def _month(text: str) -> str | None:
    match = MONTH_PATTERN.search(text)
    return match.group(1).lower() if match else None


def _holiday_pricing(text: str) -> dict[str, Any]:
    return {
        "percentage": _percentage(text),
        "event": "halloween" if "halloween" in text.lower() else None,
        "timeframe": "weekend",
    }


def _pricing_adjustment(text: str) -> dict[str, Any]:
    return {
        "percentage": _percentage(text),
        "month": _month(text),
        "reason": "construction" if "construction" in text.lower() else None,
    }


def _rate_increase(text: str) -> dict[str, Any]:
    return {
        "percentage": _percentage(text),
        "timeframe": "weekend" if "weekend" in text.lower() else "general",
    }


def _occupancy(text: str) -> dict[str, Any]:
    lower = text.lower()
    weekend = re.search(r"weekend|saturday|sunday", text, re.IGNORECASE)
    this_period = re.search(r"this\s+(week|month|weekend)", text, re.IGNORECASE)
    if weekend:
        timeframe = "weekend"
    elif this_period:
        timeframe = this_period.group(1)
    else:
        timeframe = "current"
    return {
        "timeframe": timeframe,
        "analysis_type": "comparison" if "vs" in lower or "compare" in lower else "current",
    }


def _revenue(text: str) -> dict[str, Any]:
    year = re.search(r"20\d{2}", text)
    return {
        "month": _month(text),
        "year": int(year.group(0)) if year else None,
        "comparison": "vs" in text or "compare" in text or "last year" in text,
    }


def _marketing(text: str) -> dict[str, Any]:
    event = re.search(r"(hackathon|conference|festival|event)", text, re.IGNORECASE)
    return {
        "event_type": event.group(1).lower() if event else None,
        "has_promo": bool(re.search(r"promo|discount|offer", text, re.IGNORECASE)),
    }


RECOGNITION_PATTERNS: tuple[RecognitionPattern, ...] = (
    RecognitionPattern(
        keywords=("halloween", "weekend", "price", "rate", "update", "adjust"),
        action_type="pricing",
        message="I can update your Halloween weekend pricing! Want me to analyze demand and optimize rates?",
        confidence=0.95,
        extract_parameters=_holiday_pricing,
    ),
    RecognitionPattern(
        keywords=("lower", "reduce", "decrease", "price", "rate", "cost", "%", "percent", "construction"),
        action_type="pricing",
        message="I can help adjust your hotel pricing! Want me to analyze the impact and implement rate changes?",
        confidence=0.9,
        extract_parameters=_pricing_adjustment,
    ),
    RecognitionPattern(
        keywords=("increase", "raise", "boost", "price", "rate", "weekend", "demand"),
        action_type="pricing",
        message="I can help increase your rates! Want me to analyze demand patterns and suggest optimal pricing?",
        confidence=0.85,
        extract_parameters=_rate_increase,
    ),
    RecognitionPattern(
        keywords=("occupancy", "booking", "sold", "out", "full", "vacancy", "rooms"),
        action_type="occupancy",
        message="I can analyze your occupancy data and booking patterns! Want me to generate insights?",
        confidence=0.8,
        extract_parameters=_occupancy,
    ),
    RecognitionPattern(
        keywords=("revenue", "income", "earnings", "vs", "compare", "last year", "month"),
        action_type="revenue",
        message="I can generate revenue reports and year-over-year comparisons! Want me to create charts and insights?",
        confidence=0.85,
        extract_parameters=_revenue,
    ),
    RecognitionPattern(
        keywords=("competitor", "competition", "compare", "market", "rates", "pricing"),
        action_type="competitor",
        message="I can analyze competitor rates and market positioning! Want me to generate a competitive analysis?",
        confidence=0.8,
    ),
    RecognitionPattern(
        keywords=("landing page", "website", "promo", "campaign", "event", "hackathon", "marketing"),
        action_type="marketing",
        message="I can create landing pages and marketing campaigns! Want me to generate promotional content?",
        confidence=0.9,
        extract_parameters=_marketing,
    ),
)

QUICK_ACTIONS: dict[str, list[str]] = {
    "pricing": ["Show current rates", "Analyze impact", "Apply changes"],
    "occupancy": ["Current occupancy", "Year-over-year comparison", "Booking trends"],
    "revenue": ["Generate revenue chart", "Monthly comparison", "Performance insights"],
    "competitor": ["Competitor rate analysis", "Market positioning", "Pricing recommendations"],
    "marketing": ["Create landing page", "Generate promo code", "Campaign preview"],
}


def analyze_task(
    text: str, patterns: tuple[RecognitionPattern, ...] = RECOGNITION_PATTERNS
) -> TaskSuggestion | None:
    """Best-scoring pattern for `text`, or None when nothing scores above 1."""
    lower = text.lower()
    best: TaskSuggestion | None = None
    highest = 0.0

    for pattern in patterns:
        matched = [keyword for keyword in pattern.keywords if keyword.lower() in lower]
        score = float(len(matched))
        if len(matched) > 1:
            score *= 1.5
        final_score = score * pattern.confidence

        if final_score > highest and final_score > 1:
            highest = final_score
            best = TaskSuggestion(
                message=pattern.message,
                confidence=min(final_score / len(pattern.keywords), 1),
                action_type=pattern.action_type,
                parameters=pattern.extract_parameters(text) if pattern.extract_parameters else None,
            )
    return best


def generate_action_suggestion(task: str) -> tuple[TaskSuggestion | None, list[str]]:
    suggestion = analyze_task(task)
    if suggestion is None:
        return None, []
    return suggestion, list(QUICK_ACTIONS.get(suggestion.action_type, []))
