"""
Keyword intent classifier.

Pure function over one final transcript:

    classify(text) -> Intent

Rules:
- Input is normalized (lower-cased, trimmed) before matching.
- Rules are evaluated in a fixed total order; first match wins.
- Predicates are substring tests and two-substring conjunctions only.
- Confidence never affects the outcome.

Overlaps between rules are resolved by position in INTENT_RULES alone.
For example "trends" is claimed by INSIGHTS before TRENDS is reached, and
"care team" by PROVIDER before CARE_TEAM.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from orchestrator.enums.intent import Intent


Predicate = Callable[[str], bool]


# =============================================================================
# Predicate combinators
# =============================================================================

def any_of(*phrases: str) -> Predicate:
    """Match when any phrase occurs in the text."""
    return lambda text: any(p in text for p in phrases)


def both(first: Predicate | str, second: Predicate | str) -> Predicate:
    """Match when both sides match. Strings are single-phrase predicates."""
    lhs = any_of(first) if isinstance(first, str) else first
    rhs = any_of(second) if isinstance(second, str) else second
    return lambda text: lhs(text) and rhs(text)


def either(*predicates: Predicate) -> Predicate:
    return lambda text: any(p(text) for p in predicates)


# =============================================================================
# Rule table
# =============================================================================

@dataclass(frozen=True)
class IntentRule:
    """One ordered classification rule."""
    intent: Intent
    predicate: Predicate


INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule(
        Intent.STOP,
        any_of("stop", "stop listening", "that's all"),
    ),
    IntentRule(
        Intent.DASHBOARD,
        either(
            both("show", any_of("health", "dashboard")),
            both("health", "dashboard"),
            both("my", "health"),
            any_of("health dashboard", "dashboard"),
        ),
    ),
    IntentRule(
        Intent.RISK_ASSESSMENT,
        either(
            both("risk", "assessment"),
            both("health", "assessment"),
            both("show", "assessment"),
            any_of("risk assessment"),
        ),
    ),
    IntentRule(
        Intent.CLAIMS,
        any_of("claims", "claim"),
    ),
    IntentRule(
        Intent.VITALS,
        any_of("vitals", "vital", "vital signs"),
    ),
    IntentRule(
        Intent.HEALTH_PREDICTION,
        either(
            both("predict", "health"),
            both("health", "prediction"),
        ),
    ),
    IntentRule(
        Intent.GOALS,
        any_of("goals", "goal", "health goals", "health goal"),
    ),
    IntentRule(
        Intent.WELLNESS,
        any_of("wellness", "programs", "program"),
    ),
    IntentRule(
        Intent.MEDICATION,
        any_of("medication", "medications", "medicines", "medicine", "pills", "pill"),
    ),
    IntentRule(
        Intent.PROVIDER,
        any_of(
            "provider", "providers", "doctor", "doctors", "care team", "physician",
        ),
    ),
    IntentRule(
        Intent.BENEFITS,
        any_of("benefits", "benefit", "coverage", "insurance"),
    ),
    IntentRule(
        Intent.INSIGHTS,
        any_of("insights", "insight", "trends", "trend"),
    ),
    IntentRule(
        Intent.BACK_TO_TOP,
        any_of(
            "go to top",
            "back to top",
            "scroll to top",
            "go back to top",
            "top of page",
        ),
    ),
    IntentRule(
        Intent.CARE_TEAM,
        any_of("appointment", "appointments", "schedule", "care team"),
    ),
    IntentRule(
        Intent.FITNESS,
        any_of("fitness", "progress", "fitness goals", "exercise"),
    ),
    IntentRule(
        Intent.TRENDS,
        any_of("trends", "analytics", "health trends", "data analysis"),
    ),
    IntentRule(
        Intent.SLEEP,
        any_of("sleep", "sleep data", "sleep quality"),
    ),
    IntentRule(
        Intent.STRESS,
        any_of("stress", "stress level", "stress levels"),
    ),
)


# =============================================================================
# Public API
# =============================================================================

def normalize(text: str) -> str:
    return text.strip().lower()


def classify(text: str) -> Intent:
    """
    Map a final transcript to exactly one intent.

    Returns Intent.UNRECOGNIZED when no rule matches, including for
    empty or whitespace-only input.
    """
    normalized = normalize(text)
    if not normalized:
        return Intent.UNRECOGNIZED

    for rule in INTENT_RULES:
        if rule.predicate(normalized):
            return rule.intent

    return Intent.UNRECOGNIZED
