"""
Plain-text summaries of popup data for screen-reader announcements.
"""

from __future__ import annotations

from typing import Any

from dispatch.panels import PopupKind
from services.health_data import Benefits, Claim, HealthGoal, HealthMetrics, Medication

DEFAULT_SUMMARY = "Health data visualization"


def _number(value: float) -> str:
    # 24.5 -> "24.5", 250.0 -> "250"
    return f"{value:g}"


def summarize_vitals(metrics: HealthMetrics) -> str:
    bp = metrics.blood_pressure
    return (
        f"Health vitals: Heart rate {metrics.heart_rate} beats per minute, "
        f"Blood pressure {bp.systolic} over {bp.diastolic}, "
        f"Blood sugar {metrics.blood_sugar} mg/dL, "
        f"BMI {_number(metrics.bmi)}"
    )


def summarize_claims(claims: tuple[Claim, ...]) -> str:
    total = sum(claim.amount for claim in claims)
    return f"{len(claims)} recent claims totaling ${_number(total)}"


def summarize_goals(goals: tuple[HealthGoal, ...]) -> str:
    completed = sum(
        1 for goal in goals
        if goal.target_value and goal.current / goal.target_value >= 1
    )
    return f"{len(goals)} health goals, {completed} completed"


def summarize_medications(medications: tuple[Medication, ...]) -> str:
    average = sum(med.adherence for med in medications) / len(medications)
    return (
        f"{len(medications)} medications with average adherence of "
        f"{round(average)}%"
    )


def summarize_benefits(benefits: Benefits) -> str:
    return (
        f"{benefits.plan_name}: deductible ${_number(benefits.deductible.used)} "
        f"of ${_number(benefits.deductible.total)} used, out of pocket "
        f"${_number(benefits.out_of_pocket.used)} of "
        f"${_number(benefits.out_of_pocket.total)} used"
    )


def summarize(kind: PopupKind, data: Any) -> str:
    """Summary for a non-empty popup data slice."""
    if kind is PopupKind.VITALS:
        return summarize_vitals(data)
    if kind is PopupKind.CLAIMS:
        return summarize_claims(data)
    if kind is PopupKind.GOALS:
        return summarize_goals(data)
    if kind is PopupKind.MEDICATIONS:
        return summarize_medications(data)
    if kind is PopupKind.BENEFITS:
        return summarize_benefits(data)
    return DEFAULT_SUMMARY
