"""
Closed set of navigation intents produced by the classifier.

Values are stable identifiers used on the wire and in logs.
"""

from __future__ import annotations

from enum import Enum


class Intent(str, Enum):
    """Classification outcome of one final transcript."""

    DASHBOARD = "dashboard"
    RISK_ASSESSMENT = "risk-assessment"
    CLAIMS = "claims"
    VITALS = "vitals"
    HEALTH_PREDICTION = "health-prediction"
    GOALS = "goals"
    WELLNESS = "wellness"
    MEDICATION = "medication"
    PROVIDER = "provider"
    BENEFITS = "benefits"
    INSIGHTS = "insights"
    BACK_TO_TOP = "back-to-top"
    CARE_TEAM = "care-team"
    FITNESS = "fitness"
    TRENDS = "trends"
    SLEEP = "sleep"
    STRESS = "stress"
    STOP = "stop"
    UNRECOGNIZED = "unrecognized"
