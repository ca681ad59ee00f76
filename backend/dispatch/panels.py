"""
Panel table for navigation intents.

One row per navigable intent:

    intent -> (panel name, confirmation phrase, highlight, popup kind)

Rules:
- Data only. The facade interprets the table; no per-intent branches.
- Every recognized intent except STOP has exactly one row.
- Popup kinds name the snapshot slice they display.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

from orchestrator.enums.intent import Intent


# =============================================================================
# Popups
# =============================================================================

class PopupKind(str, Enum):
    CLAIMS = "claims"
    VITALS = "vitals"
    MEDICATIONS = "medications"
    GOALS = "goals"
    BENEFITS = "benefits"


@dataclass(frozen=True)
class PopupSpec:
    """
    Popup presentation for one kind.

    data_slice is the HealthData attribute shown in the popup.
    """
    data_slice: str
    title: str
    message: str


POPUPS: Final[dict[PopupKind, PopupSpec]] = {
    PopupKind.VITALS: PopupSpec(
        data_slice="metrics",
        title="Vital Signs",
        message="Your current health metrics and vital signs",
    ),
    PopupKind.MEDICATIONS: PopupSpec(
        data_slice="medications",
        title="Medications",
        message="Your current medication schedule and adherence",
    ),
    PopupKind.GOALS: PopupSpec(
        data_slice="health_goals",
        title="Health Goals",
        message="Your health goals and progress tracking",
    ),
    PopupKind.BENEFITS: PopupSpec(
        data_slice="benefits",
        title="Benefits Summary",
        message="Your insurance benefits and coverage details",
    ),
    PopupKind.CLAIMS: PopupSpec(
        data_slice="claims",
        title="Recent Claims",
        message="Your recent insurance claims and status",
    ),
}


# =============================================================================
# Panels
# =============================================================================

# Panel name reserved for scroll-to-top
TOP: Final[str] = "top"


@dataclass(frozen=True)
class PanelSpec:
    panel: str
    confirmation: str
    highlight: bool = True
    popup: PopupKind | None = None


PANELS: Final[dict[Intent, PanelSpec]] = {
    Intent.DASHBOARD: PanelSpec(
        panel="dashboard",
        confirmation="Opening your health dashboard",
        highlight=False,
    ),
    Intent.RISK_ASSESSMENT: PanelSpec(
        panel="risk-assessment",
        confirmation="Showing your health risk assessment",
    ),
    Intent.CLAIMS: PanelSpec(
        panel="claims",
        confirmation="Opening your claims information",
        popup=PopupKind.CLAIMS,
    ),
    Intent.VITALS: PanelSpec(
        panel="vitals",
        confirmation="Displaying your vital signs information",
        popup=PopupKind.VITALS,
    ),
    Intent.HEALTH_PREDICTION: PanelSpec(
        panel="recommendations",
        confirmation="Showing your health predictions and recommendations",
    ),
    Intent.GOALS: PanelSpec(
        panel="goals",
        confirmation="Showing your health goals",
        popup=PopupKind.GOALS,
    ),
    Intent.WELLNESS: PanelSpec(
        panel="wellness",
        confirmation="Opening your wellness programs",
    ),
    Intent.MEDICATION: PanelSpec(
        panel="medications",
        confirmation="Opening your medication tracker",
        popup=PopupKind.MEDICATIONS,
    ),
    Intent.PROVIDER: PanelSpec(
        panel="care-team",
        confirmation="Showing your care team information",
    ),
    Intent.BENEFITS: PanelSpec(
        panel="benefits",
        confirmation="Displaying your benefits summary",
        popup=PopupKind.BENEFITS,
    ),
    Intent.INSIGHTS: PanelSpec(
        panel="insights",
        confirmation="Showing your health insights",
    ),
    Intent.BACK_TO_TOP: PanelSpec(
        panel=TOP,
        confirmation="Scrolling to the top of the page",
        highlight=False,
    ),
    Intent.CARE_TEAM: PanelSpec(
        panel="care-team",
        confirmation="Showing your care team and appointment schedule",
    ),
    Intent.FITNESS: PanelSpec(
        panel="goals",
        confirmation="Displaying your fitness goals and progress",
    ),
    Intent.TRENDS: PanelSpec(
        panel="insights",
        confirmation="Showing your health trends and analytics",
    ),
    Intent.SLEEP: PanelSpec(
        panel="vitals",
        confirmation="Displaying your sleep data and quality metrics",
    ),
    Intent.STRESS: PanelSpec(
        panel="wellness",
        confirmation="Showing your stress levels and management programs",
    ),
}
