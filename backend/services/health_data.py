"""
Health data store.

Responsibilities:
- Define the typed member health snapshot read by the dispatch facade
- Provide an in-memory store seeded with a demo member
- Convert snapshot slices into JSON-safe payloads for the client

Non-responsibilities:
- No persistence
- No fetching from upstream systems
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, is_dataclass
from datetime import date
from typing import Any, Literal


# =============================================================================
# Snapshot model
# =============================================================================

@dataclass(frozen=True)
class BloodPressure:
    systolic: int
    diastolic: int


@dataclass(frozen=True)
class Cholesterol:
    total: int
    hdl: int
    ldl: int


@dataclass(frozen=True)
class HealthMetrics:
    blood_pressure: BloodPressure
    heart_rate: int
    blood_sugar: int
    cholesterol: Cholesterol
    bmi: float
    weight: float
    height: float


@dataclass(frozen=True)
class Claim:
    id: str
    service_date: date
    type: str
    amount: float
    description: str
    provider: str
    status: Literal["approved", "pending", "denied"]


@dataclass(frozen=True)
class Medication:
    name: str
    dosage: str
    frequency: str
    adherence: int  # percentage
    prescriber: str
    refill_date: date


@dataclass(frozen=True)
class CareTeamMember:
    name: str
    specialty: str
    phone: str
    email: str
    next_appointment: date
    location: str


@dataclass(frozen=True)
class WellnessProgram:
    name: str
    description: str
    progress: int  # percentage
    target: str
    enrolled: bool


@dataclass(frozen=True)
class HealthGoal:
    title: str
    target: str
    current: float
    target_value: float
    unit: str
    deadline: date
    category: str


@dataclass(frozen=True)
class UsageLimit:
    used: float
    total: float


@dataclass(frozen=True)
class Benefits:
    deductible: UsageLimit
    out_of_pocket: UsageLimit
    medical_coverage: int  # percentage
    prescription_coverage: int  # percentage
    plan_name: str
    member_id: str


@dataclass(frozen=True)
class RiskAssessment:
    overall_risk: int
    cardiovascular_risk: int
    diabetes_risk: int
    hypertension_risk: int
    recommendations: tuple[str, ...]


@dataclass(frozen=True)
class HealthInsight:
    title: str
    description: str
    type: Literal["improvement", "warning", "info"]
    trend: Literal["improving", "declining", "stable"]
    actionable: bool


@dataclass(frozen=True)
class HealthData:
    """Point-in-time health snapshot for one member."""
    user_id: str
    metrics: HealthMetrics | None = None
    claims: tuple[Claim, ...] = ()
    medications: tuple[Medication, ...] = ()
    care_team: tuple[CareTeamMember, ...] = ()
    wellness_programs: tuple[WellnessProgram, ...] = ()
    health_goals: tuple[HealthGoal, ...] = ()
    benefits: Benefits | None = None
    risk_assessment: RiskAssessment | None = None
    health_insights: tuple[HealthInsight, ...] = ()


# =============================================================================
# Serialization
# =============================================================================

def _json_safe(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def to_payload(value: Any) -> Any:
    """
    Convert a snapshot slice into a JSON-safe structure.

    Dataclasses become dicts, tuples become lists, dates become ISO strings.
    """
    if is_dataclass(value) and not isinstance(value, type):
        return _json_safe(asdict(value))
    if isinstance(value, (list, tuple)):
        return [to_payload(v) for v in value]
    return _json_safe(value)


# =============================================================================
# Store
# =============================================================================

class InMemoryHealthDataStore:
    """
    Health data store holding at most one snapshot.

    current_snapshot() returns None until a snapshot is loaded.
    """

    def __init__(self, snapshot: HealthData | None = None) -> None:
        self._snapshot = snapshot

    def current_snapshot(self) -> HealthData | None:
        return self._snapshot

    def replace_snapshot(self, snapshot: HealthData | None) -> None:
        self._snapshot = snapshot


def demo_health_data() -> HealthData:
    """Demo member used when no upstream data source is configured."""
    return HealthData(
        user_id="user123",
        metrics=HealthMetrics(
            blood_pressure=BloodPressure(systolic=125, diastolic=82),
            heart_rate=72,
            blood_sugar=95,
            cholesterol=Cholesterol(total=180, hdl=45, ldl=110),
            bmi=24.5,
            weight=165,
            height=68,
        ),
        claims=(
            Claim(
                id="CLM001",
                service_date=date(2024, 11, 15),
                type="Preventive Care",
                amount=250,
                description="Annual Physical Exam",
                provider="Dr. Smith Family Practice",
                status="approved",
            ),
            Claim(
                id="CLM002",
                service_date=date(2024, 10, 22),
                type="Diagnostic",
                amount=180,
                description="Blood Panel Analysis",
                provider="LabCorp",
                status="approved",
            ),
            Claim(
                id="CLM003",
                service_date=date(2024, 9, 30),
                type="Specialist",
                amount=320,
                description="Cardiologist Consultation",
                provider="Heart Health Specialists",
                status="pending",
            ),
        ),
        medications=(
            Medication(
                name="Lisinopril",
                dosage="10mg",
                frequency="Once daily",
                adherence=95,
                prescriber="Dr. Smith",
                refill_date=date(2025, 2, 15),
            ),
            Medication(
                name="Metformin",
                dosage="500mg",
                frequency="Twice daily",
                adherence=88,
                prescriber="Dr. Johnson",
                refill_date=date(2025, 1, 20),
            ),
            Medication(
                name="Vitamin D3",
                dosage="2000 IU",
                frequency="Once daily",
                adherence=92,
                prescriber="Dr. Smith",
                refill_date=date(2025, 3, 10),
            ),
        ),
        care_team=(
            CareTeamMember(
                name="Dr. Sarah Smith",
                specialty="Primary Care",
                phone="(555) 123-4567",
                email="dr.smith@healthcenter.com",
                next_appointment=date(2025, 2, 15),
                location="Main Health Center",
            ),
            CareTeamMember(
                name="Dr. Michael Johnson",
                specialty="Cardiologist",
                phone="(555) 234-5678",
                email="dr.johnson@heartcenter.com",
                next_appointment=date(2025, 3, 1),
                location="Heart Specialists Clinic",
            ),
            CareTeamMember(
                name="Lisa Rodriguez, RN",
                specialty="Diabetes Educator",
                phone="(555) 345-6789",
                email="l.rodriguez@diabetescenter.com",
                next_appointment=date(2025, 2, 8),
                location="Diabetes Care Center",
            ),
        ),
        wellness_programs=(
            WellnessProgram(
                name="Heart Healthy Living",
                description="Cardiovascular wellness program",
                progress=75,
                target="Complete 12-week program",
                enrolled=True,
            ),
            WellnessProgram(
                name="Diabetes Prevention",
                description="Lifestyle modification program",
                progress=60,
                target="Achieve target A1C levels",
                enrolled=True,
            ),
            WellnessProgram(
                name="Stress Management",
                description="Mindfulness and stress reduction",
                progress=45,
                target="Complete 8-week course",
                enrolled=True,
            ),
        ),
        health_goals=(
            HealthGoal(
                title="Daily Steps",
                target="10,000 steps per day",
                current=8500,
                target_value=10000,
                unit="steps",
                deadline=date(2025, 6, 1),
                category="Fitness",
            ),
            HealthGoal(
                title="Weight Loss",
                target="Lose 15 pounds",
                current=10,
                target_value=15,
                unit="lbs",
                deadline=date(2025, 5, 1),
                category="Weight Management",
            ),
            HealthGoal(
                title="Blood Pressure",
                target="Maintain BP under 130/80",
                current=125,
                target_value=130,
                unit="mmHg",
                deadline=date(2025, 12, 31),
                category="Cardiovascular",
            ),
        ),
        benefits=Benefits(
            deductible=UsageLimit(used=1250, total=2500),
            out_of_pocket=UsageLimit(used=2100, total=6000),
            medical_coverage=80,
            prescription_coverage=75,
            plan_name="AZ Blue Choice Plus",
            member_id="AZB123456789",
        ),
        risk_assessment=RiskAssessment(
            overall_risk=25,
            cardiovascular_risk=20,
            diabetes_risk=15,
            hypertension_risk=30,
            recommendations=(
                "Continue regular exercise routine",
                "Monitor blood pressure weekly",
                "Reduce sodium intake",
                "Schedule follow-up in 3 months",
            ),
        ),
        health_insights=(
            HealthInsight(
                title="Blood Pressure Trend",
                description="Your blood pressure has improved over the last 3 months",
                type="improvement",
                trend="improving",
                actionable=False,
            ),
            HealthInsight(
                title="Medication Adherence",
                description="Consider setting up automatic refills for better adherence",
                type="warning",
                trend="stable",
                actionable=True,
            ),
            HealthInsight(
                title="Exercise Progress",
                description="You're meeting your weekly exercise goals consistently",
                type="improvement",
                trend="improving",
                actionable=False,
            ),
            HealthInsight(
                title="Sleep Quality",
                description="Your sleep patterns show room for improvement",
                type="info",
                trend="declining",
                actionable=True,
            ),
        ),
    )
