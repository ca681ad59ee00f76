"""
Unified event definitions for the session reducer.

Rules:
- Events describe facts that have occurred.
- Events carry data only (no behavior).
- All reducer decisions are based on these events.
- No clocks, no timers, no async, no side effects.

Timer events carry no payload; the reducer re-checks session intent
when they fire.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from orchestrator.enums.start_source import StartSource


# =============================================================================
# Event Type Enumeration
# =============================================================================

class EventType(str, Enum):
    """
    Canonical event types understood by the reducer.

    Every event type must be explicitly handled or explicitly
    ignored by the reducer.
    """

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------
    SESSION_STARTED = "SESSION_STARTED"
    SESSION_ENDED = "SESSION_ENDED"

    # ------------------------------------------------------------------
    # User control
    # ------------------------------------------------------------------
    START_REQUESTED = "START_REQUESTED"
    STOP_REQUESTED = "STOP_REQUESTED"

    # ------------------------------------------------------------------
    # Speech engine lifecycle
    # ------------------------------------------------------------------
    ENGINE_INITIALIZED = "ENGINE_INITIALIZED"
    ENGINE_STARTED = "ENGINE_STARTED"
    ENGINE_START_FAILED = "ENGINE_START_FAILED"
    ENGINE_STOP_FAILED = "ENGINE_STOP_FAILED"
    ENGINE_END = "ENGINE_END"
    ENGINE_ERROR = "ENGINE_ERROR"

    # ------------------------------------------------------------------
    # Recognition results
    # ------------------------------------------------------------------
    INTERIM_TRANSCRIPT = "INTERIM_TRANSCRIPT"
    FINAL_TRANSCRIPT = "FINAL_TRANSCRIPT"

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------
    RESTART_DUE = "RESTART_DUE"
    WELCOME_DUE = "WELCOME_DUE"


# =============================================================================
# Base Event
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Base event type.

    All events must specify:
    - event_type: discriminant
    - ts_ms: timestamp provided by the source (or fake in tests)
    """

    event_type: EventType
    ts_ms: int


# =============================================================================
# Session Events
# =============================================================================

@dataclass(frozen=True)
class SessionStarted(Event):
    """Session Started."""
    session_id: str


@dataclass(frozen=True)
class SessionEnded(Event):
    """Session Ended."""
    session_id: str


# =============================================================================
# User Control Events
# =============================================================================

@dataclass(frozen=True)
class StartRequested(Event):
    """User asked to start voice control."""


@dataclass(frozen=True)
class StopRequested(Event):
    """User asked to stop voice control."""


# =============================================================================
# Speech Engine Events
# =============================================================================

@dataclass(frozen=True)
class EngineInitialized(Event):
    """
    Engine capability report.

    Sent once per session, before any start.
    """
    supported: bool


@dataclass(frozen=True)
class EngineStarted(Event):
    """Engine acknowledged a start: a recognition pass is running."""


@dataclass(frozen=True)
class EngineStartFailed(Event):
    """
    Engine refused to start.

    source tells the reducer which start policy applies.
    """
    reason: str
    source: StartSource = StartSource.USER


@dataclass(frozen=True)
class EngineStopFailed(Event):
    """Engine refused to stop."""
    reason: str


@dataclass(frozen=True)
class EngineEnd(Event):
    """
    Recognition pass ended.

    Emitted after a stop and also spontaneously (silence, network).
    """


@dataclass(frozen=True)
class EngineError(Event):
    """Engine reported an error code while running."""
    code: str


# =============================================================================
# Recognition Result Events
# =============================================================================

@dataclass(frozen=True)
class InterimTranscript(Event):
    """
    Non-final recognition text.

    May be revised by later interims; never classified.
    """
    text: str


@dataclass(frozen=True)
class FinalTranscript(Event):
    """
    Final recognition text for one utterance.

    This text is immutable and is the classifier input.
    """
    text: str
    confidence: float = 0.0


# =============================================================================
# Timer Events
# =============================================================================

@dataclass(frozen=True)
class RestartDue(Event):
    """Restart backoff elapsed."""


@dataclass(frozen=True)
class WelcomeDue(Event):
    """Welcome delay elapsed."""
