"""
Side-effect command definitions for the session reducer.

Rules:
- Commands are declarative requests for side effects.
- Commands are emitted by the reducer and executed by the runtime.
- No behavior, no async, no I/O, no clocks.
- Reducer logic remains pure and deterministic.
Invariant:
    - All concrete Command subclasses MUST be frozen dataclasses.
    - Commands are immutable value objects emitted by the reducer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from orchestrator.enums.intent import Intent
from orchestrator.enums.start_source import StartSource
from orchestrator.events import EventType

# =============================================================================
# Command Type Enumeration
# =============================================================================

class CommandType(str, Enum):
    """
    Canonical command types emitted by the reducer.

    These are stable discriminants used for logging, replay,
    and runtime dispatch.
    """

    # Speech engine
    START_ENGINE = "START_ENGINE"
    STOP_ENGINE = "STOP_ENGINE"

    # Speech synthesis
    SPEAK = "SPEAK"
    CANCEL_SPEECH = "CANCEL_SPEECH"

    # Navigation
    DISPATCH_INTENT = "DISPATCH_INTENT"

    # Timers
    START_TIMER = "START_TIMER"
    CANCEL_TIMER = "CANCEL_TIMER"

    # Observability
    LOG_EVENT = "LOG_EVENT"


# =============================================================================
# Base Command
# =============================================================================

class Command:
    """
    Base command type.

    command_type is an explicit discriminant and must never be inferred
    from Python type identity.
    """

    command_type: CommandType


# =============================================================================
# Speech Engine Commands
# =============================================================================

@dataclass(frozen=True)
class StartEngine(Command):
    """Request to begin a recognition pass."""
    source: StartSource = StartSource.USER
    command_type: CommandType = CommandType.START_ENGINE


@dataclass(frozen=True)
class StopEngine(Command):
    """Request to end the active recognition pass."""
    command_type: CommandType = CommandType.STOP_ENGINE


# =============================================================================
# Speech Synthesis Commands
# =============================================================================

@dataclass(frozen=True)
class Speak(Command):
    """Speak a phrase with the session's speech options."""
    text: str
    command_type: CommandType = CommandType.SPEAK


@dataclass(frozen=True)
class CancelSpeech(Command):
    """Interrupt any in-progress utterance."""
    command_type: CommandType = CommandType.CANCEL_SPEECH


# =============================================================================
# Navigation Commands
# =============================================================================

@dataclass(frozen=True)
class DispatchIntent(Command):
    """
    Hand a classified intent to the dispatch facade.

    transcript is the raw final text, used for announcements.
    """
    intent: Intent
    transcript: str
    command_type: CommandType = CommandType.DISPATCH_INTENT


# =============================================================================
# Timer Commands
# =============================================================================

@dataclass(frozen=True)
class StartTimer(Command):
    """
    Request to start a named timer.

    On expiration, the runtime must inject the specified timeout event.
    Starting a timer with an id that is already running replaces it.
    """
    timer_id: str
    duration_ms: int
    timeout_event_type: EventType
    command_type: CommandType = CommandType.START_TIMER


@dataclass(frozen=True)
class CancelTimer(Command):
    """Request to cancel a previously scheduled timer."""
    timer_id: str
    command_type: CommandType = CommandType.CANCEL_TIMER


# =============================================================================
# Observability Commands
# =============================================================================

@dataclass(frozen=True)
class LogEvent(Command):
    """Request to emit a structured observability event."""
    event: dict[str, Any]
    command_type: CommandType = CommandType.LOG_EVENT
