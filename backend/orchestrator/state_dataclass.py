"""
Authoritative session state container.

Rules:
- This dataclass is a pure data model.
- It contains ALL state the reducer may ever need.
- No behavior, no helpers, no derived logic.
"""
from __future__ import annotations

from dataclasses import dataclass

from orchestrator.enums.error_kind import ErrorKind
from orchestrator.enums.intent import Intent
from orchestrator.enums.state import State
from orchestrator.retry import RetryAttempt


# =============================================================================
# Recognized commands
# =============================================================================

@dataclass(frozen=True)
class VoiceCommand:
    """
    One final recognition result.

    text is the transcript as heard, or 'Unrecognized: "<text>"'
    when no rule matched.
    """
    text: str
    confidence: float
    ts_ms: int
    intent: Intent


# =============================================================================
# Session State
# =============================================================================

@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of all session-owned state."""

    # ------------------------------------------------------------------
    # Control state
    # ------------------------------------------------------------------
    state: State = State.IDLE

    # Engine capability; defaults to True until the client reports
    supported: bool = True

    # Set by the first capability report; later reports are ignored
    support_reported: bool = False

    # ------------------------------------------------------------------
    # Engine lifecycle
    # ------------------------------------------------------------------

    # A recognition pass is running
    listening: bool = False

    # The user wants the session open; governs auto-restart
    should_keep_alive: bool = False

    # StartEngine emitted and not yet acknowledged or refused
    engine_starting: bool = False

    # ------------------------------------------------------------------
    # Recognition results
    # ------------------------------------------------------------------

    # Non-null only while listening and before the utterance's final
    current_transcript: str | None = None
    last_command: VoiceCommand | None = None

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------
    error: str | None = None
    error_kind: ErrorKind | None = None

    # ------------------------------------------------------------------
    # Welcome (one-shot per start, reset by stop)
    # ------------------------------------------------------------------
    has_given_welcome: bool = False

    # ------------------------------------------------------------------
    # Retry bookkeeping (automatic restart)
    # ------------------------------------------------------------------
    restart_attempt: RetryAttempt = RetryAttempt(attempt=0)

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------

    # False = stop the session after every recognized command
    keep_listening_after_command: bool = True
