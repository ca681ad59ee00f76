"""
Pure session reducer.

(state, event) -> (new_state, commands)

Rules:
- Pure: no side effects, no IO, no clocks.
- Deterministic: output depends only on inputs.
- Total: every (state, event) pair is handled or explicitly ignored (logged).
"""

# Reducer owns timer semantics; runtime must not cancel timers implicitly.
# Timer events are re-checked against session intent when they fire.

from __future__ import annotations

from dataclasses import replace
from typing import Any

from constants import (
    ERROR_ENGINE_FORMAT,
    ERROR_RESTART_FAILED_FORMAT,
    ERROR_START_FAILED_FORMAT,
    ERROR_STOP_FAILED_FORMAT,
    ERROR_UNSUPPORTED,
    UNRECOGNIZED_COMMAND_FORMAT,
    WELCOME_DELAY_MS,
    WELCOME_MESSAGE,
)
from orchestrator.classifier import classify
from orchestrator.commands import (
    CancelSpeech,
    CancelTimer,
    Command,
    DispatchIntent,
    LogEvent,
    Speak,
    StartEngine,
    StartTimer,
    StopEngine,
)
from orchestrator.enums.error_kind import ErrorKind
from orchestrator.enums.intent import Intent
from orchestrator.enums.start_source import StartSource
from orchestrator.enums.state import State
from orchestrator.events import (
    EngineEnd,
    EngineError,
    EngineInitialized,
    EngineStarted,
    EngineStartFailed,
    EngineStopFailed,
    Event,
    EventType,
    FinalTranscript,
    InterimTranscript,
    RestartDue,
    SessionEnded,
    SessionStarted,
    StartRequested,
    StopRequested,
    WelcomeDue,
)
from orchestrator.retry import (
    get_restart_delay_ms,
    next_attempt,
    reset_attempt,
    should_retry,
)
from orchestrator.state_dataclass import SessionState, VoiceCommand


# =============================================================================
# Timer IDs
# =============================================================================

TIMER_RESTART = "engine_restart"
TIMER_WELCOME = "welcome"


# =============================================================================
# Small helpers
# =============================================================================

def _log(
    state: SessionState,
    event: Event,
    decision: str,
    details: dict[str, Any] | None = None,
) -> LogEvent:
    return LogEvent(
        event={
            "ts_ms": event.ts_ms,
            "state": state.state.value,
            "event_type": event.event_type.value,
            "decision": decision,
            "flags": {
                "listening": state.listening,
                "should_keep_alive": state.should_keep_alive,
                "engine_starting": state.engine_starting,
            },
            "details": details or {},
        }
    )


def _logs_last(commands: tuple[Command, ...]) -> tuple[Command, ...]:
    non_logs: list[Command] = []
    logs: list[Command] = []
    state_change_logs: list[Command] = []

    for command in commands:
        if isinstance(command, LogEvent):
            if command.event.get("decision") == "state_changed":
                state_change_logs.append(command)
            else:
                logs.append(command)
        else:
            non_logs.append(command)

    return tuple(non_logs + logs + state_change_logs)


def _state_changed(
    prev: SessionState,
    new: SessionState,
    event: Event,
    source: str,
) -> tuple[Command, ...]:
    if prev.state is new.state:
        return ()
    return (
        _log(
            new,
            event,
            "state_changed",
            {
                "from_state": prev.state.value,
                "to_state": new.state.value,
                "source": source,
            },
        ),
    )


def _ignore(
    state: SessionState, event: Event, reason: str
) -> tuple[SessionState, tuple[Command, ...]]:
    return state, (_log(state, event, "ignore", {"reason": reason}),)


def _enter_error(
    state: SessionState,
    event: Event,
    kind: ErrorKind,
    message: str,
) -> tuple[SessionState, tuple[Command, ...]]:
    new_state = replace(
        state,
        state=State.ERROR,
        listening=False,
        engine_starting=False,
        current_transcript=None,
        error=message,
        error_kind=kind,
    )
    return new_state, _logs_last(
        _state_changed(state, new_state, event, "enter_error")
        + (_log(new_state, event, "enter_error", {
            "kind": kind.value,
            "reason": message,
        }),)
    )


def _apply_stop(
    state: SessionState,
    event: Event,
    source: str,
) -> tuple[SessionState, tuple[Command, ...]]:
    """
    Stop transition shared by explicit stop, the stop intent and the
    stop-after-command policy.

    Order of fields mirrors the contract: intent flag, welcome flag,
    listening, transcript. The runtime commits this state before
    StopEngine executes.
    """
    engine_active = state.listening or state.engine_starting
    timers_pending = state.state is State.RESTARTING or (
        state.should_keep_alive and not state.has_given_welcome
    )

    new_state = replace(
        state,
        should_keep_alive=False,
        has_given_welcome=False,
        listening=False,
        current_transcript=None,
        state=State.IDLE,
        restart_attempt=reset_attempt(),
    )

    if not engine_active and not state.should_keep_alive:
        return new_state, _logs_last(
            _state_changed(state, new_state, event, source)
            + (_log(new_state, event, "already_stopped", {"source": source}),)
        )

    cmds: list[Command] = []
    if engine_active:
        cmds.append(StopEngine())
    if source == "user_stop":
        cmds.append(CancelSpeech())
    if timers_pending:
        cmds.append(CancelTimer(timer_id=TIMER_RESTART))
        cmds.append(CancelTimer(timer_id=TIMER_WELCOME))

    cmds.append(_log(new_state, event, "stop", {
        "source": source,
        "engine_active": engine_active,
    }))

    return new_state, _logs_last(
        tuple(cmds) + _state_changed(state, new_state, event, source)
    )


def _clamp_confidence(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


# =============================================================================
# Reducer entrypoint
# =============================================================================

def reduce(
    state: SessionState, event: Event
) -> tuple[SessionState, tuple[Command, ...]]:
    """
    Pure reducer for the voice navigation session state machine.

    Given the current session state and a single event, returns:
    - the next state
    - a tuple of commands describing required side effects

    Properties:
    - Deterministic: no IO, clocks, or randomness
    - Total: every (state, event) pair is handled or explicitly ignored
    """
    # ------------------------------------------------------------------
    # Session lifecycle (log only)
    # ------------------------------------------------------------------
    if isinstance(event, SessionStarted):
        return state, (
            _log(state, event, "session_started", {"session_id": event.session_id}),
        )

    if isinstance(event, SessionEnded):
        return state, (
            _log(state, event, "session_ended", {"session_id": event.session_id}),
        )

    if isinstance(event, EngineInitialized):
        if state.support_reported:
            return _ignore(state, event, "engine_already_initialized")
        new_state = replace(
            state,
            supported=event.supported,
            support_reported=True,
        )
        return new_state, (
            _log(new_state, event, "engine_initialized", {"supported": event.supported}),
        )

    # ------------------------------------------------------------------
    # User control
    # ------------------------------------------------------------------
    if isinstance(event, StartRequested):
        return _on_start_requested(state, event)

    if isinstance(event, StopRequested):
        return _apply_stop(state, event, "user_stop")

    # ------------------------------------------------------------------
    # Engine lifecycle
    # ------------------------------------------------------------------
    if isinstance(event, EngineStarted):
        return _on_engine_started(state, event)

    if isinstance(event, EngineStartFailed):
        return _on_engine_start_failed(state, event)

    if isinstance(event, EngineStopFailed):
        message = ERROR_STOP_FAILED_FORMAT.format(reason=event.reason)
        new_state = replace(
            state,
            error=message,
            error_kind=ErrorKind.STOP_FAILURE,
        )
        return new_state, (
            _log(new_state, event, "stop_failed", {"reason": event.reason}),
        )

    if isinstance(event, EngineEnd):
        return _on_engine_end(state, event)

    if isinstance(event, EngineError):
        message = ERROR_ENGINE_FORMAT.format(code=event.code)
        if not (state.listening or state.engine_starting or state.should_keep_alive):
            # Nothing running or wanted; record the error without a transition
            new_state = replace(
                state,
                current_transcript=None,
                error=message,
                error_kind=ErrorKind.RUNTIME_ERROR,
            )
            return new_state, (
                _log(new_state, event, "engine_error_while_stopped", {"code": event.code}),
            )
        return _enter_error(
            state,
            event,
            ErrorKind.RUNTIME_ERROR,
            message,
        )

    # ------------------------------------------------------------------
    # Recognition results
    # ------------------------------------------------------------------
    if isinstance(event, InterimTranscript):
        if not state.listening:
            return _ignore(state, event, "interim_while_not_listening")

        text = event.text.strip()
        if not text:
            return _ignore(state, event, "blank_interim")

        new_state = replace(state, current_transcript=text)
        return new_state, (
            _log(new_state, event, "interim_transcript", {"chars": len(text)}),
        )

    if isinstance(event, FinalTranscript):
        return _on_final_transcript(state, event)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------
    if isinstance(event, RestartDue):
        return _on_restart_due(state, event)

    if isinstance(event, WelcomeDue):
        if not state.listening or not state.should_keep_alive:
            return _ignore(state, event, "welcome_not_listening")
        if state.has_given_welcome:
            return _ignore(state, event, "welcome_already_given")

        new_state = replace(state, has_given_welcome=True)
        return new_state, (
            Speak(text=WELCOME_MESSAGE),
            _log(new_state, event, "welcome_spoken"),
        )

    return _ignore(state, event, "unhandled_event")


# =============================================================================
# Transition handlers
# =============================================================================

def _on_start_requested(
    state: SessionState, event: StartRequested
) -> tuple[SessionState, tuple[Command, ...]]:
    if not state.supported:
        return _enter_error(state, event, ErrorKind.UNSUPPORTED, ERROR_UNSUPPORTED)

    # Explicit start is the only way out of ERROR
    new_state = replace(
        state,
        should_keep_alive=True,
        error=None,
        error_kind=None,
        restart_attempt=reset_attempt(),
        state=State.LISTENING if state.listening else State.IDLE,
    )

    cmds: list[Command] = []

    if state.listening or state.engine_starting:
        cmds.append(_log(new_state, event, "start_already_active"))
    else:
        new_state = replace(new_state, engine_starting=True)
        cmds.append(CancelTimer(timer_id=TIMER_RESTART))
        cmds.append(StartEngine(source=StartSource.USER))
        cmds.append(_log(new_state, event, "start_engine", {
            "source": StartSource.USER.value,
        }))

    if not state.has_given_welcome:
        cmds.append(
            StartTimer(
                timer_id=TIMER_WELCOME,
                duration_ms=WELCOME_DELAY_MS,
                timeout_event_type=EventType.WELCOME_DUE,
            )
        )

    return new_state, _logs_last(
        tuple(cmds) + _state_changed(state, new_state, event, "start_requested")
    )


def _on_engine_started(
    state: SessionState, event: EngineStarted
) -> tuple[SessionState, tuple[Command, ...]]:
    if not state.should_keep_alive:
        # Stopped while the start was in flight
        new_state = replace(state, engine_starting=False, listening=False)
        return new_state, (
            StopEngine(),
            _log(new_state, event, "stop_late_engine_start"),
        )

    new_state = replace(
        state,
        listening=True,
        engine_starting=False,
        error=None,
        error_kind=None,
        restart_attempt=reset_attempt(),
        state=State.LISTENING,
    )
    return new_state, _logs_last(
        (_log(new_state, event, "engine_started"),)
        + _state_changed(state, new_state, event, "engine_started")
    )


def _on_engine_start_failed(
    state: SessionState, event: EngineStartFailed
) -> tuple[SessionState, tuple[Command, ...]]:
    base = replace(state, engine_starting=False, listening=False)

    if event.source is StartSource.USER:
        return _enter_error(
            base,
            event,
            ErrorKind.START_FAILURE,
            ERROR_START_FAILED_FORMAT.format(reason=event.reason),
        )

    if not base.should_keep_alive:
        new_state = replace(base, state=State.IDLE)
        return new_state, _logs_last(
            (_log(new_state, event, "restart_failed_after_stop", {
                "reason": event.reason,
            }),)
            + _state_changed(state, new_state, event, "restart_failed")
        )

    if should_retry(base.restart_attempt):
        attempt = next_attempt(base.restart_attempt)
        delay_ms = get_restart_delay_ms(attempt)
        new_state = replace(base, restart_attempt=attempt, state=State.RESTARTING)
        return new_state, _logs_last((
            StartTimer(
                timer_id=TIMER_RESTART,
                duration_ms=delay_ms,
                timeout_event_type=EventType.RESTART_DUE,
            ),
            _log(new_state, event, "schedule_restart_retry", {
                "attempt": attempt.attempt,
                "delay_ms": delay_ms,
                "reason": event.reason,
            }),
        ) + _state_changed(state, new_state, event, "restart_retry"))

    # Abandon: surfaced as an error, reported state stays IDLE
    new_state = replace(
        base,
        should_keep_alive=False,
        state=State.IDLE,
        error=ERROR_RESTART_FAILED_FORMAT.format(reason=event.reason),
        error_kind=ErrorKind.RESTART_FAILURE,
        restart_attempt=reset_attempt(),
    )
    return new_state, _logs_last(
        (_log(new_state, event, "restart_abandoned", {"reason": event.reason}),)
        + _state_changed(state, new_state, event, "restart_abandoned")
    )


def _on_engine_end(
    state: SessionState, event: EngineEnd
) -> tuple[SessionState, tuple[Command, ...]]:
    ended = replace(
        state,
        listening=False,
        current_transcript=None,
        engine_starting=False,
    )

    if ended.should_keep_alive and ended.error is None:
        delay_ms = get_restart_delay_ms(ended.restart_attempt)
        new_state = replace(ended, state=State.RESTARTING)
        return new_state, _logs_last((
            StartTimer(
                timer_id=TIMER_RESTART,
                duration_ms=delay_ms,
                timeout_event_type=EventType.RESTART_DUE,
            ),
            _log(new_state, event, "schedule_restart", {"delay_ms": delay_ms}),
        ) + _state_changed(state, new_state, event, "engine_end"))

    new_state = replace(
        ended,
        state=State.ERROR if ended.state is State.ERROR else State.IDLE,
    )
    return new_state, _logs_last(
        (_log(new_state, event, "engine_ended", {
            "restart": False,
            "error": ended.error,
        }),)
        + _state_changed(state, new_state, event, "engine_end")
    )


def _on_restart_due(
    state: SessionState, event: RestartDue
) -> tuple[SessionState, tuple[Command, ...]]:
    if not state.should_keep_alive:
        return _ignore(state, event, "restart_keep_alive_cleared")
    if state.error is not None:
        return _ignore(state, event, "restart_blocked_by_error")
    if state.listening or state.engine_starting:
        return _ignore(state, event, "restart_already_active")

    new_state = replace(state, engine_starting=True)
    return new_state, (
        StartEngine(source=StartSource.RESTART),
        _log(new_state, event, "start_engine", {
            "source": StartSource.RESTART.value,
            "attempt": state.restart_attempt.attempt,
        }),
    )


def _on_final_transcript(
    state: SessionState, event: FinalTranscript
) -> tuple[SessionState, tuple[Command, ...]]:
    if not state.listening:
        return _ignore(state, event, "final_while_not_listening")

    text = event.text.strip()
    if not text:
        new_state = replace(state, current_transcript=None)
        return new_state, (_log(new_state, event, "ignore", {"reason": "blank_final"}),)

    intent = classify(text)
    confidence = _clamp_confidence(event.confidence)

    if intent is Intent.UNRECOGNIZED:
        command = VoiceCommand(
            text=UNRECOGNIZED_COMMAND_FORMAT.format(text=text),
            confidence=confidence,
            ts_ms=event.ts_ms,
            intent=intent,
        )
    else:
        command = VoiceCommand(
            text=text,
            confidence=confidence,
            ts_ms=event.ts_ms,
            intent=intent,
        )

    new_state = replace(state, current_transcript=None, last_command=command)
    classified = _log(new_state, event, "intent_classified", {
        "intent": intent.value,
        "confidence": confidence,
    })
    dispatch = DispatchIntent(intent=intent, transcript=text)

    if intent is Intent.STOP:
        stopped, stop_cmds = _apply_stop(new_state, event, "stop_intent")
        return stopped, _logs_last(stop_cmds + (dispatch, classified))

    if intent is not Intent.UNRECOGNIZED and not state.keep_listening_after_command:
        stopped, stop_cmds = _apply_stop(new_state, event, "command_completed")
        return stopped, _logs_last((dispatch,) + stop_cmds + (classified,))

    return new_state, (dispatch, classified)
