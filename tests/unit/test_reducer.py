# pylint: disable=missing-module-docstring,missing-function-docstring

from dataclasses import replace

from constants import (
    ERROR_UNSUPPORTED,
    RESTART_BACKOFF_MS,
    RESTART_RETRY_BACKOFF_MS,
    WELCOME_DELAY_MS,
    WELCOME_MESSAGE,
)
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
    StartRequested,
    StopRequested,
    WelcomeDue,
)
from orchestrator.reducer import TIMER_RESTART, TIMER_WELCOME, reduce
from orchestrator.retry import RetryAttempt
from orchestrator.state_dataclass import SessionState


# ---------------------------------------------------------------------
# Event factories
# ---------------------------------------------------------------------

def start() -> StartRequested:
    return StartRequested(event_type=EventType.START_REQUESTED, ts_ms=0)


def stop() -> StopRequested:
    return StopRequested(event_type=EventType.STOP_REQUESTED, ts_ms=0)


def engine_started() -> EngineStarted:
    return EngineStarted(event_type=EventType.ENGINE_STARTED, ts_ms=0)


def engine_end() -> EngineEnd:
    return EngineEnd(event_type=EventType.ENGINE_END, ts_ms=0)


def engine_error(code: str = "network") -> EngineError:
    return EngineError(event_type=EventType.ENGINE_ERROR, ts_ms=0, code=code)


def start_failed(reason: str, source: StartSource) -> EngineStartFailed:
    return EngineStartFailed(
        event_type=EventType.ENGINE_START_FAILED,
        ts_ms=0,
        reason=reason,
        source=source,
    )


def interim(text: str) -> InterimTranscript:
    return InterimTranscript(event_type=EventType.INTERIM_TRANSCRIPT, ts_ms=0, text=text)


def final(text: str, confidence: float = 0.9, ts_ms: int = 1_000) -> FinalTranscript:
    return FinalTranscript(
        event_type=EventType.FINAL_TRANSCRIPT,
        ts_ms=ts_ms,
        text=text,
        confidence=confidence,
    )


def restart_due() -> RestartDue:
    return RestartDue(event_type=EventType.RESTART_DUE, ts_ms=0)


def welcome_due() -> WelcomeDue:
    return WelcomeDue(event_type=EventType.WELCOME_DUE, ts_ms=0)


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def listening_state(**overrides: object) -> SessionState:
    base = SessionState(
        state=State.LISTENING,
        listening=True,
        should_keep_alive=True,
        has_given_welcome=True,
    )
    return replace(base, **overrides)  # type: ignore[arg-type]


def decisions(commands: tuple[Command, ...]) -> list[str]:
    return [c.event["decision"] for c in commands if isinstance(c, LogEvent)]


def effects(commands: tuple[Command, ...]) -> list[Command]:
    return [c for c in commands if not isinstance(c, LogEvent)]


def run(state: SessionState, *events: Event) -> tuple[SessionState, tuple[Command, ...]]:
    commands: tuple[Command, ...] = ()
    for event in events:
        state, commands = reduce(state, event)
    return state, commands


# ---------------------------------------------------------------------
# Start
# ---------------------------------------------------------------------

def test_start_from_idle_requests_engine_and_schedules_welcome() -> None:
    new_state, cmds = reduce(SessionState(), start())

    assert new_state.should_keep_alive is True
    assert new_state.engine_starting is True
    assert new_state.listening is False
    assert new_state.state is State.IDLE

    assert effects(cmds) == [
        CancelTimer(timer_id=TIMER_RESTART),
        StartEngine(source=StartSource.USER),
        StartTimer(
            timer_id=TIMER_WELCOME,
            duration_ms=WELCOME_DELAY_MS,
            timeout_event_type=EventType.WELCOME_DUE,
        ),
    ]


def test_engine_started_enters_listening() -> None:
    new_state, cmds = run(SessionState(), start(), engine_started())

    assert new_state.state is State.LISTENING
    assert new_state.listening is True
    assert new_state.engine_starting is False
    assert decisions(cmds)[-1] == "state_changed"


def test_start_while_listening_does_not_restart_engine() -> None:
    new_state, cmds = reduce(listening_state(), start())

    assert not any(isinstance(c, StartEngine) for c in cmds)
    assert "start_already_active" in decisions(cmds)
    assert new_state.state is State.LISTENING


def test_start_while_start_pending_does_not_restart_engine() -> None:
    pending, _ = reduce(SessionState(), start())
    _, cmds = reduce(pending, start())

    assert not any(isinstance(c, StartEngine) for c in cmds)


def test_start_unsupported_enters_error_without_engine() -> None:
    initialized, _ = reduce(
        SessionState(),
        EngineInitialized(event_type=EventType.ENGINE_INITIALIZED, ts_ms=0, supported=False),
    )
    new_state, cmds = reduce(initialized, start())

    assert new_state.state is State.ERROR
    assert new_state.error == ERROR_UNSUPPORTED
    assert new_state.error_kind is ErrorKind.UNSUPPORTED
    assert new_state.listening is False
    assert effects(cmds) == []


def test_first_engine_report_fixes_support_for_the_session() -> None:
    unsupported, _ = reduce(
        SessionState(),
        EngineInitialized(event_type=EventType.ENGINE_INITIALIZED, ts_ms=0, supported=False),
    )
    again, cmds = reduce(
        unsupported,
        EngineInitialized(event_type=EventType.ENGINE_INITIALIZED, ts_ms=5, supported=True),
    )

    assert again is unsupported
    assert again.supported is False
    assert decisions(cmds) == ["ignore"]


def test_engine_report_while_listening_is_ignored() -> None:
    state = listening_state(support_reported=True)

    new_state, cmds = reduce(
        state,
        EngineInitialized(event_type=EventType.ENGINE_INITIALIZED, ts_ms=5, supported=False),
    )

    assert new_state.supported is True
    assert new_state.state is State.LISTENING
    assert effects(cmds) == []


def test_user_start_failure_enters_error() -> None:
    new_state, _ = run(
        SessionState(),
        start(),
        start_failed("recognition has already started", StartSource.USER),
    )

    assert new_state.state is State.ERROR
    assert new_state.error_kind is ErrorKind.START_FAILURE
    assert new_state.error == (
        "Failed to start voice recognition: recognition has already started"
    )
    assert new_state.engine_starting is False


def test_explicit_start_clears_error() -> None:
    errored, _ = run(SessionState(), start(), engine_started(), engine_error())
    assert errored.state is State.ERROR

    new_state, cmds = reduce(errored, start())

    assert new_state.error is None
    assert new_state.error_kind is None
    assert new_state.state is State.IDLE
    assert StartEngine(source=StartSource.USER) in cmds


# ---------------------------------------------------------------------
# Stop
# ---------------------------------------------------------------------

def test_stop_while_listening() -> None:
    new_state, cmds = reduce(listening_state(current_transcript="vit"), stop())

    assert new_state.state is State.IDLE
    assert new_state.listening is False
    assert new_state.should_keep_alive is False
    assert new_state.has_given_welcome is False
    assert new_state.current_transcript is None
    assert effects(cmds) == [StopEngine(), CancelSpeech()]


def test_stop_when_idle_is_idempotent() -> None:
    idle = SessionState()

    once, cmds_once = reduce(idle, stop())
    twice, cmds_twice = reduce(once, stop())

    assert once == idle
    assert twice == idle
    assert effects(cmds_once) == []
    assert effects(cmds_twice) == []
    assert decisions(cmds_twice) == ["already_stopped"]


def test_stop_while_restarting_cancels_pending_timers() -> None:
    restarting, _ = reduce(listening_state(), engine_end())
    new_state, cmds = reduce(restarting, stop())

    assert new_state.state is State.IDLE
    assert StopEngine() not in cmds
    assert CancelTimer(timer_id=TIMER_RESTART) in cmds
    assert CancelTimer(timer_id=TIMER_WELCOME) in cmds


def test_stop_before_welcome_cancels_welcome_timer() -> None:
    pending, _ = run(SessionState(), start(), engine_started())
    _, cmds = reduce(pending, stop())

    assert CancelTimer(timer_id=TIMER_WELCOME) in cmds


def test_late_engine_start_after_stop_is_stopped() -> None:
    pending, _ = reduce(SessionState(), start())
    stopped, _ = reduce(pending, stop())

    new_state, cmds = reduce(stopped, engine_started())

    assert new_state.listening is False
    assert new_state.state is State.IDLE
    assert effects(cmds) == [StopEngine()]


def test_stop_failure_is_recorded_without_state_change() -> None:
    new_state, _ = reduce(
        listening_state(),
        EngineStopFailed(event_type=EventType.ENGINE_STOP_FAILED, ts_ms=0, reason="boom"),
    )

    assert new_state.state is State.LISTENING
    assert new_state.error_kind is ErrorKind.STOP_FAILURE
    assert new_state.error == "Failed to stop voice recognition: boom"


# ---------------------------------------------------------------------
# Auto-restart
# ---------------------------------------------------------------------

def test_engine_end_with_keep_alive_schedules_exactly_one_restart() -> None:
    new_state, cmds = reduce(listening_state(current_transcript="cla"), engine_end())

    timers = [c for c in cmds if isinstance(c, StartTimer)]
    assert timers == [
        StartTimer(
            timer_id=TIMER_RESTART,
            duration_ms=RESTART_BACKOFF_MS,
            timeout_event_type=EventType.RESTART_DUE,
        )
    ]
    assert new_state.state is State.RESTARTING
    assert new_state.listening is False
    assert new_state.current_transcript is None


def test_restart_due_starts_engine_then_listening_resumes() -> None:
    restarting, _ = reduce(listening_state(), engine_end())

    starting, cmds = reduce(restarting, restart_due())
    assert effects(cmds) == [StartEngine(source=StartSource.RESTART)]
    assert starting.engine_starting is True

    resumed, _ = reduce(starting, engine_started())
    assert resumed.state is State.LISTENING
    assert resumed.listening is True


def test_restart_due_after_stop_is_ignored() -> None:
    restarting, _ = reduce(listening_state(), engine_end())
    stopped, _ = reduce(restarting, stop())

    new_state, cmds = reduce(stopped, restart_due())

    assert new_state == stopped
    assert effects(cmds) == []
    assert decisions(cmds) == ["ignore"]


def test_engine_end_without_keep_alive_goes_idle() -> None:
    new_state, cmds = reduce(listening_state(should_keep_alive=False), engine_end())

    assert new_state.state is State.IDLE
    assert not any(isinstance(c, StartTimer) for c in cmds)


def test_restart_failure_retries_once_then_abandons() -> None:
    restarting, _ = reduce(listening_state(), engine_end())
    starting, _ = reduce(restarting, restart_due())

    retrying, cmds = reduce(starting, start_failed("busy", StartSource.RESTART))
    assert retrying.state is State.RESTARTING
    assert retrying.restart_attempt == RetryAttempt(attempt=1)
    assert StartTimer(
        timer_id=TIMER_RESTART,
        duration_ms=RESTART_RETRY_BACKOFF_MS,
        timeout_event_type=EventType.RESTART_DUE,
    ) in cmds

    starting_again, _ = reduce(retrying, restart_due())
    abandoned, cmds = reduce(starting_again, start_failed("busy", StartSource.RESTART))

    assert abandoned.state is State.IDLE
    assert abandoned.should_keep_alive is False
    assert abandoned.error_kind is ErrorKind.RESTART_FAILURE
    assert abandoned.error == "Voice recognition could not be restarted: busy"
    assert not any(isinstance(c, StartTimer) for c in cmds)


def test_successful_restart_resets_retry_budget() -> None:
    restarting, _ = reduce(listening_state(), engine_end())
    starting, _ = reduce(restarting, restart_due())
    retrying, _ = reduce(starting, start_failed("busy", StartSource.RESTART))
    starting_again, _ = reduce(retrying, restart_due())

    resumed, _ = reduce(starting_again, engine_started())

    assert resumed.restart_attempt == RetryAttempt(attempt=0)


# ---------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------

def test_engine_error_enters_error_and_blocks_restart() -> None:
    errored, _ = reduce(listening_state(current_transcript="go"), engine_error("network"))

    assert errored.state is State.ERROR
    assert errored.error == "Speech recognition error: network"
    assert errored.error_kind is ErrorKind.RUNTIME_ERROR
    assert errored.listening is False
    assert errored.current_transcript is None

    ended, cmds = reduce(errored, engine_end())
    assert ended.state is State.ERROR
    assert not any(isinstance(c, StartTimer) for c in cmds)


def test_engine_error_after_stop_is_recorded_without_leaving_idle() -> None:
    stopped, _ = run(listening_state(), stop(), engine_end())
    assert stopped.state is State.IDLE

    new_state, cmds = reduce(stopped, engine_error("aborted"))

    assert new_state.state is State.IDLE
    assert new_state.error == "Speech recognition error: aborted"
    assert new_state.error_kind is ErrorKind.RUNTIME_ERROR
    assert effects(cmds) == []
    assert decisions(cmds) == ["engine_error_while_stopped"]

    ended, _ = reduce(new_state, engine_end())
    assert ended.state is State.IDLE

    # A later start clears it as usual
    restarted, _ = reduce(new_state, start())
    assert restarted.error is None
    assert restarted.engine_starting is True


def test_engine_error_while_restarting_enters_error() -> None:
    restarting, _ = run(listening_state(), engine_end())
    assert restarting.state is State.RESTARTING

    errored, _ = reduce(restarting, engine_error())

    assert errored.state is State.ERROR


# ---------------------------------------------------------------------
# Transcripts
# ---------------------------------------------------------------------

def test_interim_updates_live_transcript() -> None:
    new_state, _ = reduce(listening_state(), interim("  show me my  "))
    assert new_state.current_transcript == "show me my"


def test_interim_while_not_listening_is_ignored() -> None:
    new_state, cmds = reduce(SessionState(), interim("vitals"))

    assert new_state.current_transcript is None
    assert decisions(cmds) == ["ignore"]


def test_final_after_stop_is_ignored() -> None:
    stopped, _ = reduce(listening_state(), stop())
    new_state, cmds = reduce(stopped, final("show me my vitals"))

    assert new_state.last_command is None
    assert effects(cmds) == []


def test_blank_final_clears_transcript_without_dispatch() -> None:
    new_state, cmds = reduce(listening_state(current_transcript="um"), final("   "))

    assert new_state.current_transcript is None
    assert new_state.last_command is None
    assert effects(cmds) == []


def test_vitals_command_dispatches_and_keeps_listening() -> None:
    new_state, cmds = reduce(
        listening_state(current_transcript="show me my"),
        final("Show me my vitals", confidence=0.92, ts_ms=42),
    )

    assert effects(cmds) == [
        DispatchIntent(intent=Intent.VITALS, transcript="Show me my vitals")
    ]
    assert new_state.state is State.LISTENING
    assert new_state.listening is True
    assert new_state.current_transcript is None

    command = new_state.last_command
    assert command is not None
    assert command.text == "Show me my vitals"
    assert command.intent is Intent.VITALS
    assert command.confidence == 0.92
    assert command.ts_ms == 42


def test_stop_intent_ends_session_and_dispatches_stop() -> None:
    new_state, cmds = reduce(listening_state(), final("stop listening"))

    assert new_state.state is State.IDLE
    assert new_state.listening is False
    assert new_state.should_keep_alive is False
    assert new_state.last_command is not None
    assert new_state.last_command.intent is Intent.STOP

    assert effects(cmds) == [
        StopEngine(),
        DispatchIntent(intent=Intent.STOP, transcript="stop listening"),
    ]


def test_unrecognized_command_records_fallback_text() -> None:
    new_state, cmds = reduce(listening_state(), final("play some music"))

    assert effects(cmds) == [
        DispatchIntent(intent=Intent.UNRECOGNIZED, transcript="play some music")
    ]
    assert new_state.last_command is not None
    assert new_state.last_command.text == 'Unrecognized: "play some music"'
    assert new_state.last_command.intent is Intent.UNRECOGNIZED
    assert new_state.state is State.LISTENING


def test_confidence_is_clamped() -> None:
    new_state, _ = reduce(listening_state(), final("claims", confidence=1.7))
    assert new_state.last_command is not None
    assert new_state.last_command.confidence == 1.0


def test_stop_after_command_policy() -> None:
    state = listening_state(keep_listening_after_command=False)

    new_state, cmds = reduce(state, final("open my claims"))

    assert effects(cmds) == [
        DispatchIntent(intent=Intent.CLAIMS, transcript="open my claims"),
        StopEngine(),
    ]
    assert new_state.state is State.IDLE
    assert new_state.should_keep_alive is False


def test_stop_after_command_policy_keeps_listening_on_unrecognized() -> None:
    state = listening_state(keep_listening_after_command=False)

    new_state, _ = reduce(state, final("play some music"))

    assert new_state.state is State.LISTENING
    assert new_state.should_keep_alive is True


def test_transcript_never_set_while_not_listening() -> None:
    state = SessionState()
    sequence = (
        interim("early"),
        start(),
        interim("too soon"),
        engine_started(),
        interim("show me"),
        engine_end(),
        interim("between passes"),
        restart_due(),
        interim("still starting"),
        engine_started(),
        interim("open my"),
        final("open my claims"),
        interim("go"),
        engine_error(),
        interim("after error"),
        start(),
        engine_started(),
        interim("stop"),
        stop(),
        interim("after stop"),
    )

    for event in sequence:
        state, _ = reduce(state, event)
        if not state.listening:
            assert state.current_transcript is None, event


# ---------------------------------------------------------------------
# Welcome
# ---------------------------------------------------------------------

def test_welcome_spoken_once_per_session() -> None:
    state = listening_state(has_given_welcome=False)

    greeted, cmds = reduce(state, welcome_due())
    assert effects(cmds) == [Speak(text=WELCOME_MESSAGE)]
    assert greeted.has_given_welcome is True

    _, cmds = reduce(greeted, welcome_due())
    assert effects(cmds) == []


def test_welcome_skipped_when_not_listening() -> None:
    pending, _ = reduce(SessionState(), start())
    new_state, cmds = reduce(pending, welcome_due())

    assert new_state.has_given_welcome is False
    assert effects(cmds) == []


def test_restart_does_not_repeat_welcome() -> None:
    restarting, _ = reduce(listening_state(), engine_end())
    starting, cmds = reduce(restarting, restart_due())

    assert not any(isinstance(c, StartTimer) for c in cmds)
    assert starting.has_given_welcome is True
