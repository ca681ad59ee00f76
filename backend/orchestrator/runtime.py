"""
Runtime execution shell for a single voice session.

Responsibilities:
- Own session state
- Call pure reducer
- Publish state snapshots to subscribers
- Execute commands with side effects (engine, speech, dispatch, timers)
- Convert engine refusals and timer expiry into events
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any, Callable

from observability.logger import is_debug_enabled, log_event
from observability.metrics import timed
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
from orchestrator.enums.start_source import StartSource
from orchestrator.events import (
    EngineStartFailed,
    EngineStopFailed,
    Event,
    EventType,
    RestartDue,
    StartRequested,
    StopRequested,
    WelcomeDue,
)
from orchestrator.reducer import reduce
from orchestrator.runtime_context import SpeechEngineError
from orchestrator.snapshot import public_snapshot
from orchestrator.state_dataclass import SessionState

if TYPE_CHECKING:
    from orchestrator.runtime_context import RuntimeExecutionContext


Listener = Callable[[dict[str, Any]], None]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class Runtime:
    """
    Runtime execution boundary for a single voice session.

    Responsibilities:
    - Own the authoritative session state
    - Act as the universal event sink for the session
      (gateway events, engine events, timer events)
    - Invoke the pure reducer deterministically
    - Publish each committed state to subscribers
    - Execute emitted commands with side effects

    Guarantees:
    - Reducer is always called exactly once per incoming event
    - State transitions are serialized by the event loop
    - Subscribers see the new state *before* any side effect runs
    - Runtime never performs orchestration logic itself
    - Timers emit events back into handle_event (single entry point)
    """

    def __init__(
        self,
        *,
        initial_state: SessionState,
        context: RuntimeExecutionContext,
    ) -> None:
        self._state = initial_state
        self._ctx = context
        self._timers: dict[str, asyncio.Task[None]] = {}
        self._listeners: list[Listener] = []

    @property
    def state(self) -> SessionState:
        """
        Return the current immutable session state.

        The returned object must be treated as read-only. State is only
        replaced internally by Runtime via the reducer.
        """
        return self._state

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a snapshot listener and return its unsubscribe function.

        The listener is called once immediately with the current snapshot,
        then after every transition that changes the public snapshot.
        """
        self._listeners.append(listener)
        listener(public_snapshot(self._state))

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, prev: SessionState) -> None:
        snapshot = public_snapshot(self._state)
        if snapshot == public_snapshot(prev):
            return
        for listener in tuple(self._listeners):
            listener(snapshot)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Begin (or resume) voice control. Never raises engine errors."""
        await self.handle_event(
            StartRequested(event_type=EventType.START_REQUESTED, ts_ms=_now_ms())
        )

    async def stop(self) -> None:
        """End voice control. Idempotent."""
        await self.handle_event(
            StopRequested(event_type=EventType.STOP_REQUESTED, ts_ms=_now_ms())
        )

    async def handle_event(self, event: Event) -> None:
        """
        Process a single event through the orchestration pipeline.

        Processing steps:
        1. Pass the current state and event to the pure reducer
        2. Swap in the new session state
        3. Publish the snapshot to subscribers
        4. Execute all emitted commands sequentially

        This method is the *only* entry point for events affecting
        session state.
        """
        prev = self._state
        new_state, commands = reduce(prev, event)
        self._state = new_state
        self._publish(prev)

        for cmd in commands:
            await self._execute_command(cmd)

    async def shutdown(self) -> None:
        """
        Clean shutdown of runtime.

        Cancels all in-flight timers and waits for them to finish.
        Called by gateway on session disconnect.
        """
        tasks = tuple(self._timers.values())
        for timer_id in list(self._timers.keys()):
            self._cancel_timer(timer_id)

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._listeners.clear()

    # ------------------------------------------------------------------
    # Command execution (side effects)
    # ------------------------------------------------------------------

    async def _execute_command(self, cmd: Command) -> None:
        """Execute a single command with side effects."""

        if isinstance(cmd, LogEvent):
            if cmd.event.get("decision") == "ignore" and not is_debug_enabled():
                return
            log_event({
                **cmd.event,
                "session_id": self._ctx.session_id,
                "connection_status": self._ctx.connection_status.value,
            })

        elif isinstance(cmd, StartEngine):
            await self._start_engine(cmd.source)

        elif isinstance(cmd, StopEngine):
            await self._stop_engine()

        elif isinstance(cmd, Speak):
            synthesis = self._ctx.speech_synthesis
            assert synthesis is not None, "Speech synthesis missing"
            synthesis.speak(cmd.text, self._ctx.speech_options)

        elif isinstance(cmd, CancelSpeech):
            synthesis = self._ctx.speech_synthesis
            assert synthesis is not None, "Speech synthesis missing"
            synthesis.cancel()

        elif isinstance(cmd, DispatchIntent):
            dispatcher = self._ctx.dispatcher
            assert dispatcher is not None, "Intent dispatcher missing"

            with timed(
                "intent_dispatch_ms",
                session_id=self._ctx.session_id,
                state=self._state.state.value,
                details={"intent": cmd.intent.value},
            ):
                action = dispatcher.dispatch(cmd.intent, cmd.transcript)

            log_event({
                "ts_ms": _now_ms(),
                "event_type": "DISPATCH_EXECUTED",
                "session_id": self._ctx.session_id,
                "intent": cmd.intent.value,
                "action": action.kind.value,
                "panel": action.panel,
                "popup": action.popup.value if action.popup else None,
            })

        elif isinstance(cmd, StartTimer):
            self._start_timer(
                timer_id=cmd.timer_id,
                duration_ms=cmd.duration_ms,
                timeout_event_type=cmd.timeout_event_type,
            )

        elif isinstance(cmd, CancelTimer):
            self._cancel_timer(cmd.timer_id)

        else:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "COMMAND_NOT_IMPLEMENTED",
                "session_id": self._ctx.session_id,
                "command_type": type(cmd).__name__,
            })

    async def _start_engine(self, source: StartSource) -> None:
        engine = self._ctx.speech_engine
        assert engine is not None, "Speech engine missing"

        try:
            engine.start()
        except SpeechEngineError as exc:
            await self.handle_event(
                EngineStartFailed(
                    event_type=EventType.ENGINE_START_FAILED,
                    ts_ms=_now_ms(),
                    reason=str(exc) or type(exc).__name__,
                    source=source,
                )
            )
            return

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "ENGINE_START_EXECUTED",
            "session_id": self._ctx.session_id,
            "source": source.value,
        })

    async def _stop_engine(self) -> None:
        engine = self._ctx.speech_engine
        assert engine is not None, "Speech engine missing"

        try:
            engine.stop()
        except SpeechEngineError as exc:
            await self.handle_event(
                EngineStopFailed(
                    event_type=EventType.ENGINE_STOP_FAILED,
                    ts_ms=_now_ms(),
                    reason=str(exc) or type(exc).__name__,
                )
            )
            return

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "ENGINE_STOP_EXECUTED",
            "session_id": self._ctx.session_id,
        })

    # ------------------------------------------------------------------
    # Timer management
    # ------------------------------------------------------------------

    def _start_timer(
        self,
        *,
        timer_id: str,
        duration_ms: int,
        timeout_event_type: EventType,
    ) -> None:
        """
        Start or replace a timer that emits a timeout event.

        Timer tasks re-enter handle_event() when they expire,
        maintaining the single event entry point invariant.
        """
        self._cancel_timer(timer_id)

        async def _timer_task() -> None:
            try:
                await asyncio.sleep(duration_ms / 1000.0)
            except asyncio.CancelledError:
                return

            # Expired: this task no longer counts as pending
            if self._timers.get(timer_id) is asyncio.current_task():
                del self._timers[timer_id]

            await self.handle_event(self._construct_timeout_event(timeout_event_type))

        self._timers[timer_id] = asyncio.create_task(_timer_task())

    def _cancel_timer(self, timer_id: str) -> None:
        """
        Cancel an in-flight timer if it exists.

        Idempotent: safe to call even if timer doesn't exist.
        """
        task = self._timers.pop(timer_id, None)
        if task is not None and not task.done():
            task.cancel()

    def pending_timers(self) -> tuple[str, ...]:
        return tuple(self._timers)

    @staticmethod
    def _construct_timeout_event(timeout_event_type: EventType) -> Event:
        ts = _now_ms()

        if timeout_event_type is EventType.RESTART_DUE:
            return RestartDue(event_type=EventType.RESTART_DUE, ts_ms=ts)

        if timeout_event_type is EventType.WELCOME_DUE:
            return WelcomeDue(event_type=EventType.WELCOME_DUE, ts_ms=ts)

        raise ValueError(f"Unknown timeout event type: {timeout_event_type}")
