"""
Session gateway.

Responsibilities:
- Owns VoiceSession lifecycle
- Tracks connection_status independently of orchestrator state
- Wires client proxies, the dispatch facade and the runtime per session
- Routes inbound JSON messages -> orchestrator events
- Feeds client engine lifecycle reports back into the engine proxy
- Pushes public state snapshots to the client (STATE)

NOT responsible for:
- Executing commands (Runtime)
- Intent classification or any state machine logic (reducer)
- Socket IO (server.routes)
"""

from __future__ import annotations

import json
import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from adapters.client.dashboard import (
    ClientAnnouncer,
    ClientDashboardView,
    ClientPopupChannel,
)
from adapters.client.speech_engine import ClientSpeechEngine
from adapters.client.speech_synthesis import ClientSpeechSynthesis
from constants import (
    HIGHLIGHT_DURATION_MS,
    MAX_CONTROL_MESSAGE_CHARS,
    POPUP_AUTO_HIDE_MS,
    SCROLL_DELAY_MS,
    SPEECH_LANG,
)
from dispatch.facade import DispatchFacade
from observability.logger import log_event
from orchestrator.enums.start_source import StartSource
from orchestrator.enums.state import State
from orchestrator.events import (
    EngineEnd,
    EngineError,
    EngineInitialized,
    EngineStarted,
    EngineStartFailed,
    Event,
    EventType,
    FinalTranscript,
    InterimTranscript,
    SessionEnded,
    SessionStarted,
    StartRequested,
    StopRequested,
)
from orchestrator.runtime import Runtime
from orchestrator.runtime_context import (
    HealthDataStoreProtocol,
    RuntimeExecutionContext,
    SpeechOptions,
)
from orchestrator.state_dataclass import SessionState
from services.health_data import InMemoryHealthDataStore, demo_health_data
from session.connection_status import ConnectionStatus
from session.voice_session import VoiceSession

if TYPE_CHECKING:
    from config import AppConfig


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_session_id() -> str:
    return f"sess_{uuid4().hex[:12]}"


class InvalidMessageError(ValueError):
    """Client message has the right type but a missing or malformed field."""


def _require(data: dict[str, Any], name: str, kind: type | tuple[type, ...]) -> Any:
    value = data.get(name)
    if not isinstance(value, kind):
        raise InvalidMessageError(f"field '{name}' missing or malformed")
    return value


def _optional_number(data: dict[str, Any], name: str, default: float) -> float:
    value = data.get(name, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidMessageError(f"field '{name}' must be a number")
    try:
        number = float(value)
    except OverflowError as e:
        raise InvalidMessageError(f"field '{name}' out of range") from e
    if not math.isfinite(number):
        raise InvalidMessageError(f"field '{name}' must be finite")
    return number


# ------------------------------------------------------------------
# Gateway result
# ------------------------------------------------------------------

@dataclass(frozen=True)
class GatewayResult:
    """
    Return value for gateway boundary methods.

    outbound_json:
        JSON messages to send to client, in order
    """
    outbound_json: tuple[dict[str, Any], ...] = ()


# ------------------------------------------------------------------
# SessionGateway
# ------------------------------------------------------------------

class SessionGateway:
    """
    One gateway == one voice session.

    The health-data store is shared across sessions; everything else is
    constructed per connection.
    """

    def __init__(
        self,
        *,
        config: AppConfig,
        store: HealthDataStoreProtocol | None = None,
    ) -> None:
        self._config = config
        self._store = store or InMemoryHealthDataStore(demo_health_data())
        self.session: VoiceSession | None = None
        self._unsubscribe: Any = None

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def on_ws_connect(self) -> GatewayResult:
        """Called when a WebSocket connection is established."""
        session_id = _new_session_id()

        session = VoiceSession(
            session_id=session_id,
            speech_options=self._speech_options(),
        )
        session.connection_status = ConnectionStatus.UP
        self.session = session

        send = session.enqueue_control

        engine = ClientSpeechEngine(send=send)
        synthesis = ClientSpeechSynthesis(send=send)
        session.attach_speech_engine(engine)
        session.attach_speech_synthesis(synthesis)
        session.attach_dispatcher(
            DispatchFacade(
                view=ClientDashboardView(send=send),
                synthesis=synthesis,
                popup=ClientPopupChannel(send=send),
                announcer=ClientAnnouncer(send=send),
                store=self._store,
                speech_options=session.speech_options,
            )
        )

        runtime = Runtime(
            initial_state=SessionState(
                supported=engine.supported(),
                keep_listening_after_command=self._config.keep_listening_after_command,
            ),
            context=RuntimeExecutionContext(session=session),
        )
        session.attach_runtime(runtime)

        init_msg: dict[str, Any] = {
            "type": "SESSION_INIT",
            "session_id": session_id,
            "ts_ms": _now_ms(),
            "config": {
                "keep_listening_after_command": self._config.keep_listening_after_command,
                "highlight_ms": HIGHLIGHT_DURATION_MS,
                "scroll_delay_ms": SCROLL_DELAY_MS,
                "popup_auto_hide_ms": POPUP_AUTO_HIDE_MS,
                "speech": {
                    "lang": SPEECH_LANG,
                    "rate": session.speech_options.rate,
                    "pitch": session.speech_options.pitch,
                    "volume": session.speech_options.volume,
                    "voice": session.speech_options.voice,
                    "preferred_voices": list(session.speech_options.preferred_voices),
                },
            },
        }

        # Initial STATE is queued behind SESSION_INIT
        self._unsubscribe = runtime.subscribe(self._push_state)

        await self._dispatch(
            SessionStarted(
                event_type=EventType.SESSION_STARTED,
                ts_ms=_now_ms(),
                session_id=session_id,
            )
        )

        return GatewayResult(outbound_json=(init_msg,) + self.drain_outbound())

    async def on_ws_disconnect(self, reason: str | None = None) -> GatewayResult:
        """Called when the WebSocket disconnects."""
        if self.session is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "WS_DISCONNECT_WITHOUT_SESSION",
                "reason": reason,
            })
            return GatewayResult()

        session = self.session
        session.connection_status = ConnectionStatus.DOWN

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        runtime = session.runtime
        if runtime is not None:
            await runtime.shutdown()

        await self._dispatch(
            SessionEnded(
                event_type=EventType.SESSION_ENDED,
                ts_ms=_now_ms(),
                session_id=session.session_id,
            )
        )

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "WS_DISCONNECTED",
            "reason": reason,
            **session.log_context(),
        })

        # Nothing can be delivered any more
        session.drain_control()
        return GatewayResult()

    # ------------------------------------------------------------------
    # Inbound messages
    # ------------------------------------------------------------------

    async def on_json_message(self, payload: str) -> GatewayResult:
        """Route inbound JSON to orchestrator events."""
        if self.session is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "MESSAGE_WITHOUT_SESSION",
                "payload_preview": payload[:100],
            })
            return GatewayResult()

        if len(payload) > MAX_CONTROL_MESSAGE_CHARS:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "MESSAGE_TOO_LARGE",
                "session_id": self.session.session_id,
                "payload_len": len(payload),
            })
            return GatewayResult()

        # ValueError also covers integers past the interpreter digit limit
        try:
            data = json.loads(payload)
        except ValueError as e:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "JSON_DECODE_ERROR",
                "session_id": self.session.session_id,
                "error": str(e),
                "payload_preview": payload[:100],
            })
            return GatewayResult()

        if not isinstance(data, dict):
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "INVALID_MESSAGE",
                "session_id": self.session.session_id,
                "error": "message must be a JSON object",
            })
            return GatewayResult()

        msg_type = data.get("type")

        try:
            event = self._to_event(msg_type, data)
        except InvalidMessageError as e:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "INVALID_MESSAGE",
                "session_id": self.session.session_id,
                "msg_type": msg_type,
                "error": str(e),
            })
            return GatewayResult()

        if event is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "UNKNOWN_MESSAGE_TYPE",
                "msg_type": msg_type,
                "session_id": self.session.session_id,
            })
            return GatewayResult()

        await self._dispatch(event)
        return GatewayResult(outbound_json=self.drain_outbound())

    def _to_event(self, msg_type: Any, data: dict[str, Any]) -> Event | None:
        """
        Map one client message to an orchestrator event.

        Engine lifecycle reports also update the engine proxy so its
        refusals match the client's real engine.
        """
        assert self.session is not None
        engine = self.session.speech_engine
        assert isinstance(engine, ClientSpeechEngine)

        ts_ms = data.get("ts_ms")
        if isinstance(ts_ms, bool) or not isinstance(ts_ms, int):
            ts_ms = _now_ms()

        if msg_type == "ENGINE_READY":
            supported = _require(data, "supported", bool)
            engine.mark_supported(supported)
            return EngineInitialized(
                event_type=EventType.ENGINE_INITIALIZED,
                ts_ms=ts_ms,
                supported=supported,
            )

        if msg_type == "START":
            return StartRequested(event_type=EventType.START_REQUESTED, ts_ms=ts_ms)

        if msg_type == "STOP":
            return StopRequested(event_type=EventType.STOP_REQUESTED, ts_ms=ts_ms)

        if msg_type == "ENGINE_STARTED":
            engine.mark_started()
            return EngineStarted(event_type=EventType.ENGINE_STARTED, ts_ms=ts_ms)

        if msg_type == "ENGINE_START_FAILED":
            reason = _require(data, "reason", str)
            engine.mark_ended()
            return EngineStartFailed(
                event_type=EventType.ENGINE_START_FAILED,
                ts_ms=ts_ms,
                reason=reason,
                source=self._pending_start_source(),
            )

        if msg_type == "ENGINE_END":
            engine.mark_ended()
            return EngineEnd(event_type=EventType.ENGINE_END, ts_ms=ts_ms)

        if msg_type == "ENGINE_ERROR":
            code = _require(data, "error", str)
            engine.mark_ended()
            return EngineError(event_type=EventType.ENGINE_ERROR, ts_ms=ts_ms, code=code)

        if msg_type == "TRANSCRIPT":
            text = _require(data, "text", str)
            if _require(data, "is_final", bool):
                return FinalTranscript(
                    event_type=EventType.FINAL_TRANSCRIPT,
                    ts_ms=ts_ms,
                    text=text,
                    confidence=_optional_number(data, "confidence", 0.0),
                )
            return InterimTranscript(
                event_type=EventType.INTERIM_TRANSCRIPT,
                ts_ms=ts_ms,
                text=text,
            )

        return None

    def _pending_start_source(self) -> StartSource:
        """Restart-driven starts only happen while RESTARTING."""
        assert self.session is not None and self.session.runtime is not None
        if self.session.runtime.state.state is State.RESTARTING:
            return StartSource.RESTART
        return StartSource.USER

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def _push_state(self, snapshot: dict[str, Any]) -> None:
        if self.session is None:
            return
        self.session.enqueue_control({
            "type": "STATE",
            "ts_ms": _now_ms(),
            "snapshot": snapshot,
        })

    def drain_outbound(self) -> tuple[dict[str, Any], ...]:
        if self.session is None:
            return ()
        return self.session.drain_control()

    def _speech_options(self) -> SpeechOptions:
        return SpeechOptions(
            rate=self._config.speech_rate,
            pitch=self._config.speech_pitch,
            volume=self._config.speech_volume,
            voice=self._config.speech_voice,
            preferred_voices=self._config.preferred_voices,
        )

    # ------------------------------------------------------------------
    # Runtime dispatch
    # ------------------------------------------------------------------

    async def _dispatch(self, event: Event) -> None:
        """Forward event into runtime. Runtime owns all orchestration."""
        if self.session is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "DISPATCH_WITHOUT_SESSION",
                "dropped_event": event.event_type.value,
            })
            return

        runtime = self.session.runtime
        assert runtime is not None, "Runtime must exist before dispatch"

        await runtime.handle_event(event)
