# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
import json
import sys
from typing import Any

import pytest

import orchestrator.reducer as reducer_mod
import session.gateway as gateway_mod
from config import AppConfig
from constants import ERROR_UNSUPPORTED, MAX_CONTROL_MESSAGE_CHARS, WELCOME_MESSAGE
from orchestrator.enums.state import State
from orchestrator.retry import RetryAttempt
from session.connection_status import ConnectionStatus
from session.gateway import GatewayResult, SessionGateway


def make_config(**overrides: Any) -> AppConfig:
    values: dict[str, Any] = {
        "env": "test",
        "log_level": "INFO",
        "enable_json_logs": False,
        "keep_listening_after_command": True,
        "speech_rate": 0.9,
        "speech_pitch": 1.0,
        "speech_volume": 0.8,
        "speech_voice": None,
        "preferred_voices": ("Google", "Microsoft", "Samantha"),
        "cors_origins": ("*",),
    }
    values.update(overrides)
    return AppConfig(**values)


def msg(msg_type: str, **fields: Any) -> str:
    return json.dumps({"type": msg_type, "ts_ms": 100, **fields})


def types(result: GatewayResult) -> list[str]:
    return [m["type"] for m in result.outbound_json]


def states(result: GatewayResult) -> list[dict[str, Any]]:
    return [m["snapshot"] for m in result.outbound_json if m["type"] == "STATE"]


@pytest.fixture(name="emitted")
def fixture_emitted(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    captured: list[dict[str, Any]] = []
    monkeypatch.setattr(gateway_mod, "log_event", captured.append)
    return captured


async def connect_and_listen(gw: SessionGateway) -> None:
    await gw.on_ws_connect()
    await gw.on_json_message(msg("ENGINE_READY", supported=True))
    await gw.on_json_message(msg("START"))
    await gw.on_json_message(msg("ENGINE_STARTED"))


def test_connect_sends_session_init_then_state() -> None:
    gw = SessionGateway(config=make_config())

    result = asyncio.run(gw.on_ws_connect())

    assert types(result) == ["SESSION_INIT", "STATE"]
    init = result.outbound_json[0]
    assert init["session_id"].startswith("sess_")
    assert init["config"]["keep_listening_after_command"] is True
    assert init["config"]["speech"]["rate"] == 0.9

    snapshot = states(result)[0]
    assert snapshot["state"] == "IDLE"
    assert snapshot["is_listening"] is False

    assert gw.session is not None
    assert gw.session.connection_status is ConnectionStatus.UP


def test_vitals_command_round_trip() -> None:
    gw = SessionGateway(config=make_config())

    async def scenario() -> tuple[GatewayResult, GatewayResult]:
        await gw.on_ws_connect()
        await gw.on_json_message(msg("ENGINE_READY", supported=True))
        started = await gw.on_json_message(msg("START"))
        await gw.on_json_message(msg("ENGINE_STARTED"))
        result = await gw.on_json_message(
            msg("TRANSCRIPT", text="Show me my vitals", is_final=True, confidence=0.92)
        )
        await gw.on_ws_disconnect(reason="test")
        return started, result

    started, result = asyncio.run(scenario())

    assert "ENGINE_START" in types(started)

    # Snapshot first, then dashboard effects in dispatch order
    assert types(result) == [
        "STATE",
        "FOCUS_PANEL",
        "SPEAK",
        "ANNOUNCE",
        "POPUP_SHOW",
        "ANNOUNCE",
    ]
    last_command = states(result)[0]["last_command"]
    assert last_command["command"] == "Show me my vitals"
    assert last_command["intent"] == "vitals"

    focus = result.outbound_json[1]
    assert focus["panel"] == "vitals"

    speak = result.outbound_json[2]
    assert speak["text"] == "Displaying your vital signs information"
    assert speak["rate"] == 0.9

    popup = result.outbound_json[4]
    assert popup["kind"] == "vitals"
    assert popup["title"] == "Vital Signs"
    assert popup["payload"]["heart_rate"] == 72


def test_interim_transcript_is_published() -> None:
    gw = SessionGateway(config=make_config())

    async def scenario() -> GatewayResult:
        await connect_and_listen(gw)
        result = await gw.on_json_message(
            msg("TRANSCRIPT", text="show me", is_final=False)
        )
        await gw.on_ws_disconnect()
        return result

    result = asyncio.run(scenario())

    assert states(result)[0]["current_transcript"] == "show me"


def test_unsupported_engine_reports_error_on_start() -> None:
    gw = SessionGateway(config=make_config())

    async def scenario() -> GatewayResult:
        await gw.on_ws_connect()
        await gw.on_json_message(msg("ENGINE_READY", supported=False))
        return await gw.on_json_message(msg("START"))

    result = asyncio.run(scenario())

    assert "ENGINE_START" not in types(result)
    snapshot = states(result)[-1]
    assert snapshot["state"] == "ERROR"
    assert snapshot["is_supported"] is False
    assert snapshot["error"] == ERROR_UNSUPPORTED


def test_repeated_engine_ready_keeps_first_support_report() -> None:
    gw = SessionGateway(config=make_config())

    async def scenario() -> GatewayResult:
        await connect_and_listen(gw)
        late = await gw.on_json_message(msg("ENGINE_READY", supported=False))
        assert gw.session is not None and gw.session.runtime is not None
        assert gw.session.runtime.state.supported is True
        assert gw.session.runtime.state.state is State.LISTENING
        await gw.on_json_message(msg("ENGINE_READY", supported=True))
        await gw.on_ws_disconnect()
        return late

    late = asyncio.run(scenario())

    # Snapshot unchanged, so nothing is pushed
    assert states(late) == []


def test_start_while_client_engine_still_running_fails() -> None:
    gw = SessionGateway(config=make_config())

    async def scenario() -> None:
        await connect_and_listen(gw)
        await gw.on_json_message(msg("STOP"))
        # ENGINE_END not reported yet
        await gw.on_json_message(msg("START"))
        await gw.on_ws_disconnect()

    asyncio.run(scenario())

    assert gw.session is not None and gw.session.runtime is not None
    state = gw.session.runtime.state
    assert state.state is State.ERROR
    assert state.error == "Failed to start voice recognition: recognition has already started"


def test_restart_failure_reported_by_client_is_retried(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(reducer_mod, "get_restart_delay_ms", lambda attempt: 5)
    gw = SessionGateway(config=make_config())

    async def scenario() -> None:
        await connect_and_listen(gw)
        await gw.on_json_message(msg("ENGINE_END"))
        await asyncio.sleep(0.05)
        assert any(m["type"] == "ENGINE_START" for m in gw.drain_outbound())

        await gw.on_json_message(msg("ENGINE_START_FAILED", reason="audio-capture"))
        assert gw.session is not None and gw.session.runtime is not None
        assert gw.session.runtime.state.state is State.RESTARTING
        assert gw.session.runtime.state.restart_attempt == RetryAttempt(attempt=1)
        await gw.on_ws_disconnect()

    asyncio.run(scenario())


def test_welcome_is_queued_for_the_pump(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(reducer_mod, "WELCOME_DELAY_MS", 5)
    gw = SessionGateway(config=make_config())

    async def scenario() -> tuple[bool, tuple[dict[str, Any], ...]]:
        await connect_and_listen(gw)
        assert gw.session is not None
        gw.drain_outbound()
        await asyncio.sleep(0.05)
        ready = gw.session.outbound_ready.is_set()
        pending = gw.drain_outbound()
        await gw.on_ws_disconnect()
        return ready, pending

    ready, pending = asyncio.run(scenario())

    assert ready is True
    speaks = [m for m in pending if m["type"] == "SPEAK"]
    assert [m["text"] for m in speaks] == [WELCOME_MESSAGE]


def test_stop_after_command_policy_from_config() -> None:
    gw = SessionGateway(config=make_config(keep_listening_after_command=False))

    async def scenario() -> GatewayResult:
        await connect_and_listen(gw)
        result = await gw.on_json_message(
            msg("TRANSCRIPT", text="open my claims", is_final=True)
        )
        await gw.on_ws_disconnect()
        return result

    result = asyncio.run(scenario())

    assert "ENGINE_STOP" in types(result)
    assert states(result)[0]["state"] == "IDLE"


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ("{not json", "JSON_DECODE_ERROR"),
        ("[1, 2]", "INVALID_MESSAGE"),
        (msg("WAVE"), "UNKNOWN_MESSAGE_TYPE"),
        (msg("TRANSCRIPT", is_final=True), "INVALID_MESSAGE"),
        (msg("TRANSCRIPT", text="claims", is_final=True, confidence="high"), "INVALID_MESSAGE"),
        (msg("ENGINE_READY"), "INVALID_MESSAGE"),
        (msg("ENGINE_ERROR"), "INVALID_MESSAGE"),
        (msg("TRANSCRIPT", text="claims", is_final=True, confidence=10**400), "INVALID_MESSAGE"),
        ('{"type": "TRANSCRIPT", "text": "claims", "is_final": true, "confidence": Infinity}', "INVALID_MESSAGE"),
        pytest.param(
            '{"type": "START", "ts_ms": 1' + "0" * 5000 + "}",
            "JSON_DECODE_ERROR",
            marks=pytest.mark.skipif(
                not hasattr(sys, "get_int_max_str_digits"),
                reason="interpreter has no integer digit limit",
            ),
        ),
        ("x" * (MAX_CONTROL_MESSAGE_CHARS + 1), "MESSAGE_TOO_LARGE"),
    ],
)
def test_malformed_messages_are_logged_and_dropped(
    emitted: list[dict[str, Any]],
    payload: str,
    expected: str,
) -> None:
    gw = SessionGateway(config=make_config())

    async def scenario() -> GatewayResult:
        await gw.on_ws_connect()
        return await gw.on_json_message(payload)

    result = asyncio.run(scenario())

    assert result.outbound_json == ()
    assert [e["event_type"] for e in emitted] == [expected]


def test_message_without_session_is_logged(emitted: list[dict[str, Any]]) -> None:
    gw = SessionGateway(config=make_config())

    result = asyncio.run(gw.on_json_message(msg("START")))

    assert result == GatewayResult()
    assert emitted[0]["event_type"] == "MESSAGE_WITHOUT_SESSION"


def test_disconnect_tears_down_session(emitted: list[dict[str, Any]]) -> None:
    gw = SessionGateway(config=make_config())

    async def scenario() -> None:
        await connect_and_listen(gw)
        await gw.on_json_message(msg("ENGINE_END"))
        await gw.on_ws_disconnect(reason="client_disconnect")

    asyncio.run(scenario())

    assert gw.session is not None and gw.session.runtime is not None
    assert gw.session.connection_status is ConnectionStatus.DOWN
    assert gw.session.runtime.pending_timers() == ()
    assert emitted[-1]["event_type"] == "WS_DISCONNECTED"
    assert emitted[-1]["reason"] == "client_disconnect"
