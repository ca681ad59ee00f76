"""
Session state serialization for observers.

Responsibilities:
- Convert the authoritative SessionState into the public snapshot
  pushed to subscribers and to the client (STATE message).

Non-responsibilities:
- No internal flags (engine_starting, retry bookkeeping)
- No logging
- No orchestration decisions
"""

from __future__ import annotations

from typing import Any

from orchestrator.state_dataclass import SessionState, VoiceCommand


def serialize_command(command: VoiceCommand | None) -> dict[str, Any] | None:
    if command is None:
        return None
    return {
        "command": command.text,
        "confidence": command.confidence,
        "ts_ms": command.ts_ms,
        "intent": command.intent.value,
    }


def public_snapshot(state: SessionState) -> dict[str, Any]:
    """
    Serialize session state into its public shape.

    Output format:
    {
        "state": "LISTENING",
        "is_listening": true,
        "is_supported": true,
        "current_transcript": "show my vi",
        "last_command": {"command": ..., "confidence": ..., ...} | null,
        "error": null,
        "error_kind": null,
    }

    should_keep_alive is session intent and is never published.
    """
    return {
        "state": state.state.value,
        "is_listening": state.listening,
        "is_supported": state.supported,
        "current_transcript": state.current_transcript,
        "last_command": serialize_command(state.last_command),
        "error": state.error,
        "error_kind": state.error_kind.value if state.error_kind else None,
    }
