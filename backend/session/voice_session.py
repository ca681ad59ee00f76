"""
Voice session container.

- Owns connection status (mutable, gateway-controlled)
- Holds the runtime and the client proxies it executes commands against
- Buffers outbound control messages for the connection's pump
- Owned and mutated by SessionGateway
- NOT a state machine
- Contains no orchestration logic
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from orchestrator.runtime import Runtime
from orchestrator.runtime_context import (
    IntentDispatcherProtocol,
    SpeechEngineProtocol,
    SpeechOptions,
    SpeechSynthesisProtocol,
)
from session.connection_status import ConnectionStatus


# ---------------------------------------------------------------------
# VoiceSession
# ---------------------------------------------------------------------


@dataclass
class VoiceSession:
    """Mutable runtime container for a single voice session."""

    # ------------------------------------------------------------------
    # Identity / lifecycle
    # ------------------------------------------------------------------

    session_id: str
    created_at: float = field(default_factory=time.time)

    # ------------------------------------------------------------------
    # Connection / gateway-controlled state
    # ------------------------------------------------------------------

    connection_status: ConnectionStatus = ConnectionStatus.DOWN
    websocket: Any = None  # Type: fastapi.WebSocket in practice

    # ------------------------------------------------------------------
    # Runtime (executes commands + owns authoritative state)
    # ------------------------------------------------------------------

    runtime: Runtime | None = None

    # ------------------------------------------------------------------
    # Collaborators (client proxies in production)
    # ------------------------------------------------------------------

    speech_engine: SpeechEngineProtocol | None = None
    speech_synthesis: SpeechSynthesisProtocol | None = None
    dispatcher: IntentDispatcherProtocol | None = None
    speech_options: SpeechOptions = field(default_factory=SpeechOptions)

    def __post_init__(self) -> None:
        self._control_out: deque[dict[str, Any]] = deque()
        self.outbound_ready = asyncio.Event()

    # ------------------------------------------------------------------
    # Wiring helpers (called by SessionGateway)
    # ------------------------------------------------------------------

    def attach_speech_engine(self, engine: SpeechEngineProtocol) -> None:
        self.speech_engine = engine

    def attach_speech_synthesis(self, synthesis: SpeechSynthesisProtocol) -> None:
        self.speech_synthesis = synthesis

    def attach_dispatcher(self, dispatcher: IntentDispatcherProtocol) -> None:
        self.dispatcher = dispatcher

    def attach_runtime(self, runtime: Runtime) -> None:
        """
        Attach the runtime executor.

        Must be called after collaborators are attached.
        """
        self.runtime = runtime

    # ------------------------------------------------------------------
    # Observability helpers (read-only)
    # ------------------------------------------------------------------

    def log_context(self) -> dict[str, Any]:
        """Standard logging context for this session."""
        return {
            "session_id": self.session_id,
            "connection_status": self.connection_status.value,
        }

    # ------------------------------------------------------------------
    # Outbound control queue
    # ------------------------------------------------------------------

    def enqueue_control(self, msg: dict[str, Any]) -> None:
        """
        Enqueue a control message for delivery to the client.

        Messages are buffered in FIFO order and later retrieved via
        drain_control(). Wakes the connection's outbound pump.
        """
        self._control_out.append(msg)
        self.outbound_ready.set()

    def drain_control(self) -> tuple[dict[str, Any], ...]:
        """
        Atomically drain all pending control messages.

        Returns:
            A FIFO-ordered tuple of control messages. Returns an empty
            tuple if no messages are pending.

        After this call, the control queue is empty.
        """
        self.outbound_ready.clear()
        if not self._control_out:
            return ()
        out = tuple(self._control_out)
        self._control_out.clear()
        return out
