"""
Client speech recognition engine proxy.

Mirrors the browser engine's lifecycle closely enough to refuse the same
requests the browser would refuse (start while running, start when
unsupported). The gateway feeds lifecycle reports back through
mark_supported / mark_started / mark_ended.
"""

from __future__ import annotations

from adapters.client.base import ClientProxy, ControlSink
from orchestrator.runtime_context import EngineBusyError, EngineUnsupportedError


class ClientSpeechEngine(ClientProxy):

    def __init__(
        self,
        *,
        send: ControlSink,
        continuous: bool = True,
        interim_results: bool = True,
    ) -> None:
        super().__init__(send=send)
        self._continuous = continuous
        self._interim_results = interim_results

        # None until the client reports capability
        self._supported: bool | None = None
        self._running = False
        self._start_pending = False

    # ------------------------------------------------------------------
    # SpeechEngineProtocol
    # ------------------------------------------------------------------

    def supported(self) -> bool:
        return self._supported is not False

    def start(self) -> None:
        if self._supported is False:
            raise EngineUnsupportedError("speech recognition not supported")
        if self._running or self._start_pending:
            raise EngineBusyError("recognition has already started")

        self._start_pending = True
        self._emit(
            "ENGINE_START",
            continuous=self._continuous,
            interim_results=self._interim_results,
        )

    def stop(self) -> None:
        self._start_pending = False
        self._emit("ENGINE_STOP")

    # ------------------------------------------------------------------
    # Lifecycle reports from the client
    # ------------------------------------------------------------------

    def mark_supported(self, supported: bool) -> None:
        # First report wins for the life of the session
        if self._supported is None:
            self._supported = supported

    def mark_started(self) -> None:
        self._start_pending = False
        self._running = True

    def mark_ended(self) -> None:
        self._start_pending = False
        self._running = False

    @property
    def running(self) -> bool:
        return self._running
