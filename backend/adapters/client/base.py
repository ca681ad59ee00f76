"""
Client proxy contract.

The browser owns the speech engine, speech synthesis, popups, the
dashboard view and the aria-live announcer. Proxies in this package
implement the runtime Protocols by queueing JSON control messages for
the client.

Key invariants:
- Proxies never call the reducer or make state transitions.
- Every call produces zero or more control messages; none block.
- Message delivery order equals call order (session control queue FIFO).
"""

from __future__ import annotations

import time
from typing import Any, Callable

ControlSink = Callable[[dict[str, Any]], None]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class ClientProxy:
    """
    Base class for collaborators realised by the connected client.

    send is usually VoiceSession.enqueue_control.
    """

    def __init__(self, *, send: ControlSink) -> None:
        self._send = send

    def _emit(self, msg_type: str, **fields: Any) -> None:
        self._send({"type": msg_type, "ts_ms": _now_ms(), **fields})
