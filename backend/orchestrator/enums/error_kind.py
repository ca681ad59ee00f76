"""
Error taxonomy for session failures.

Every kind is surfaced into SessionState.error; none is raised to callers.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """
    UNSUPPORTED:
        The client has no speech engine. Set once, start() keeps failing.

    START_FAILURE:
        The engine refused a user-initiated start.

    RUNTIME_ERROR:
        The engine reported an error while a pass was active.
        Blocks auto-restart until the next explicit start().

    RESTART_FAILURE:
        An automatic restart failed after its single retry.

    STOP_FAILURE:
        The engine refused to stop. Local state stays stopped.
    """

    UNSUPPORTED = "unsupported"
    START_FAILURE = "start_failure"
    RUNTIME_ERROR = "runtime_error"
    RESTART_FAILURE = "restart_failure"
    STOP_FAILURE = "stop_failure"
