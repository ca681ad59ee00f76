"""
Authoritative session state enumeration.

Rules:
- This enum defines ONLY the reported control-plane states.
- No behavior, no helper methods, no side effects.
- Transitions are defined exclusively in the reducer.
"""

from __future__ import annotations

from enum import Enum


class State(str, Enum):
    """
    High-level deterministic control states for a single voice session.

    These states represent session intent as reported to observers,
    NOT connection status and NOT the speech engine's own lifecycle.
    """

    IDLE = "IDLE"
    LISTENING = "LISTENING"
    RESTARTING = "RESTARTING"
    ERROR = "ERROR"
