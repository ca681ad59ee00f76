"""Origin of an engine start request."""

from __future__ import annotations

from enum import Enum


class StartSource(str, Enum):
    """
    USER:
        Explicit start() from the user. Eligible for the welcome phrase.

    RESTART:
        Automatic restart after the engine ended on its own.
        Bypasses the welcome and uses the restart retry policy.
    """

    USER = "user"
    RESTART = "restart"
