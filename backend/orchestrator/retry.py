"""
Restart retry policy helpers.

Purpose:
- Centralize automatic-restart retry rules
- Keep reducer pure

This module contains NO timers, NO async, NO side effects.
"""
from __future__ import annotations

from dataclasses import dataclass

from constants import (
    RESTART_BACKOFF_MS,
    RESTART_MAX_RETRIES,
    RESTART_RETRY_BACKOFF_MS,
)


# =============================================================================
# Retry State
# =============================================================================

@dataclass(frozen=True)
class RetryAttempt:
    """
    Immutable retry attempt counter.

    Semantics:
    - attempt == 0 represents the initial restart (no retry yet).
    - attempt >= 1 represents the Nth retry.
    - This value is used only for retry policy decisions
      (max attempts, backoff delay), never for control flow.
    """
    attempt: int


def next_attempt(current: RetryAttempt) -> RetryAttempt:
    """Return a new RetryAttempt with attempt incremented by 1."""
    return RetryAttempt(attempt=current.attempt + 1)


def reset_attempt() -> RetryAttempt:
    """Returns a fresh retry attempt counter."""
    return RetryAttempt(attempt=0)


# =============================================================================
# Policy
# =============================================================================

def should_retry(attempt: RetryAttempt) -> bool:
    """
    Returns True if a failed automatic restart may be retried.

    attempt = number of retries already performed.
    User-initiated starts are never retried.
    """
    return attempt.attempt < RESTART_MAX_RETRIES


def get_restart_delay_ms(attempt: RetryAttempt) -> int:
    """
    Returns the delay before restart attempt N.

    The first restart uses the short backoff; every retry uses the
    longer one.
    """
    if attempt.attempt == 0:
        return RESTART_BACKOFF_MS
    return RESTART_RETRY_BACKOFF_MS
