"""
BEHAVIOUR-AS-CONSTANTS
----------------------
Single source of truth for all behavioral invariants of the voice
navigation session.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers or user-facing phrases elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Session lifecycle timing
# =============================================================================

# Delay between an engine "end" and the automatic restart
RESTART_BACKOFF_MS: Final[int] = 500

# Delay before the single retry after a failed automatic restart
RESTART_RETRY_BACKOFF_MS: Final[int] = 1_500

# Automatic restart attempts after the first (0 = no retry)
RESTART_MAX_RETRIES: Final[int] = 1

# Welcome phrase is spoken this long after a user start, if still listening
WELCOME_DELAY_MS: Final[int] = 500

# =============================================================================
# Dashboard presentation timing (client-executed)
# =============================================================================

HIGHLIGHT_DURATION_MS: Final[int] = 3_000
SCROLL_DELAY_MS: Final[int] = 500
POPUP_AUTO_HIDE_MS: Final[int] = 5_000

# =============================================================================
# Speech synthesis defaults
# =============================================================================

SPEECH_RATE_DEFAULT: Final[float] = 0.9
SPEECH_PITCH_DEFAULT: Final[float] = 1.0
SPEECH_VOLUME_DEFAULT: Final[float] = 0.8
SPEECH_LANG: Final[str] = "en-US"

# Voice names are matched by substring, in order
PREFERRED_VOICE_HINTS_DEFAULT: Final[tuple[str, ...]] = (
    "Google",
    "Microsoft",
    "Samantha",
)

# =============================================================================
# Spoken / displayed phrases
# =============================================================================

WELCOME_MESSAGE: Final[str] = "Hello Welcome to AZ Blue Voice"
UNRECOGNIZED_RESPONSE: Final[str] = (
    "Sorry, I didn't understand that command. Please try again."
)
STOPPED_RESPONSE: Final[str] = "Voice control stopped."

UNRECOGNIZED_COMMAND_FORMAT: Final[str] = 'Unrecognized: "{text}"'
COMMAND_RESULT_ANNOUNCEMENT_FORMAT: Final[str] = (
    'Voice command "{command}" executed. {result}'
)
POPUP_ANNOUNCEMENT_FORMAT: Final[str] = (
    "{title}. {content}. Dialog opened. Press Escape to close."
)
POPUP_CLOSED_ANNOUNCEMENT: Final[str] = "Dialog closed."

# =============================================================================
# Error messages surfaced into session state
# =============================================================================

ERROR_UNSUPPORTED: Final[str] = "Speech recognition not supported in this browser"
ERROR_START_FAILED_FORMAT: Final[str] = "Failed to start voice recognition: {reason}"
ERROR_STOP_FAILED_FORMAT: Final[str] = "Failed to stop voice recognition: {reason}"
ERROR_ENGINE_FORMAT: Final[str] = "Speech recognition error: {code}"
ERROR_RESTART_FAILED_FORMAT: Final[str] = (
    "Voice recognition could not be restarted: {reason}"
)

# =============================================================================
# Transport
# =============================================================================

# Upper bound on a single inbound JSON control message
MAX_CONTROL_MESSAGE_CHARS: Final[int] = 8_192
