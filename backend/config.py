"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No orchestration logic
- No behavioral constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import (
    PREFERRED_VOICE_HINTS_DEFAULT,
    SPEECH_PITCH_DEFAULT,
    SPEECH_RATE_DEFAULT,
    SPEECH_VOLUME_DEFAULT,
)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_csv(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup and passed down to the gateway.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str
    log_level: str

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool

    # ------------------------------------------------------------------
    # Session policy
    # ------------------------------------------------------------------

    # False = end the session after every recognized navigation command
    keep_listening_after_command: bool

    # ------------------------------------------------------------------
    # Speech synthesis
    # ------------------------------------------------------------------

    speech_rate: float
    speech_pitch: float
    speech_volume: float
    speech_voice: str | None
    preferred_voices: tuple[str, ...]

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: tuple[str, ...]

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric variable is not a number.
        """
        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),

            enable_json_logs=_env_flag("ENABLE_JSON_LOGS", True),

            keep_listening_after_command=_env_flag(
                "KEEP_LISTENING_AFTER_COMMAND", True
            ),

            speech_rate=float(os.environ.get("SPEECH_RATE", SPEECH_RATE_DEFAULT)),
            speech_pitch=float(os.environ.get("SPEECH_PITCH", SPEECH_PITCH_DEFAULT)),
            speech_volume=float(os.environ.get("SPEECH_VOLUME", SPEECH_VOLUME_DEFAULT)),
            speech_voice=os.environ.get("SPEECH_VOICE") or None,
            preferred_voices=_env_csv("PREFERRED_VOICES", PREFERRED_VOICE_HINTS_DEFAULT),

            cors_origins=_env_csv("CORS_ORIGINS", ("*",)),
        )
