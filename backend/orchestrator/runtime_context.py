"""
Runtime execution context.

Provides Runtime with live access to session-owned imperative resources
needed for command execution and side effects (collaborators, status).

This module contains:
- Narrow Protocols (capabilities, not implementations)
- The speech engine error hierarchy runtime converts into events
- Zero orchestration logic
- Zero state mutation
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

from constants import (
    PREFERRED_VOICE_HINTS_DEFAULT,
    SPEECH_LANG,
    SPEECH_PITCH_DEFAULT,
    SPEECH_RATE_DEFAULT,
    SPEECH_VOLUME_DEFAULT,
)
from session.connection_status import ConnectionStatus

if TYPE_CHECKING:
    from dispatch.facade import DispatchAction
    from dispatch.panels import PopupKind
    from orchestrator.enums.intent import Intent
    from services.health_data import HealthData
    from session.voice_session import VoiceSession


Priority = Literal["polite", "assertive"]


# ---------------------------------------------------------------------
# Speech engine errors
# ---------------------------------------------------------------------

class SpeechEngineError(Exception):
    """Speech engine refused a start or stop request."""


class EngineUnsupportedError(SpeechEngineError):
    """The client has no speech recognition engine."""


class EngineBusyError(SpeechEngineError):
    """start() while a recognition pass is already running."""


# ---------------------------------------------------------------------
# Speech options
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class SpeechOptions:
    """
    Utterance settings applied to every spoken phrase.

    voice pins an exact voice name. When it is None the client picks the
    first voice whose name contains one of preferred_voices, then any
    voice whose language starts with "en".
    """
    rate: float = SPEECH_RATE_DEFAULT
    pitch: float = SPEECH_PITCH_DEFAULT
    volume: float = SPEECH_VOLUME_DEFAULT
    lang: str = SPEECH_LANG
    voice: str | None = None
    preferred_voices: tuple[str, ...] = PREFERRED_VOICE_HINTS_DEFAULT


# ---------------------------------------------------------------------
# Collaborator Protocols
# ---------------------------------------------------------------------

@runtime_checkable
class SpeechEngineProtocol(Protocol):
    def supported(self) -> bool: ...

    def start(self) -> None:
        """
        Begin a recognition pass.

        Raises SpeechEngineError if unsupported or already running.
        """

    def stop(self) -> None:
        """
        End the active pass. Raises SpeechEngineError on refusal.
        """


@runtime_checkable
class SpeechSynthesisProtocol(Protocol):
    def speak(self, text: str, options: SpeechOptions) -> None:
        """Speak text, interrupting any in-progress utterance."""

    def cancel(self) -> None: ...


@runtime_checkable
class HealthDataStoreProtocol(Protocol):
    def current_snapshot(self) -> HealthData | None: ...


@runtime_checkable
class PopupChannelProtocol(Protocol):
    """Fire-and-forget; the popup hides itself after a fixed duration."""

    def show_panel_popup(self, kind: PopupKind, payload: Any) -> None: ...

    def hide(self) -> None: ...


@runtime_checkable
class DashboardViewProtocol(Protocol):
    def focus_panel(
        self,
        panel: str,
        *,
        highlight_ms: int,
        scroll_delay_ms: int,
    ) -> None: ...

    def scroll_to_top(self, *, scroll_delay_ms: int) -> None: ...


@runtime_checkable
class AnnouncerProtocol(Protocol):
    def announce(self, text: str, priority: Priority = "polite") -> None: ...


@runtime_checkable
class IntentDispatcherProtocol(Protocol):
    def dispatch(self, intent: Intent, transcript: str) -> DispatchAction: ...


# ---------------------------------------------------------------------
# Runtime Execution Context
# ---------------------------------------------------------------------

class RuntimeExecutionContext:
    """
    Imperative execution context for Runtime.

    This object provides *live views* into session-owned resources
    so Runtime does not need to synchronize or cache anything.

    Runtime is allowed to:
    - Call collaborators
    - Observe connection state

    Runtime is NOT allowed to:
    - Mutate session state directly
    - Perform orchestration decisions
    """

    def __init__(self, session: VoiceSession) -> None:
        self.session = session

    # ----------------------------
    # Session metadata
    # ----------------------------

    @property
    def session_id(self) -> str:
        return self.session.session_id

    @property
    def connection_status(self) -> ConnectionStatus:
        return self.session.connection_status

    @property
    def speech_options(self) -> SpeechOptions:
        return self.session.speech_options

    # ----------------------------
    # Collaborators
    # ----------------------------

    @property
    def speech_engine(self) -> SpeechEngineProtocol | None:
        return self.session.speech_engine

    @property
    def speech_synthesis(self) -> SpeechSynthesisProtocol | None:
        return self.session.speech_synthesis

    @property
    def dispatcher(self) -> IntentDispatcherProtocol | None:
        return self.session.dispatcher
