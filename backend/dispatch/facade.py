"""
Dispatch facade.

Responsibilities:
- Translate one classified intent into exactly one action kind:
  focus a panel, stop, or unrecognized feedback
- Read popup data slices from the health-data store
- Speak confirmations and announce results for screen readers

Non-responsibilities:
- No session state (the reducer owns listening/stop decisions); the only
  flag kept is whether a popup it showed is still open
- No engine control
- No timers (scroll, highlight and popup durations are executed client-side)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from constants import (
    COMMAND_RESULT_ANNOUNCEMENT_FORMAT,
    HIGHLIGHT_DURATION_MS,
    POPUP_ANNOUNCEMENT_FORMAT,
    POPUP_CLOSED_ANNOUNCEMENT,
    SCROLL_DELAY_MS,
    STOPPED_RESPONSE,
    UNRECOGNIZED_RESPONSE,
)
from dispatch.panels import PANELS, POPUPS, TOP, PanelSpec, PopupKind
from dispatch.summaries import summarize
from orchestrator.enums.intent import Intent
from orchestrator.runtime_context import (
    AnnouncerProtocol,
    DashboardViewProtocol,
    HealthDataStoreProtocol,
    PopupChannelProtocol,
    SpeechOptions,
    SpeechSynthesisProtocol,
)
from services.health_data import to_payload


class DispatchActionKind(str, Enum):
    FOCUS_PANEL = "focus_panel"
    STOP = "stop"
    UNRECOGNIZED_FEEDBACK = "unrecognized_feedback"


@dataclass(frozen=True)
class DispatchAction:
    """
    Record of what the facade did for one intent.

    popup is the kind actually shown, None when skipped or not applicable.
    """
    kind: DispatchActionKind
    intent: Intent
    panel: str | None = None
    spoken: str | None = None
    popup: PopupKind | None = None


class DispatchFacade:
    """
    Thin layer between the session controller and the dashboard.

    All collaborators are fire-and-forget.
    """

    def __init__(
        self,
        *,
        view: DashboardViewProtocol,
        synthesis: SpeechSynthesisProtocol,
        popup: PopupChannelProtocol,
        announcer: AnnouncerProtocol,
        store: HealthDataStoreProtocol,
        speech_options: SpeechOptions | None = None,
    ) -> None:
        self._view = view
        self._synthesis = synthesis
        self._popup = popup
        self._announcer = announcer
        self._store = store
        self._speech_options = speech_options or SpeechOptions()

        # Last popup shown by this facade and not yet hidden by it
        self._popup_open = False

    def dispatch(self, intent: Intent, transcript: str) -> DispatchAction:
        if intent is Intent.STOP:
            return self._request_stop()

        row = PANELS.get(intent)
        if row is None:
            return self._request_unrecognized_feedback(intent)

        return self._request_panel_focus(intent, row, transcript)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _request_panel_focus(
        self,
        intent: Intent,
        row: PanelSpec,
        transcript: str,
    ) -> DispatchAction:
        if row.panel == TOP:
            self._view.scroll_to_top(scroll_delay_ms=SCROLL_DELAY_MS)
        else:
            self._view.focus_panel(
                row.panel,
                highlight_ms=HIGHLIGHT_DURATION_MS if row.highlight else 0,
                scroll_delay_ms=SCROLL_DELAY_MS,
            )

        self._synthesis.speak(row.confirmation, self._speech_options)
        self._announcer.announce(
            COMMAND_RESULT_ANNOUNCEMENT_FORMAT.format(
                command=transcript,
                result=row.confirmation,
            ),
            "polite",
        )

        shown: PopupKind | None = None
        if row.popup is not None and self._show_popup(row.popup):
            shown = row.popup

        return DispatchAction(
            kind=DispatchActionKind.FOCUS_PANEL,
            intent=intent,
            panel=row.panel,
            spoken=row.confirmation,
            popup=shown,
        )

    def _request_stop(self) -> DispatchAction:
        self._synthesis.cancel()
        self._popup.hide()
        if self._popup_open:
            self._popup_open = False
            self._announcer.announce(POPUP_CLOSED_ANNOUNCEMENT, "polite")
        self._announcer.announce(STOPPED_RESPONSE, "polite")
        return DispatchAction(kind=DispatchActionKind.STOP, intent=Intent.STOP)

    def _request_unrecognized_feedback(self, intent: Intent) -> DispatchAction:
        self._synthesis.speak(UNRECOGNIZED_RESPONSE, self._speech_options)
        self._announcer.announce(UNRECOGNIZED_RESPONSE, "polite")
        return DispatchAction(
            kind=DispatchActionKind.UNRECOGNIZED_FEEDBACK,
            intent=intent,
            spoken=UNRECOGNIZED_RESPONSE,
        )

    # ------------------------------------------------------------------
    # Popups
    # ------------------------------------------------------------------

    def _show_popup(self, kind: PopupKind) -> bool:
        """
        Show the popup for kind when its data slice is present.

        Returns False (and shows nothing) for a missing snapshot or an
        empty slice.
        """
        data = self._read_slice(kind)
        if not data:
            return False

        popup = POPUPS[kind]
        self._popup.show_panel_popup(kind, to_payload(data))
        self._popup_open = True
        self._announcer.announce(
            POPUP_ANNOUNCEMENT_FORMAT.format(
                title=popup.title,
                content=summarize(kind, data),
            ),
            "assertive",
        )
        return True

    def _read_slice(self, kind: PopupKind) -> Any:
        snapshot = self._store.current_snapshot()
        if snapshot is None:
            return None
        return getattr(snapshot, POPUPS[kind].data_slice, None)
