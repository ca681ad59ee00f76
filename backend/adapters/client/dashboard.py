"""
Client dashboard proxies: view navigation, popups and announcements.
"""

from __future__ import annotations

from typing import Any

from adapters.client.base import ClientProxy, ControlSink
from constants import POPUP_AUTO_HIDE_MS
from dispatch.panels import POPUPS, PopupKind
from orchestrator.runtime_context import Priority


class ClientDashboardView(ClientProxy):

    def focus_panel(
        self,
        panel: str,
        *,
        highlight_ms: int,
        scroll_delay_ms: int,
    ) -> None:
        self._emit(
            "FOCUS_PANEL",
            panel=panel,
            highlight_ms=highlight_ms,
            scroll_delay_ms=scroll_delay_ms,
        )

    def scroll_to_top(self, *, scroll_delay_ms: int) -> None:
        self._emit("SCROLL_TO_TOP", scroll_delay_ms=scroll_delay_ms)


class ClientPopupChannel(ClientProxy):
    """Popups hide themselves on the client after auto_hide_ms."""

    def __init__(self, *, send: ControlSink, auto_hide_ms: int = POPUP_AUTO_HIDE_MS) -> None:
        super().__init__(send=send)
        self._auto_hide_ms = auto_hide_ms

    def show_panel_popup(self, kind: PopupKind, payload: Any) -> None:
        popup = POPUPS[kind]
        self._emit(
            "POPUP_SHOW",
            kind=kind.value,
            title=popup.title,
            message=popup.message,
            payload=payload,
            auto_hide_ms=self._auto_hide_ms,
        )

    def hide(self) -> None:
        self._emit("POPUP_HIDE")


class ClientAnnouncer(ClientProxy):

    def announce(self, text: str, priority: Priority = "polite") -> None:
        self._emit("ANNOUNCE", text=text, priority=priority)
