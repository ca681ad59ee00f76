"""
Client speech synthesis proxy.
"""

from __future__ import annotations

from adapters.client.base import ClientProxy
from orchestrator.runtime_context import SpeechOptions


class ClientSpeechSynthesis(ClientProxy):
    """
    Every SPEAK interrupts the utterance in progress on the client.

    Voice selection happens client-side: an exact voice if pinned,
    otherwise the first name matching a preferred hint, then any
    English voice.
    """

    def speak(self, text: str, options: SpeechOptions) -> None:
        self._emit(
            "SPEAK",
            text=text,
            interrupt=True,
            rate=options.rate,
            pitch=options.pitch,
            volume=options.volume,
            lang=options.lang,
            voice=options.voice,
            preferred_voices=list(options.preferred_voices),
        )

    def cancel(self) -> None:
        self._emit("SPEECH_CANCEL")
