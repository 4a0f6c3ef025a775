from __future__ import annotations

import sys
import threading
from typing import Any, Iterable, TextIO

from livetrans.app.state import ConversationPhase
from livetrans.contracts import StateChanged, Translation, TranslationAppended


def format_translation(t: Translation) -> str:
    return (
        f"[user {t.user}] {t.original_language}: {t.original}\n"
        f"          {t.translated_language}: {t.translated}"
    )


def render_log(translations: Iterable[Translation]) -> str:
    """Most recent last, matching arrival order."""
    lines = [format_translation(t) for t in translations]
    return "\n".join(lines) if lines else "(no translations yet)"


class ConsolePresenter:
    """
    Session listener that prints state changes and records as they arrive.
    Events come from the processing worker, so writes are serialized.
    """

    def __init__(self, out: TextIO | None = None) -> None:
        self.out = out or sys.stdout
        self._lock = threading.Lock()

    def _print(self, text: str) -> None:
        with self._lock:
            self.out.write(text + "\n")
            self.out.flush()

    def __call__(self, event: Any) -> None:
        if isinstance(event, TranslationAppended):
            self._print(format_translation(event.translation))
        elif isinstance(event, StateChanged):
            current = event.current
            if current.phase == ConversationPhase.ERROR:
                self._print(f"[error] {current.cause}\n        type 'r' to acknowledge and reset")
            else:
                self._print(f"[{current.phase.value}]")
