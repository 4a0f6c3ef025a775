from __future__ import annotations

import json
from typing import Iterator, Sequence

from .base import CompletionStream


class StubCompletionStream(CompletionStream):
    """
    Deterministic, offline completion stream.
    Replays scripted deltas; without a script it echoes the transcript back as
    one record, split into small deltas the way a real service would send them.
    """

    def __init__(self, deltas: Sequence[str] | None = None, *, delta_size: int = 7) -> None:
        if delta_size <= 0:
            raise ValueError("delta_size must be > 0")
        self.deltas = list(deltas) if deltas is not None else None
        self.delta_size = int(delta_size)
        self.prompts: list[str] = []

    @property
    def name(self) -> str:
        return "stub"

    def _echo(self, prompt: str) -> str:
        marker = "The conversation is:"
        transcript = prompt.rsplit(marker, 1)[-1].strip() if marker in prompt else prompt.strip()
        payload = {
            "user": "1",
            "original": transcript,
            "translated": f"[stub] {transcript}",
            "originalLanguage": "unknown",
            "translatedLanguage": "unknown",
        }
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))

    def stream(self, prompt: str) -> Iterator[str]:
        self.prompts.append(prompt)
        if self.deltas is not None:
            yield from self.deltas
            return
        text = self._echo(prompt)
        for i in range(0, len(text), self.delta_size):
            yield text[i : i + self.delta_size]
