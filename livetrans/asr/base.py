from __future__ import annotations
from abc import ABC, abstractmethod


class TranscriptionClient(ABC):
    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def transcribe(self, audio: bytes, language_hint: str = "") -> str:
        """Return the transcript of a finished capture. Empty text is a valid result."""
