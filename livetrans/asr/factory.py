from __future__ import annotations
import os
from typing import Any
from .base import TranscriptionClient
from .faster_whisper_bytes import FasterWhisperTranscriptionClient
from .openai_client import OpenAITranscriptionClient


def get_transcriber(provider: str | None = None, **options: Any) -> TranscriptionClient:
    provider = (provider or os.getenv("LIVETRANS_TRANSCRIBER", "openai")).lower().strip()

    if provider == "openai":
        return OpenAITranscriptionClient(**options)
    if provider in ("faster-whisper", "faster_whisper", "local"):
        return FasterWhisperTranscriptionClient(**options)

    raise ValueError(f"Unknown transcriber provider: {provider}")
