from __future__ import annotations
import os
from typing import Any
from .base import CompletionStream
from .openai_chat import OpenAIChatCompletionStream
from .stub import StubCompletionStream


def get_completion_stream(provider: str | None = None, **options: Any) -> CompletionStream:
    provider = (provider or os.getenv("LIVETRANS_TRANSLATOR", "openai")).lower().strip()

    if provider == "openai":
        return OpenAIChatCompletionStream(**options)
    if provider == "stub":
        return StubCompletionStream()

    raise ValueError(f"Unknown translator provider: {provider}")
