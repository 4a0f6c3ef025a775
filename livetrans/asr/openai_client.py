from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
import openai

from livetrans.errors import TranscriptionFailed

from .base import TranscriptionClient

logger = logging.getLogger(__name__)


class OpenAITranscriptionClient(TranscriptionClient):
    def __init__(
        self,
        *,
        model: str = "whisper-1",
        file_name: str = "recording.ogg",
        client: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
    ) -> None:
        self.model = model
        self.file_name = file_name
        self.base_url = base_url
        self.timeout = float(timeout)
        self._client = client

    @property
    def name(self) -> str:
        return "openai"

    def _get_client(self):
        if self._client is None:
            try:
                self._client = openai.OpenAI(base_url=self.base_url, timeout=self.timeout)
            except openai.OpenAIError as e:
                raise TranscriptionFailed(f"OpenAI client unavailable: {e}") from e
        return self._client

    def transcribe(self, audio: bytes, language_hint: str = "") -> str:
        if not audio:
            return ""
        client = self._get_client()
        kwargs: dict[str, Any] = {
            "model": self.model,
            "file": (self.file_name, audio),
        }
        # Advisory only: biases the decoder, the service is free to ignore it.
        if language_hint:
            kwargs["prompt"] = language_hint
        try:
            resp = client.audio.transcriptions.create(**kwargs)
        except (openai.OpenAIError, httpx.HTTPError) as e:
            raise TranscriptionFailed(f"transcription request failed: {e}") from e

        text = resp.text if hasattr(resp, "text") else str(resp)
        logger.debug("transcription_done", extra={"model": self.model, "bytes": len(audio), "chars": len(text)})
        return (text or "").strip()
