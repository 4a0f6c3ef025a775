from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

import httpx
import openai

from livetrans.errors import StreamFailure

from .base import CompletionStream

logger = logging.getLogger(__name__)


class OpenAIChatCompletionStream(CompletionStream):
    def __init__(
        self,
        *,
        model: str = "gpt-4o-mini",
        client: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        temperature: float = 0.0,
    ) -> None:
        self.model = model
        self.base_url = base_url
        self.timeout = float(timeout)
        self.temperature = float(temperature)
        self._client = client

    @property
    def name(self) -> str:
        return "openai"

    def _get_client(self):
        if self._client is None:
            try:
                self._client = openai.OpenAI(base_url=self.base_url, timeout=self.timeout)
            except openai.OpenAIError as e:
                raise StreamFailure(f"OpenAI client unavailable: {e}") from e
        return self._client

    def stream(self, prompt: str) -> Iterator[str]:
        client = self._get_client()
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                stream=True,
            )
        except (openai.OpenAIError, httpx.HTTPError) as e:
            raise StreamFailure(f"completion request failed: {e}") from e

        logger.debug("completion_stream_open", extra={"model": self.model, "prompt_chars": len(prompt)})
        try:
            for chunk in response:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except (openai.OpenAIError, httpx.HTTPError) as e:
            raise StreamFailure(f"completion stream broke: {e}") from e
        finally:
            close = getattr(response, "close", None)
            if close is not None:
                close()
