from __future__ import annotations

import os
import tempfile
from typing import Optional

from livetrans.errors import TranscriptionFailed

from .base import TranscriptionClient


class FasterWhisperTranscriptionClient(TranscriptionClient):
    """Local decoder for finished captures; the model is loaded on first use."""

    def __init__(
        self,
        *,
        model_size: str = "base",
        device: str = "cpu",
        compute_type: str = "int8",  # good default for CPU
        beam_size: int = 1,
        suffix: str = ".ogg",
    ) -> None:
        self.model_size = model_size
        self.device = device
        self.compute_type = compute_type
        self.beam_size = beam_size
        self.suffix = suffix
        self._model = None

    @property
    def name(self) -> str:
        return "faster-whisper"

    def _get_model(self):
        if self._model is None:
            from faster_whisper import WhisperModel

            self._model = WhisperModel(
                self.model_size,
                device=self.device,
                compute_type=self.compute_type,
            )
        return self._model

    def transcribe(self, audio: bytes, language_hint: str = "") -> str:
        if not audio:
            return ""

        try:
            model = self._get_model()
        except Exception as e:
            raise TranscriptionFailed(f"faster-whisper model '{self.model_size}' failed to load: {e}") from e

        fd, tmp_path = tempfile.mkstemp(suffix=self.suffix, prefix="livetrans_capture_")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(audio)
            initial_prompt: Optional[str] = language_hint or None
            try:
                segments, _info = model.transcribe(
                    tmp_path,
                    beam_size=self.beam_size,
                    initial_prompt=initial_prompt,
                    vad_filter=False,
                    condition_on_previous_text=False,
                )
                parts = [(s.text or "").strip() for s in segments]
            except Exception as e:
                raise TranscriptionFailed(f"faster-whisper decode failed: {e}") from e
            return " ".join(p for p in parts if p)
        finally:
            try:
                os.remove(tmp_path)
            except OSError:
                pass
