from __future__ import annotations

from pathlib import Path
from typing import Optional

from livetrans.errors import DeviceUnavailable, IOFailure


class AudioPlayer:
    """Plays a finished capture back through the default (or selected) output device."""

    def __init__(self, device: Optional[int] = None) -> None:
        self.device = device
        self._sd = None

    def _sounddevice(self):
        if self._sd is None:
            try:
                import sounddevice as sd
            except ImportError as e:
                raise DeviceUnavailable(
                    "sounddevice is not installed. Install with: python -m pip install sounddevice"
                ) from e
            self._sd = sd
        return self._sd

    def play(self, path: str | Path) -> None:
        import soundfile as sf

        try:
            data, sample_rate = sf.read(str(path), dtype="int16")
        except Exception as e:
            raise IOFailure(f"Cannot read audio file {path}: {e}") from e

        sd = self._sounddevice()
        try:
            sd.play(data, sample_rate, device=self.device)
        except Exception as e:
            raise DeviceUnavailable(f"Failed to open output device: {e}") from e

    def wait(self) -> None:
        self._sounddevice().wait()

    def stop(self) -> None:
        self._sounddevice().stop()
