from __future__ import annotations

import logging
import queue
import threading
from pathlib import Path
from typing import Any, Optional

import numpy as np

from livetrans.audio.level import LevelMeter
from livetrans.errors import DeviceUnavailable, IOFailure

logger = logging.getLogger(__name__)


class AudioCapture:
    """
    Microphone capture into one reusable compressed file (mono OGG/Vorbis by default).
    Uses `sounddevice` (PortAudio) for input and `soundfile` for the file sink.
    Blocks go from the PortAudio callback through a queue to a writer thread,
    which encodes them and drives the level meter.
    Not thread-safe: start/stop/cancel must come from a single caller.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        sample_rate: int = 16000,
        channels: int = 1,
        device: Optional[int] = None,
        file_format: str = "OGG",
        subtype: str = "VORBIS",
        meter: Optional[LevelMeter] = None,
    ) -> None:
        if sample_rate <= 0:
            raise ValueError("sample_rate must be > 0")
        if channels not in (1, 2):
            raise ValueError("channels must be 1 or 2")

        self.path = Path(path)
        self.sample_rate = int(sample_rate)
        self.channels = int(channels)
        self.device = device
        self.file_format = file_format
        self.subtype = subtype
        self.meter = meter or LevelMeter()
        self._stream: Any = None
        self._writer: Any = None
        self._queue: Optional[queue.Queue] = None
        self._drain_thread: Optional[threading.Thread] = None
        self._drain_error: Optional[Exception] = None
        self._status_flags = 0

    @staticmethod
    def list_devices() -> str:
        try:
            import sounddevice as sd
        except ImportError as e:
            raise DeviceUnavailable(
                "sounddevice is not installed. Install with: python -m pip install sounddevice"
            ) from e
        return str(sd.query_devices())

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    @property
    def level(self) -> float:
        return self.meter.power

    def _open_writer(self):
        import soundfile as sf

        return sf.SoundFile(
            str(self.path),
            mode="w",
            samplerate=self.sample_rate,
            channels=self.channels,
            format=self.file_format,
            subtype=self.subtype,
        )

    def _open_stream(self, callback):
        try:
            import sounddevice as sd
        except ImportError as e:
            raise DeviceUnavailable(
                "sounddevice is not installed. Install with: python -m pip install sounddevice"
            ) from e

        return sd.InputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype="int16",
            device=self.device,
            callback=callback,
        )

    def _on_block(self, indata: np.ndarray, frames: int, time_info: Any, status: Any) -> None:
        if status:
            # Overflow just means PortAudio dropped frames; keep recording.
            self._status_flags += 1
        q = self._queue
        if q is None:
            return
        q.put(indata.copy())

    def _drain(self, q: queue.Queue, writer: Any) -> None:
        while True:
            block = q.get()
            try:
                if block is None:
                    return
                if self._drain_error is not None:
                    continue
                try:
                    writer.write(block)
                except Exception as e:
                    self._drain_error = e
                    logger.exception("capture_write_failed", extra={"path": str(self.path)})
                    continue
                self.meter.update(block)
            finally:
                q.task_done()

    def _start_writer(self, writer: Any) -> None:
        self._writer = writer
        self._drain_error = None
        self._queue = queue.Queue()
        self._drain_thread = threading.Thread(
            target=self._drain,
            args=(self._queue, writer),
            name="livetrans-capture-writer",
            daemon=True,
        )
        self._drain_thread.start()

    def _stop_writer(self) -> None:
        q, thread, writer = self._queue, self._drain_thread, self._writer
        self._queue = None
        self._drain_thread = None
        self._writer = None
        if q is not None:
            q.put(None)
        if thread is not None:
            thread.join()
        if writer is not None:
            writer.close()

    def _teardown(self) -> None:
        stream = self._stream
        self._stream = None
        try:
            if stream is not None:
                stream.stop()
                stream.close()
        finally:
            self._stop_writer()
            self.meter.reset()

    def start(self) -> None:
        if self._stream is not None:
            logger.warning("capture_restart_discarding_previous", extra={"path": str(self.path)})
            self._teardown()

        self.meter.reset()
        self._status_flags = 0
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            writer = self._open_writer()
        except Exception as e:
            raise DeviceUnavailable(f"Cannot open capture file {self.path}: {e}") from e
        self._start_writer(writer)

        try:
            stream = self._open_stream(self._on_block)
            stream.start()
        except Exception as e:
            self._stop_writer()
            if isinstance(e, DeviceUnavailable):
                raise
            raise DeviceUnavailable(
                "Failed to open microphone stream. "
                "Check recording permission or pick another device with --device."
            ) from e

        self._stream = stream
        logger.info(
            "capture_started",
            extra={"path": str(self.path), "sr": self.sample_rate, "channels": self.channels},
        )

    def stop(self) -> bytes:
        if self._stream is None:
            raise IOFailure("No capture in progress.")
        try:
            self._teardown()
        except Exception as e:
            raise IOFailure(f"Failed to finalize capture file {self.path}: {e}") from e
        if self._drain_error is not None:
            err = self._drain_error
            raise IOFailure(f"Failed to write capture file {self.path}: {err}") from err

        try:
            data = self.path.read_bytes()
        except OSError as e:
            raise IOFailure(f"Cannot read capture file {self.path}: {e}") from e

        logger.info(
            "capture_stopped",
            extra={"path": str(self.path), "bytes": len(data), "status_flags": self._status_flags},
        )
        return data

    def cancel(self) -> None:
        if self._stream is None:
            return
        try:
            self._teardown()
        except Exception as e:
            raise IOFailure(f"Failed to discard capture {self.path}: {e}") from e
        logger.info("capture_cancelled", extra={"path": str(self.path)})
