from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from livetrans.app.config import default_capture_path
from livetrans.app.session import TranslationSession
from livetrans.asr.base import TranscriptionClient
from livetrans.asr.factory import get_transcriber
from livetrans.audio.capture import AudioCapture
from livetrans.audio.playback import AudioPlayer
from livetrans.nlp.translator.base import CompletionStream
from livetrans.nlp.translator.factory import get_completion_stream


@dataclass(frozen=True)
class SessionServices:
    capture: AudioCapture
    player: AudioPlayer
    transcriber: TranscriptionClient
    completion: CompletionStream


def _transcriber_options(args: Any) -> dict[str, Any]:
    if str(args.transcriber) == "faster-whisper":
        return {
            "model_size": str(args.whisper_model),
            "device": str(args.whisper_device),
            "compute_type": str(args.whisper_compute_type),
        }
    return {
        "model": str(args.transcription_model),
        "base_url": args.api_base_url,
        "timeout": float(args.request_timeout),
    }


def _completion_options(args: Any) -> dict[str, Any]:
    if str(args.translator) == "stub":
        return {}
    return {
        "model": str(args.chat_model),
        "base_url": args.api_base_url,
        "timeout": float(args.request_timeout),
    }


def build_session_services(args: Any) -> SessionServices:
    capture_path = Path(args.capture_path) if args.capture_path else default_capture_path()
    capture = AudioCapture(
        capture_path,
        sample_rate=int(args.sr),
        channels=int(args.channels),
        device=args.device,
    )
    player = AudioPlayer(device=args.device)
    transcriber = get_transcriber(str(args.transcriber), **_transcriber_options(args))
    completion = get_completion_stream(str(args.translator), **_completion_options(args))
    return SessionServices(
        capture=capture,
        player=player,
        transcriber=transcriber,
        completion=completion,
    )


def build_session(args: Any, logger: Any = None) -> TranslationSession:
    services = build_session_services(args)
    kwargs: dict[str, Any] = {}
    if logger is not None:
        kwargs["logger"] = logger
    return TranslationSession(
        capture=services.capture,
        transcriber=services.transcriber,
        completion=services.completion,
        player=services.player,
        **kwargs,
    )
