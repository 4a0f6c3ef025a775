from __future__ import annotations

import os
from types import SimpleNamespace

import httpx
import openai
import pytest

from livetrans.asr import factory as asr_factory
from livetrans.asr.faster_whisper_bytes import FasterWhisperTranscriptionClient
from livetrans.asr.openai_client import OpenAITranscriptionClient
from livetrans.errors import TranscriptionFailed


class _FakeTranscriptions:
    def __init__(self, text: str = "", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def _openai_client(transcriptions: _FakeTranscriptions):
    return SimpleNamespace(audio=SimpleNamespace(transcriptions=transcriptions))


def test_openai_transcribe_sends_file_and_hint() -> None:
    fake = _FakeTranscriptions(text="  Hello! How are you?  ")
    client = OpenAITranscriptionClient(client=_openai_client(fake))
    assert client.transcribe(b"OggS-data", "English") == "Hello! How are you?"
    assert fake.calls == [
        {"model": "whisper-1", "file": ("recording.ogg", b"OggS-data"), "prompt": "English"}
    ]


def test_openai_transcribe_without_hint_omits_prompt() -> None:
    fake = _FakeTranscriptions(text="oi")
    client = OpenAITranscriptionClient(model="gpt-4o-transcribe", client=_openai_client(fake))
    assert client.transcribe(b"x") == "oi"
    assert "prompt" not in fake.calls[0]
    assert fake.calls[0]["model"] == "gpt-4o-transcribe"


def test_openai_transcribe_empty_audio_skips_request() -> None:
    fake = _FakeTranscriptions(text="unused")
    client = OpenAITranscriptionClient(client=_openai_client(fake))
    assert client.transcribe(b"", "English") == ""
    assert fake.calls == []


def test_openai_connection_error_becomes_transcription_failed() -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
    fake = _FakeTranscriptions(error=openai.APIConnectionError(request=request))
    client = OpenAITranscriptionClient(client=_openai_client(fake))
    with pytest.raises(TranscriptionFailed, match="transcription request failed"):
        client.transcribe(b"x", "English")


def test_openai_transport_error_becomes_transcription_failed() -> None:
    fake = _FakeTranscriptions(error=httpx.ConnectError("connection refused"))
    client = OpenAITranscriptionClient(client=_openai_client(fake))
    with pytest.raises(TranscriptionFailed):
        client.transcribe(b"x")


class _FakeWhisperModel:
    def __init__(self, texts: list[str], error: Exception | None = None) -> None:
        self.texts = texts
        self.error = error
        self.calls: list[tuple[str, dict]] = []
        self.seen_bytes = b""

    def transcribe(self, path: str, **kwargs):
        self.calls.append((path, kwargs))
        with open(path, "rb") as f:
            self.seen_bytes = f.read()
        if self.error is not None:
            raise self.error
        return (SimpleNamespace(text=t) for t in self.texts), SimpleNamespace(language="en")


def test_faster_whisper_joins_segments_and_removes_temp_file(monkeypatch) -> None:
    model = _FakeWhisperModel([" Hello! ", "", " How are you? "])
    client = FasterWhisperTranscriptionClient(model_size="tiny")
    monkeypatch.setattr(client, "_get_model", lambda: model)

    assert client.transcribe(b"OggS-bytes", "English") == "Hello! How are you?"
    path, kwargs = model.calls[0]
    assert model.seen_bytes == b"OggS-bytes"
    assert path.endswith(".ogg")
    assert not os.path.exists(path)
    assert kwargs["initial_prompt"] == "English"
    assert kwargs["vad_filter"] is False


def test_faster_whisper_blank_hint_passes_none(monkeypatch) -> None:
    model = _FakeWhisperModel(["x"])
    client = FasterWhisperTranscriptionClient()
    monkeypatch.setattr(client, "_get_model", lambda: model)
    client.transcribe(b"a")
    assert model.calls[0][1]["initial_prompt"] is None


def test_faster_whisper_decode_error_becomes_transcription_failed(monkeypatch) -> None:
    model = _FakeWhisperModel([], error=RuntimeError("Invalid data found when processing input"))
    client = FasterWhisperTranscriptionClient()
    monkeypatch.setattr(client, "_get_model", lambda: model)
    with pytest.raises(TranscriptionFailed, match="decode failed"):
        client.transcribe(b"not audio")
    assert not os.path.exists(model.calls[0][0])


def test_faster_whisper_load_error_becomes_transcription_failed(monkeypatch) -> None:
    client = FasterWhisperTranscriptionClient(model_size="huge")

    def _boom():
        raise RuntimeError("model not found")

    monkeypatch.setattr(client, "_get_model", _boom)
    with pytest.raises(TranscriptionFailed, match="failed to load"):
        client.transcribe(b"a")


def test_get_transcriber_by_provider(monkeypatch) -> None:
    assert asr_factory.get_transcriber("openai", client=object()).name == "openai"
    assert asr_factory.get_transcriber("local").name == "faster-whisper"
    monkeypatch.setenv("LIVETRANS_TRANSCRIBER", "faster_whisper")
    assert asr_factory.get_transcriber().name == "faster-whisper"
    with pytest.raises(ValueError):
        asr_factory.get_transcriber("vosk")
