from __future__ import annotations

from argparse import Namespace
from pathlib import Path

from livetrans.app import services as app_services
from livetrans.app.state import ConversationPhase


def _args(tmp_path: Path, **overrides) -> Namespace:
    values = dict(
        device=None,
        sr=16000,
        channels=1,
        capture_path=str(tmp_path / "rec.ogg"),
        transcriber="openai",
        transcription_model="whisper-1",
        whisper_model="base",
        whisper_device="cpu",
        whisper_compute_type="int8",
        translator="stub",
        chat_model="gpt-4o-mini",
        api_base_url=None,
        request_timeout=20.0,
    )
    values.update(overrides)
    return Namespace(**values)


def _capture_factories(monkeypatch) -> dict[str, object]:
    captured: dict[str, object] = {}

    def _fake_transcriber(provider, **options):
        captured["transcriber"] = (provider, options)
        return object()

    def _fake_completion(provider, **options):
        captured["completion"] = (provider, options)
        return object()

    monkeypatch.setattr(app_services, "get_transcriber", _fake_transcriber)
    monkeypatch.setattr(app_services, "get_completion_stream", _fake_completion)
    return captured


def test_build_services_openai_backends(tmp_path: Path, monkeypatch) -> None:
    captured = _capture_factories(monkeypatch)
    services = app_services.build_session_services(
        _args(tmp_path, translator="openai", api_base_url="http://localhost:8080/v1")
    )
    assert services.capture.path == tmp_path / "rec.ogg"
    assert services.capture.sample_rate == 16000
    assert captured["transcriber"] == (
        "openai",
        {"model": "whisper-1", "base_url": "http://localhost:8080/v1", "timeout": 20.0},
    )
    assert captured["completion"] == (
        "openai",
        {"model": "gpt-4o-mini", "base_url": "http://localhost:8080/v1", "timeout": 20.0},
    )


def test_build_services_local_whisper_and_stub(tmp_path: Path, monkeypatch) -> None:
    captured = _capture_factories(monkeypatch)
    app_services.build_session_services(_args(tmp_path, transcriber="faster-whisper", whisper_model="tiny"))
    assert captured["transcriber"] == (
        "faster-whisper",
        {"model_size": "tiny", "device": "cpu", "compute_type": "int8"},
    )
    assert captured["completion"] == ("stub", {})


def test_build_session_starts_idle(tmp_path: Path) -> None:
    session = app_services.build_session(_args(tmp_path))
    assert session.phase == ConversationPhase.IDLE
    assert len(session.log) == 0
