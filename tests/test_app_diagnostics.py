from __future__ import annotations

from livetrans.app.diagnostics import describe_failure, hint_for_exception, summarize_exception
from livetrans.errors import DeviceUnavailable, InvalidTransition, StreamFailure, TranscriptionFailed


def test_summarize_exception_picks_last_meaningful_line() -> None:
    detail = (
        "Traceback (most recent call last):\n"
        '  File "x.py", line 1, in <module>\n'
        "    boom()\n"
        "RuntimeError: failed to start worker"
    )
    assert summarize_exception(detail) == "RuntimeError: failed to start worker"


def test_summarize_exception_truncates_long_line() -> None:
    detail = "ValueError: " + ("x" * 500)
    out = summarize_exception(detail, max_len=60)
    assert out.startswith("ValueError: ")
    assert out.endswith("...")
    assert len(out) <= 60


def test_summarize_exception_empty() -> None:
    assert summarize_exception("  ") == "Unknown runtime error."


def test_hint_for_exception_credentials() -> None:
    hint = hint_for_exception("Error code: 401 - invalid api key")
    assert "OPENAI_API_KEY" in hint


def test_hint_for_exception_microphone() -> None:
    hint = hint_for_exception("PortAudioError: Error querying device -1")
    assert "Microphone" in hint


def test_hint_for_exception_default() -> None:
    hint = hint_for_exception("RuntimeError: unknown")
    assert hint == "Check logs for full traceback."


def test_describe_failure_labels_by_error_type() -> None:
    assert describe_failure(DeviceUnavailable("Failed to open microphone stream.")).startswith(
        "Microphone unavailable: Failed to open microphone stream."
    )
    assert describe_failure(TranscriptionFailed("x")).startswith("Transcription failed: x")
    timeout = describe_failure(StreamFailure("completion stream broke: Request timed out."))
    assert timeout.startswith("Translation stream failed:")
    assert "network" in timeout
    assert describe_failure(InvalidTransition("nope")).startswith("Error: nope")


def test_describe_failure_unexpected_exception() -> None:
    out = describe_failure(KeyError())
    assert out.startswith("Unexpected error: KeyError")
