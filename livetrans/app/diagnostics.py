from __future__ import annotations

from livetrans.errors import (
    DeviceUnavailable,
    IOFailure,
    LiveTranslationError,
    StreamFailure,
    TranscriptionFailed,
)


def summarize_exception(detail: str, *, max_len: int = 220) -> str:
    text = str(detail or "").strip()
    if not text:
        return "Unknown runtime error."
    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    if not lines:
        return "Unknown runtime error."
    for ln in reversed(lines):
        if ln.startswith("File "):
            continue
        if ln.startswith("^"):
            continue
        if ln.startswith("Traceback "):
            continue
        out = ln
        break
    else:
        out = lines[-1]
    if len(out) > max_len:
        return out[: max_len - 3].rstrip() + "..."
    return out


def hint_for_exception(summary: str) -> str:
    s = str(summary or "").lower()
    if "api_key" in s or "api key" in s or "401" in s:
        return "OpenAI rejected the credentials. Set OPENAI_API_KEY and retry."
    if "no module named" in s or "is not installed" in s:
        return "A required package is missing in this virtualenv. Reinstall dependencies and retry."
    if "config file not found" in s:
        return "Configured JSON file is missing. Update the config path or restore the file."
    if "microphone" in s or "portaudio" in s:
        return "Microphone init failed. Check input device selection and app mic permissions."
    if "timed out" in s or "timeout" in s or "connection" in s:
        return "The service did not answer. Check the network connection and retry."
    return "Check logs for full traceback."


_LABELS: dict[type, str] = {
    DeviceUnavailable: "Microphone unavailable",
    IOFailure: "Recording could not be read",
    TranscriptionFailed: "Transcription failed",
    StreamFailure: "Translation stream failed",
}


def describe_failure(exc: BaseException) -> str:
    """Human-readable cause for the ERROR state: label, summary and a hint."""
    summary = summarize_exception(str(exc) or type(exc).__name__)
    label = "Unexpected error"
    if isinstance(exc, LiveTranslationError):
        label = "Error"
        for exc_type, text in _LABELS.items():
            if isinstance(exc, exc_type):
                label = text
                break
    return f"{label}: {summary} ({hint_for_exception(summary)})"
