from __future__ import annotations


class LiveTranslationError(RuntimeError):
    pass


class DeviceUnavailable(LiveTranslationError):
    """Capture could not start: permission denied, no input device, or device busy."""


class IOFailure(LiveTranslationError):
    """The capture file could not be finalized or read back."""


class TranscriptionFailed(LiveTranslationError):
    pass


class SchemaMismatch(LiveTranslationError):
    """One streamed object did not match the translation record schema."""


class StreamFailure(LiveTranslationError):
    pass


class InvalidTransition(LiveTranslationError):
    """The requested operation is not valid in the current conversation state."""
