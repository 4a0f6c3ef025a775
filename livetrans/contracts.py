from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping

from livetrans.errors import SchemaMismatch

# Wire key -> attribute name. Key names are fixed by the completion prompt.
TRANSLATION_KEYS: dict[str, str] = {
    "user": "user",
    "original": "original",
    "translated": "translated",
    "originalLanguage": "original_language",
    "translatedLanguage": "translated_language",
}


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Translation:
    user: str
    original: str
    translated: str
    original_language: str
    translated_language: str
    id: str = field(default_factory=_new_id)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Translation":
        """
        Build a record from one decoded stream object.
        Extra keys are ignored; missing or non-string required keys raise SchemaMismatch.
        """
        if not isinstance(payload, Mapping):
            raise SchemaMismatch(f"expected a JSON object, got {type(payload).__name__}")
        missing = [key for key in TRANSLATION_KEYS if key not in payload]
        if missing:
            raise SchemaMismatch(f"missing keys: {', '.join(missing)}")
        kwargs: dict[str, str] = {}
        for key, attr in TRANSLATION_KEYS.items():
            value = payload[key]
            if not isinstance(value, str):
                raise SchemaMismatch(f"key {key!r} must be a string, got {type(value).__name__}")
            kwargs[attr] = value
        return cls(**kwargs)

    def as_dict(self) -> dict[str, str]:
        out = {"id": self.id}
        for key, attr in TRANSLATION_KEYS.items():
            out[key] = getattr(self, attr)
        return out


@dataclass(frozen=True)
class StateChanged:
    previous: Any  # ConversationState
    current: Any  # ConversationState
    event: str


@dataclass(frozen=True)
class TranslationAppended:
    translation: Translation
    index: int
