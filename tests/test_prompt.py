from __future__ import annotations

from livetrans.nlp.prompt import build_translation_prompt


def test_prompt_ends_with_language_and_transcript() -> None:
    prompt = build_translation_prompt("  Hello! / Oi!  ", "Portuguese")
    assert prompt.endswith("The default language is Portuguese.\nThe conversation is: Hello! / Oi!")


def test_prompt_defaults_language_to_english() -> None:
    prompt = build_translation_prompt("hi", "  ")
    assert "The default language is English." in prompt


def test_prompt_carries_record_example_and_rules() -> None:
    prompt = build_translation_prompt("hi", "English")
    assert '{"user":"1","original":"Hello! How are you?"' in prompt
    for key in ("user", "original", "translated", "originalLanguage", "translatedLanguage"):
        assert key in prompt
    assert "DO NOT RETURN THE JSON IN AN ARRAY." in prompt
    assert "{{" not in prompt


def test_transcript_braces_are_not_format_fields() -> None:
    prompt = build_translation_prompt("set {x} to {language}", "English")
    assert prompt.endswith("The conversation is: set {x} to {language}")
