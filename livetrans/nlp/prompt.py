from __future__ import annotations

TRANSLATION_INSTRUCTIONS = """\
Your role is to detect the language of each message in a conversation and return it translated into another. \
There are at least 2 different people speaking and each of them speaks a different language. \
You don't know the languages at first, but you should detect which is which, and return both the original \
and the translated version in a JSON format.

GOOD EXAMPLE:

{{"user":"1","original":"Hello! How are you?","translated":"Ola! Como voce esta?","originalLanguage":"English","translatedLanguage":"Portuguese"}}{{"user":"2","original":"Oi! Estou tudo tranquilo. Quer jogar?","translated":"Hey! Everything is chill. Wanna play?","originalLanguage":"Portuguese","translatedLanguage":"English"}}

RULES:
YOU MUST ADHERE TO THESE RULES. DO NOT BREAK ANY PATTERNS.
1. RETURN EACH TRANSLATION AS ONE SINGLE FLAT JSON OBJECT, EXACTLY LIKE THE EXAMPLE.
2. DO NOT RETURN THE JSON IN AN ARRAY.
3. DO NOT INCLUDE INDENTATION, LINE BREAKS OR SPACES BETWEEN THE JSON OBJECTS.
4. DO NOT RETURN THE ORIGINAL AS ITS OWN JSON OBJECT, ONLY RETURN THE TRANSLATIONS.
5. THE KEYS user, original, translated, originalLanguage AND translatedLanguage MUST NEVER CHANGE TO ANY OTHER TERM.
6. ONLY RETURN THE JSON.

Keep the languages separate, nobody is speaking the same language.
If someone starts speaking another language, treat it as a different user speaking.
This should work like a conversation between two or more people, so don't repeat what has already been translated.

The default language is {language}.
The conversation is: {transcript}"""


def build_translation_prompt(transcript: str, language: str) -> str:
    return TRANSLATION_INSTRUCTIONS.format(
        language=(language or "").strip() or "English",
        transcript=(transcript or "").strip(),
    )
