from __future__ import annotations

# Order matters: backslashes are escaped before the quotes that introduce new ones.
JSON_CHARACTERS_TO_ESCAPE = ("\\", '"')


def escape_json_string(value: str) -> str:
    """Escape JSON-significant characters so the text can be re-embedded in a JSON string."""
    for character in JSON_CHARACTERS_TO_ESCAPE:
        value = value.replace(character, "\\" + character)
    return value
