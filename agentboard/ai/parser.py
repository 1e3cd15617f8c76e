"""
Response Parser

Pulls JSON objects out of free-form model output. Models wrap JSON in
markdown fences or add preamble text, so the parser looks for the first
balanced {...} span instead of parsing the whole response.
"""

import json
from typing import Any


def extract_json_object(text: str) -> str | None:
    """
    Return the first balanced {...} substring of text.

    Braces inside JSON string literals are ignored, so a "}" in a task
    description does not close the object early.

    Args:
        text: Raw response text

    Returns:
        The object text, or None when the first opening brace never closes
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    # Truncated reply: the outer object never closes
    return None


def parse_json_object(text: str) -> dict[str, Any] | None:
    """
    Parse the first JSON object embedded in text.

    Returns:
        The decoded dict, or None when nothing decodes to an object
    """
    candidate = extract_json_object(text)
    if candidate is None:
        return None
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def string_list(value: Any) -> list[str]:
    """Coerce a decoded JSON value into a list of non-empty strings."""
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]
