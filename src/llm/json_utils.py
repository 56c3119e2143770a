"""Shared JSON parsing utilities for LLM response handling.

Provides robust parsing of JSON objects from LLM output, handling
common issues like markdown fences, invalid escape sequences, and
prose before or after the JSON payload.
"""

from __future__ import annotations

import json
import re


def fix_escape_sequences(text: str) -> str:
    """Fix invalid JSON escape sequences in LLM output.

    LLMs sometimes produce backslash sequences like ``\\_`` that are
    invalid in JSON strings. This replaces lone backslashes with
    double-backslashes where they don't form a valid JSON escape.

    Args:
        text: Raw text potentially containing invalid escapes.

    Returns:
        Text with invalid escape sequences fixed.
    """
    return re.sub(r'(?<!\\)\\(?!["\\/bfnrtu])', r"\\\\", text)


def try_parse_json_object(text: str) -> dict[str, object] | None:
    """Try to parse text as a JSON object, with escape-sequence fallback.

    Args:
        text: Raw JSON text from LLM response.

    Returns:
        Parsed dict if successful, None otherwise.
    """
    for candidate in (text, fix_escape_sequences(text)):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def extract_first_json_object(text: str) -> str | None:
    """Extract the first balanced ``{...}`` block from text.

    Braces inside JSON string literals are ignored.

    Args:
        text: Raw text potentially containing a JSON object.

    Returns:
        Extracted JSON object string, or None if no balanced block found.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def json_candidates(text: str) -> list[str]:
    """Generate candidate JSON strings to try parsing.

    Returns the full text first, then the first extracted object block
    if it differs.

    Args:
        text: Raw text from LLM response.

    Returns:
        List of candidate strings to attempt parsing.
    """
    candidates = [text]
    extracted = extract_first_json_object(text)
    if extracted and extracted != text:
        candidates.append(extracted)
    return candidates


def parse_json_object(text: str) -> dict[str, object] | None:
    """Parse the JSON object in an LLM response, trying every candidate.

    Args:
        text: Raw text from LLM response.

    Returns:
        The first candidate that parses as an object, or None.
    """
    cleaned = strip_markdown_fences(text)
    for candidate in json_candidates(cleaned):
        parsed = try_parse_json_object(candidate)
        if parsed is not None:
            return parsed
    return None


def strip_markdown_fences(text: str) -> str:
    """Strip markdown code fences from LLM response text.

    Args:
        text: Raw text potentially wrapped in code fences.

    Returns:
        Text with code fences removed.
    """
    text = text.strip()
    if text.startswith("```"):
        first_newline = text.find("\n")
        if first_newline != -1:
            text = text[first_newline + 1 :]
        if text.endswith("```"):
            text = text[: -len("```")]
        text = text.strip()
    return text
