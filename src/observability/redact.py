"""Redaction helpers for values that end up in logs or error strings."""

import re


REDACTED_VALUE = "[REDACTED]"

# Query parameters that carry credentials (GNews passes its key as ?apikey=)
SENSITIVE_QUERY_PARAMS = frozenset({"apikey", "api_key", "key", "token"})

_QUERY_PARAM_PATTERN = re.compile(r"([?&])([^=&#]+)=([^&#]*)")


def redact_query_secrets(text: str) -> str:
    """Mask credential-bearing query parameters inside a URL or message.

    Args:
        text: A URL, or any string that may embed one (e.g. an httpx error).

    Returns:
        The text with sensitive parameter values replaced.
    """

    def _mask(match: re.Match[str]) -> str:
        sep, name, value = match.groups()
        if name.lower() in SENSITIVE_QUERY_PARAMS:
            value = REDACTED_VALUE
        return f"{sep}{name}={value}"

    return _QUERY_PARAM_PATTERN.sub(_mask, text)
