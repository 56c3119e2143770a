"""URL fingerprinting for cross-cycle deduplication.

The fingerprint is the SHA-256 of a normalized URL. Two URLs that differ
only by letter case, a single trailing slash, a fragment, or tracking
query parameters share a fingerprint.
"""

import hashlib
from urllib.parse import parse_qsl, urlencode, urlsplit


# Exact parameter names dropped before hashing; anything starting with
# TRACKING_PARAM_PREFIX is dropped as well.
TRACKING_PARAMS: frozenset[str] = frozenset({"fbclid", "gclid", "ref", "source"})
TRACKING_PARAM_PREFIX = "utm_"

_DEFAULT_PORTS = {"http": 80, "https": 443}


def is_tracking_param(name: str) -> bool:
    """Check whether a query parameter is a tracking parameter.

    Args:
        name: Query parameter name.

    Returns:
        True if the parameter is dropped during normalization.
    """
    lowered = name.lower()
    return lowered in TRACKING_PARAMS or lowered.startswith(TRACKING_PARAM_PREFIX)


def normalize_url(url: str) -> str:
    """Normalize a URL into its deduplication form.

    Steps, in order: parse, drop tracking parameters, drop the fragment,
    rebuild as ``scheme://host/path[?query]``, lowercase the result and
    strip one trailing slash. Unparseable input (or input with no scheme
    or host) falls back to the trimmed, lowercased raw string.

    Args:
        url: Raw URL as delivered by the feed.

    Returns:
        Normalized URL string. Never raises.
    """
    try:
        parts = urlsplit(url.strip())
        scheme = parts.scheme
        hostname = parts.hostname
        port = parts.port
    except ValueError:
        return url.lower().strip()

    if not scheme or not hostname:
        return url.lower().strip()

    host = hostname
    if port is not None and port != _DEFAULT_PORTS.get(scheme.lower()):
        host = f"{hostname}:{port}"

    path = parts.path or "/"
    kept = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not is_tracking_param(key)
    ]

    normalized = f"{scheme}://{host}{path}"
    if kept:
        normalized += f"?{urlencode(kept)}"

    normalized = normalized.lower()
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


def fingerprint(url: str) -> str:
    """Compute the deduplication fingerprint of a URL.

    Args:
        url: Raw URL.

    Returns:
        64-character lowercase hex SHA-256 digest of the normalized URL.

    Examples:
        >>> fingerprint("https://Site.com/a/?utm_source=x") == fingerprint(
        ...     "https://site.com/a"
        ... )
        True
    """
    normalized = normalize_url(url)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()
