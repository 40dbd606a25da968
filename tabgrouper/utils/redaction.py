"""
Redaction helpers for keeping provider credentials out of logs.

Provides:
- redact(): Hash sensitive strings for correlation without exposure
- redact_url(): Mask credential query parameters in provider URLs
"""

from __future__ import annotations

from hashlib import sha256
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

# Query parameters that carry credentials (Gemini passes its key as ?key=)
SECRET_QUERY_PARAMS = frozenset({"key", "api_key", "apikey", "access_token", "token"})


def redact(value: str | None) -> str:
    """
    Return a stable hash representation of a sensitive string.
    """
    if not value:
        return "hash:missing"
    digest = sha256(value.encode("utf-8")).hexdigest()[:12]
    return f"hash:{digest}"


def redact_url(url: str) -> str:
    """
    Replace credential query parameter values with a hash.

    Example:
        ".../gemini-2.0-flash:generateContent?key=AIza..." ->
        ".../gemini-2.0-flash:generateContent?key=hash:1a2b3c4d5e6f"
    """
    parts = urlsplit(url)
    if not parts.query:
        return url

    query = [
        (name, redact(value) if name.lower() in SECRET_QUERY_PARAMS else value)
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe=":")))

