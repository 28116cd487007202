"""Helpers for safe logging of server URLs.

InfluxDB 1.x takes credentials in the query string (``u=...&p=...``) and
either server type may carry ``user:password@`` in the authority.  Every
log line that names the destination goes through :func:`redact_url`.
"""

from __future__ import annotations

from yarl import URL

_SENSITIVE_QUERY_KEYS: frozenset[str] = frozenset(
    {
        "p",
        "password",
        "token",
        "authorization",
    }
)

_REDACTED = "REDACTED"


def redact_url(url: str) -> str:
    """Return *url* with passwords and tokens replaced by a placeholder."""
    try:
        parsed = URL(url)
    except (TypeError, ValueError):
        return url

    if parsed.password is not None:
        parsed = parsed.with_password(_REDACTED)

    if parsed.query:
        if any(key.lower() in _SENSITIVE_QUERY_KEYS for key in parsed.query):
            parsed = parsed.with_query(
                [
                    (key, _REDACTED if key.lower() in _SENSITIVE_QUERY_KEYS else value)
                    for key, value in parsed.query.items()
                ]
            )
    return str(parsed)
