"""Redaction of secrets in request headers and URLs before they are logged."""

import re
from collections.abc import Mapping
from urllib.parse import urlsplit, urlunsplit

from typedhttp.http.query import QueryString


REDACTED_VALUE = "[REDACTED]"

# Compared lower-cased
SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "proxy-authorization",
        "cookie",
        "set-cookie",
        "x-api-key",
        "x-auth-token",
        "ocp-apim-subscription-key",
    }
)

SENSITIVE_QUERY_PARAMS = frozenset(
    {
        "access_token",
        "api_key",
        "apikey",
        "code",
        "key",
        "password",
        "sig",
        "signature",
        "token",
    }
)

_USER_INFO = re.compile(
    r"^(?P<scheme>[a-z][a-z0-9+.-]*://)[^/?#@]+@", re.IGNORECASE
)


def is_sensitive_header(header_name: str) -> bool:
    """Whether a header value must be hidden from logs."""
    return header_name.lower() in SENSITIVE_HEADERS


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy headers with sensitive values replaced.

    Args:
        headers: A plain mapping or ``httpx.Headers`` (keys come back as
            the mapping yields them).

    Returns:
        A new dict safe to log.
    """
    return {
        name: REDACTED_VALUE if is_sensitive_header(name) else value
        for name, value in headers.items()
    }


def redact_url_credentials(url: str) -> str:
    """Replace ``user:password@`` (or ``token@``) user info in a URL."""
    return _USER_INFO.sub(rf"\g<scheme>{REDACTED_VALUE}:{REDACTED_VALUE}@", url)


def redact_url(url: str) -> str:
    """Redact user info and sensitive query parameter values in a URL.

    Parameter order and non-sensitive values are kept, so the logged URL
    still shows the composed query.
    """
    parts = urlsplit(url)
    if not parts.query:
        return redact_url_credentials(url)

    query = QueryString()
    changed = False
    for name, value in QueryString.parse(parts.query):
        if name.lower() in SENSITIVE_QUERY_PARAMS:
            value = REDACTED_VALUE
            changed = True
        query = query.add(name, value)
    if changed:
        url = urlunsplit(parts._replace(query=query.render().lstrip("?")))
    return redact_url_credentials(url)
