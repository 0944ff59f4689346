"""Header redaction and credential stripping."""

import re
from collections.abc import Mapping


# Headers that carry credentials; never logged, optionally never relayed
CREDENTIAL_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "x-api-key",
        "x-auth-token",
        "proxy-authorization",
    }
)

# Headers that must never appear in logs
SENSITIVE_HEADERS = CREDENTIAL_HEADERS | {"set-cookie"}

REDACTED_VALUE = "[REDACTED]"

_URL_CREDENTIALS_PATTERN = re.compile(r"(https?://)([^:/@]+):([^@/]+)@")
_ENCODED_URL_CREDENTIALS_PATTERN = re.compile(
    r"(https?%3A%2F%2F)([^%@]+)%3A([^@]+?)%40", re.IGNORECASE
)


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Redact sensitive headers for logging.

    Args:
        headers: Original headers dictionary.

    Returns:
        New dictionary with sensitive values replaced by [REDACTED].
    """
    return {
        key: REDACTED_VALUE if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


def strip_credentials(headers: Mapping[str, str]) -> dict[str, str]:
    """Drop credential headers before sending through an untrusted relay.

    Args:
        headers: Original headers dictionary.

    Returns:
        New dictionary without credential headers.
    """
    return {
        key: value
        for key, value in headers.items()
        if not is_credential_header(key)
    }


def is_credential_header(header_name: str) -> bool:
    """Check if a header name carries credentials."""
    return header_name.lower() in CREDENTIAL_HEADERS


def redact_url_credentials(url: str) -> str:
    """Redact user:password credentials from a URL.

    Also handles targets that were percent-encoded into a relay URL.

    Args:
        url: URL that may contain credentials.

    Returns:
        URL with credentials redacted.
    """
    url = _URL_CREDENTIALS_PATTERN.sub(r"\1[REDACTED]:[REDACTED]@", url)
    return _ENCODED_URL_CREDENTIALS_PATTERN.sub(
        r"\1[REDACTED]%3A[REDACTED]%40", url
    )
