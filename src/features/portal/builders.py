"""Builders for the backend's logical requests.

Each builder is a pure function: typed input in, LogicalRequest out. Paths
are relative to the configured API endpoint, whose trailing slash is
significant.
"""

import json

from src.features.portal.models import LoginPayload, RegistrationPayload
from src.features.transport.constants import METHOD_GET, METHOD_POST
from src.features.transport.models import LogicalRequest


PATH_REGISTER = ""
PATH_TOKEN = "token/"
PATH_PHONE_TOKEN = "phone/token/"
PATH_PHONE_VERIFY = "phone/verify/"
PATH_USAGE = "usage/"

JSON_CONTENT_TYPE = "application/json"


def endpoint_url(api_endpoint: str, path: str) -> str:
    """Join the API endpoint and a relative path.

    Args:
        api_endpoint: Backend base URL; a missing trailing slash is added.
        path: Relative path such as "token/".

    Returns:
        Absolute URL.
    """
    base = api_endpoint if api_endpoint.endswith("/") else f"{api_endpoint}/"
    return f"{base}{path}"


def _json_headers(token: str | None = None) -> dict[str, str]:
    headers = {
        "Content-Type": JSON_CONTENT_TYPE,
        "Accept": JSON_CONTENT_TYPE,
    }
    if token is not None:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def build_register_request(
    api_endpoint: str, payload: RegistrationPayload
) -> LogicalRequest:
    """Build the account registration request."""
    return LogicalRequest(
        method=METHOD_POST,
        target_url=endpoint_url(api_endpoint, PATH_REGISTER),
        headers=_json_headers(),
        body=payload.model_dump_json().encode("utf-8"),
    )


def build_login_request(api_endpoint: str, payload: LoginPayload) -> LogicalRequest:
    """Build the token issuance (sign-in) request."""
    return LogicalRequest(
        method=METHOD_POST,
        target_url=endpoint_url(api_endpoint, PATH_TOKEN),
        headers=_json_headers(),
        body=payload.model_dump_json().encode("utf-8"),
    )


def build_request_otp_request(api_endpoint: str, token: str) -> LogicalRequest:
    """Build the request asking the backend to text a one-time code.

    The backend expects an empty body.
    """
    return LogicalRequest(
        method=METHOD_POST,
        target_url=endpoint_url(api_endpoint, PATH_PHONE_TOKEN),
        headers=_json_headers(token),
        body=b"",
    )


def build_verify_otp_request(
    api_endpoint: str, token: str, code: str
) -> LogicalRequest:
    """Build the one-time code verification request."""
    return LogicalRequest(
        method=METHOD_POST,
        target_url=endpoint_url(api_endpoint, PATH_PHONE_VERIFY),
        headers=_json_headers(token),
        body=json.dumps({"code": code}).encode("utf-8"),
    )


def build_usage_request(api_endpoint: str, token: str) -> LogicalRequest:
    """Build the usage query request."""
    return LogicalRequest(
        method=METHOD_GET,
        target_url=endpoint_url(api_endpoint, PATH_USAGE),
        headers={
            "Authorization": f"Bearer {token}",
            "Accept": JSON_CONTENT_TYPE,
        },
    )
