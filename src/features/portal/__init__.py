"""Captive-portal backend operations.

Request builders for registration, sign-in, one-time codes, and usage,
plus a client that sends them through the resilient transport.
"""

from src.features.portal.builders import (
    build_login_request,
    build_register_request,
    build_request_otp_request,
    build_usage_request,
    build_verify_otp_request,
    endpoint_url,
)
from src.features.portal.client import (
    PortalClient,
    extract_token,
    parse_response_body,
    summarize_usage,
)
from src.features.portal.models import LoginPayload, RegistrationPayload, UsageSummary


__all__ = [
    # Builders
    "build_register_request",
    "build_login_request",
    "build_request_otp_request",
    "build_verify_otp_request",
    "build_usage_request",
    "endpoint_url",
    # Client
    "PortalClient",
    "parse_response_body",
    "extract_token",
    "summarize_usage",
    # Models
    "RegistrationPayload",
    "LoginPayload",
    "UsageSummary",
]
