"""Constants for the transport layer.

Centralizes relay prefixes, default deadlines, and HTTP method sets so the
strategy table and the dispatcher never hard-code them.
"""

# HTTP status code bounds for a well-formed response line
HTTP_STATUS_MIN = 100
HTTP_STATUS_MAX = 600
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300

# HTTP methods
METHOD_GET = "GET"
METHOD_POST = "POST"
ALL_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})
GET_ONLY = frozenset({METHOD_GET})
GET_AND_POST = frozenset({METHOD_GET, METHOD_POST})

# Default per-strategy deadlines (seconds)
DEFAULT_DIRECT_TIMEOUT_SECONDS = 3.0
DEFAULT_RELAY_TIMEOUT_SECONDS = 7.0
DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0

# Public relay prefixes; the percent-encoded target URL is appended verbatim
ALLORIGINS_PREFIX = "https://api.allorigins.win/raw?url="
CORSPROXY_PREFIX = "https://corsproxy.io/?"
CODETABS_PREFIX = "https://api.codetabs.com/v1/proxy/?quest="

# Strategy names
STRATEGY_DIRECT = "direct"
STRATEGY_ALLORIGINS = "allorigins"
STRATEGY_CORSPROXY = "corsproxy"
STRATEGY_CODETABS = "codetabs"

# Harmless URL used by the connectivity probe
DEFAULT_PROBE_URL = "https://google.com"

DEFAULT_USER_AGENT = "captive-relay/0.1"

# Log component name
COMPONENT_TRANSPORT = "transport"
COMPONENT_PROBE = "probe"
