"""
Settings — Default configuration values for the atSpoke graph connector.

This module provides the DEFAULT_SETTINGS dict that the orchestrator uses as
fallback values when environment variables are not set, plus the fixed facts
about the atSpoke v1 API (base URL, endpoints, page sizes).

Configuration precedence (highest to lowest):
  1. CLI flags (--debug, --push, --num-requests)
  2. Environment variables (from .env file)
  3. DEFAULT_SETTINGS (this file)

Settings reference:
  PROVIDER_NAME           Label used for the Veza provider and output folder naming
  PROVIDER_PREFIX         Optional prefix for the Veza provider name
  OUTPUT_DIR              Where to write extraction output (default: ./output)
  OUTPUT_RETENTION_DAYS   How many days to keep old output folders (0 = keep forever)
  DRY_RUN                 When True, nothing is pushed to Veza
  SAVE_JSON               Whether to write the OAA payload to disk (default: True)
  DEBUG                   Whether to print verbose output (default: False)
  NUM_REQUESTS            Record cap for the requests/request types sweeps (0 = skip)
  REQUEST_TIMEOUT         Per-request HTTP timeout in seconds
"""

PROVIDER_NAME = "atSpoke"

API_BASE_URL = "https://api.askspoke.com/api/v1"

# Sent as the "client" header on every request
CLIENT_IDENTIFIER = "atSpoke-OAA Integration client"

ENDPOINTS = {
    "whoami": f"{API_BASE_URL}/whoami",
    "users": f"{API_BASE_URL}/users",
    "teams": f"{API_BASE_URL}/teams",
    "webhooks": f"{API_BASE_URL}/webhooks",
    "requests": f"{API_BASE_URL}/requests",
    "request_types": f"{API_BASE_URL}/request_types",
}

# Page sizes are fixed per endpoint. Do not raise USERS/TEAMS above 25:
# atSpoke breaks offset paging on those endpoints when ai=true.
USERS_PAGE_SIZE = 25
TEAMS_PAGE_SIZE = 25
REQUESTS_PAGE_SIZE = 100  # the max of the atSpoke v1 API
REQUEST_TYPES_PAGE_SIZE = 25

# The requests endpoint returns only OPEN requests unless told otherwise
REQUEST_STATUS_FILTER = ("OPEN", "RESOLVED")

USER_WEB_LINK_TEMPLATE = "https://{org}.askspoke.com/users/{user_id}"
ACCOUNT_WEB_LINK_TEMPLATE = "https://{org}.askspoke.com"

DEFAULT_SETTINGS = {
    "PROVIDER_NAME": PROVIDER_NAME,
    "PROVIDER_PREFIX": "",
    "OUTPUT_DIR": "./output",
    "OUTPUT_RETENTION_DAYS": 30,
    "DRY_RUN": True,
    "SAVE_JSON": True,
    "DEBUG": False,
    "NUM_REQUESTS": 0,
    "REQUEST_TIMEOUT": 30,
}
