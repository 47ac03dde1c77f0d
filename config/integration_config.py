"""
Integration config — The explicit configuration value handed to the API client
and to every step.

The core never reads the environment on its own; the orchestrator builds an
IntegrationConfig from .env/environment values and passes it down.
"""

import re
from dataclasses import dataclass
from typing import Any

from .settings import DEFAULT_SETTINGS

LEADING_INTEGER = re.compile(r"^\s*([+-]?\d+)")


def parse_record_limit(value: Any) -> int:
    """Parse the NUM_REQUESTS record cap.

    Reads the leading integer and ignores anything after it, so "5.5" and
    "10 requests" give 5 and 10. Blank, missing, or non-numeric values
    disable the capped sweeps (0).

    Examples:
        parse_record_limit("5") -> 5
        parse_record_limit("5.5") -> 5
        parse_record_limit("") -> 0
        parse_record_limit(None) -> 0
        parse_record_limit("lots") -> 0
    """
    if value is None:
        return 0
    match = LEADING_INTEGER.match(str(value))
    return int(match.group(1)) if match else 0


@dataclass(frozen=True)
class IntegrationConfig:
    """Connection settings for one atSpoke account.

    Attributes:
        api_key: The atSpoke API key, sent as the "Api-Key" header.
        num_requests: Record cap for the requests and request types sweeps.
            Zero or less means those sweeps do not run at all.
        request_timeout: Per-request HTTP timeout in seconds.
    """

    api_key: str
    num_requests: int = 0
    request_timeout: int = DEFAULT_SETTINGS["REQUEST_TIMEOUT"]
