"""
Validation — Pre-flight checks run before any collection step.

validate_invocation() first checks configuration without touching the
network, then makes one authenticated whoami call so that a bad API key
fails fast instead of halfway through a sweep.
"""

from typing import Optional

from config import IntegrationConfig

from .atspoke_client import AtSpokeClient, create_api_client
from .errors import ConfigurationError


def validate_integration_config(config: IntegrationConfig):
    """Raise ConfigurationError if required settings are missing."""
    if not config.api_key:
        raise ConfigurationError("Config requires all of {apiKey}")


def validate_invocation(config: IntegrationConfig, client: Optional[AtSpokeClient] = None):
    """Validate configuration, then verify the API key against atSpoke.

    Raises:
        ConfigurationError: If the API key is missing. No request is made.
        ProviderAuthenticationError: If the whoami call fails.
    """
    validate_integration_config(config)
    (client or create_api_client(config)).verify_authentication()
