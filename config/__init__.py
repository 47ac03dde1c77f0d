from .settings import DEFAULT_SETTINGS
from .integration_config import IntegrationConfig, parse_record_limit
