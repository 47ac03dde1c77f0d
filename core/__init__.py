"""
Core package — The collection pipeline modules.

  orchestrator.py         Pipeline coordination (validate, collect, build, save, push)
  atspoke_client.py       HTTP communication with atSpoke, pagination, resource iterators
  models.py               Typed atSpoke records
  entity_mapper.py        atSpoke record -> graph entity
  graph.py                Entity/relationship helpers and the per-run JobState
  steps.py                Collection steps and their dependency order
  validation.py           Pre-flight checks
  application_builder.py  Graph -> Veza OAA CustomApplication
  veza_client.py          Veza push
  output_manager.py       Timestamped output folders
"""

from .orchestrator import AtSpokeOrchestrator
from .atspoke_client import AtSpokeClient, create_api_client
from .errors import (
    ConfigurationError,
    DuplicateKeyError,
    IntegrationError,
    MissingDependencyError,
    ProviderAuthenticationError,
    StepDependencyError,
)
from .graph import JobState
from .steps import INTEGRATION_STEPS, StepExecutionContext, execute_steps
from .application_builder import ApplicationBuilder
