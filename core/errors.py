"""
Errors — The exception taxonomy of the connector.

Every failure in the extraction core is fatal: nothing here is retried or
recovered locally. Errors propagate out of the iterator into the step and on
to the orchestrator, which fails the whole run.

  ProviderAuthenticationError  Any non-200 response, transport error, or JSON
                               decode error from atSpoke. The name is broader
                               than the cause: a 500 or a timeout is reported
                               the same way as a 401.
  MissingDependencyError       A relationship (or a step) references an entity
                               that is not in the job state yet.
  DuplicateKeyError            An entity or relationship _key was emitted twice.
  ConfigurationError           Required configuration is missing (pre-flight).
  StepDependencyError          The step graph names an unknown step or has a cycle.
"""

from typing import Optional


class IntegrationError(Exception):
    """Base class for all connector errors."""


class ProviderAuthenticationError(IntegrationError):
    """The atSpoke API could not be contacted successfully.

    Attributes:
        endpoint: The URL that was requested.
        status: The HTTP status code, or None if no response was received.
        status_text: A human-readable description of the failure.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        endpoint: str,
        status: Optional[int] = None,
        status_text: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.endpoint = endpoint
        self.status = status
        self.status_text = status_text
        self.cause = cause
        super().__init__(
            f"Provider authentication failed at {endpoint}: {status} {status_text}"
        )


class MissingDependencyError(IntegrationError):
    """An entity expected in the job state does not exist."""

    def __init__(self, key: str, message: Optional[str] = None):
        self.key = key
        super().__init__(message or f"Expected entity with key to exist (key={key})")


class DuplicateKeyError(IntegrationError):
    """A graph object with the same _key was already emitted in this run."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Duplicate _key detected (_key={key})")


class ConfigurationError(IntegrationError):
    """Required configuration is missing or invalid."""


class StepDependencyError(IntegrationError):
    """The declared step dependencies cannot be satisfied."""
