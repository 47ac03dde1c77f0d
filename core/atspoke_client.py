"""
atSpoke API Client — Handles authentication and paginated reads from atSpoke.

This module is responsible for all HTTP communication with atSpoke. Every
call is a GET against the fixed v1 API with a static API key header:

    GET https://api.askspoke.com/api/v1/users?start=0&limit=25
    Headers: Api-Key: <key>, client: atSpoke-OAA Integration client
    Response: {"results": [ {...}, {...} ]}

Pagination:
    The list endpoints use offset paging ("start" / "limit"). A page that
    comes back with fewer rows than the page size is the last one. A page
    that is exactly full always triggers one more fetch, which may come back
    empty. Page sizes are fixed per endpoint (see config/settings.py) and are
    not caller-configurable.

    Pages are fetched strictly one after another, and the iteratee finishes
    with every record of a page before the next page is requested. Steps rely
    on this: teams look up user entities that the users sweep created.

Capped sweeps:
    Requests and request types can be unbounded, so they only run when
    IntegrationConfig.num_requests > 0. The cap is compared with the offset
    before each fetch; every record of a fetched page is delivered.

Error handling:
    contact_api() turns every failure (non-200 status, transport error, bad
    JSON) into a ProviderAuthenticationError. Nothing is retried.

Pipeline context:
    Created once per run by the orchestrator and handed to every step through
    the StepExecutionContext. Also used by validate_invocation() for the
    pre-flight whoami call.
"""

import logging
from typing import Any, Callable, Dict, Optional, TypeVar

import requests

from config import IntegrationConfig
from config.settings import (
    CLIENT_IDENTIFIER,
    ENDPOINTS,
    REQUEST_STATUS_FILTER,
    REQUEST_TYPES_PAGE_SIZE,
    REQUESTS_PAGE_SIZE,
    TEAMS_PAGE_SIZE,
    USERS_PAGE_SIZE,
)

from .errors import ProviderAuthenticationError
from .models import (
    AtSpokeRequest,
    AtSpokeRequestType,
    AtSpokeTeam,
    AtSpokeUser,
    AtSpokeWebhook,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

ResourceIteratee = Callable[[T], None]


class AtSpokeClient:
    """Client for the atSpoke v1 REST API.

    Manages a requests.Session with the API key and client identifier headers
    set once. All API calls go through contact_api().

    Attributes:
        config: The IntegrationConfig for this account.
    """

    def __init__(self, config: IntegrationConfig):
        self.config = config
        self._session = requests.Session()
        self._session.headers.update({
            "client": CLIENT_IDENTIFIER,
            "Content-Type": "application/json",
            "Api-Key": config.api_key,
        })

    def verify_authentication(self) -> None:
        """Make the lightest authenticated call possible.

        Raises:
            ProviderAuthenticationError: If the API key is rejected or atSpoke
                cannot be reached.
        """
        self.contact_api(ENDPOINTS["whoami"])

    def get_account_info(self) -> Dict[str, Any]:
        """Return the whoami body, used to build the account entity."""
        return self.contact_api(ENDPOINTS["whoami"])

    def iterate_users(self, iteratee: ResourceIteratee[AtSpokeUser]) -> int:
        """Iterate every atSpoke user.

        Returns:
            The number of users passed to the iteratee.
        """
        return self._paginate(
            ENDPOINTS["users"],
            USERS_PAGE_SIZE,
            lambda record: iteratee(AtSpokeUser.from_api(record)),
        )

    def iterate_teams(self, iteratee: ResourceIteratee[AtSpokeTeam]) -> int:
        """Iterate every atSpoke team with its agentList flattened into `users`.

        Returns:
            The number of teams passed to the iteratee.
        """
        return self._paginate(
            ENDPOINTS["teams"],
            TEAMS_PAGE_SIZE,
            lambda record: iteratee(AtSpokeTeam.from_api(record)),
        )

    def iterate_webhooks(self, iteratee: ResourceIteratee[AtSpokeWebhook]) -> int:
        """Iterate every webhook. The endpoint is not paged; one call returns all."""
        reply = self.contact_api(ENDPOINTS["webhooks"])
        webhooks = reply.get("results") or []
        for webhook in webhooks:
            iteratee(AtSpokeWebhook.from_api(webhook))
        logger.info("Fetched %d records from %s", len(webhooks), ENDPOINTS["webhooks"])
        return len(webhooks)

    def iterate_requests(self, iteratee: ResourceIteratee[AtSpokeRequest]) -> int:
        """Iterate OPEN and RESOLVED requests, most recent first, up to the cap.

        Makes no API call at all unless config.num_requests > 0.
        """
        if self.config.num_requests <= 0:
            logger.debug("NUM_REQUESTS is 0, skipping requests sweep")
            return 0
        return self._paginate(
            ENDPOINTS["requests"],
            REQUESTS_PAGE_SIZE,
            lambda record: iteratee(AtSpokeRequest.from_api(record)),
            record_limit=self.config.num_requests,
            params={"status": ",".join(REQUEST_STATUS_FILTER)},
        )

    def iterate_request_types(self, iteratee: ResourceIteratee[AtSpokeRequestType]) -> int:
        """Iterate request types up to the cap.

        Makes no API call at all unless config.num_requests > 0.
        """
        if self.config.num_requests <= 0:
            logger.debug("NUM_REQUESTS is 0, skipping request types sweep")
            return 0
        return self._paginate(
            ENDPOINTS["request_types"],
            REQUEST_TYPES_PAGE_SIZE,
            lambda record: iteratee(AtSpokeRequestType.from_api(record)),
            record_limit=self.config.num_requests,
        )

    def contact_api(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET a URL and return the decoded JSON body.

        Args:
            url: One of the atSpoke endpoints.
            params: Optional flat query parameters.

        Returns:
            The decoded JSON body, unchanged.

        Raises:
            ProviderAuthenticationError: On any non-200 status, transport
                error, or JSON decode error.
        """
        logger.debug("GET %s params=%s", url, params)
        try:
            response = self._session.get(url, params=params, timeout=self.config.request_timeout)
        except requests.RequestException as e:
            raise ProviderAuthenticationError(
                endpoint=url, status=None, status_text=str(e), cause=e,
            ) from e

        if response.status_code != 200:
            raise ProviderAuthenticationError(
                endpoint=url,
                status=response.status_code,
                status_text=f"Received HTTP status {response.status_code}",
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderAuthenticationError(
                endpoint=url,
                status=response.status_code,
                status_text="Response body is not valid JSON",
                cause=e,
            ) from e

    def _paginate(
        self,
        url: str,
        page_size: int,
        iteratee: Callable[[Dict[str, Any]], None],
        record_limit: Optional[int] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Sweep an offset/limit endpoint from offset 0.

        Stops after a short page (fewer than page_size rows), or once the
        offset reaches record_limit when one is given.

        Returns:
            The number of records passed to the iteratee.
        """
        start = 0  # 0 is the most recent record
        count = 0
        while record_limit is None or start < record_limit:
            query = {"start": start, "limit": page_size}
            if params:
                query.update(params)

            reply = self.contact_api(url, query)
            page = reply.get("results") or []

            for record in page:
                iteratee(record)
            count += len(page)

            if len(page) < page_size:
                break
            start += page_size

        logger.info("Fetched %d records from %s", count, url)
        return count


def create_api_client(config: IntegrationConfig) -> AtSpokeClient:
    return AtSpokeClient(config)
