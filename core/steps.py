"""
Steps — The collection steps and the order they run in.

Each step is one function that drives one client iterator and writes the
mapped entities and relationships into the job state:

  fetch-account        whoami -> atspoke_account
  fetch-users          users -> atspoke_user, account HAS user
  fetch-teams          teams -> atspoke_team, account HAS team, team HAS user
  fetch-webhooks       webhooks -> atspoke_webhook, account HAS webhook
  fetch-requests       requests -> atspoke_request, account HAS request
  fetch-request-types  request types -> atspoke_requesttype, account HAS requesttype

Dependency graph:

  fetch-account ─┬─ fetch-users ── fetch-teams
                 ├─ fetch-webhooks
                 ├─ fetch-requests
                 └─ fetch-request-types

fetch-teams must run after fetch-users: every team member is looked up in
the job state, and a member that was never emitted as a user is a fatal
MissingDependencyError, not a skipped edge.

Steps run one at a time, in resolve_step_order() order. The first exception
stops the run.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from config import IntegrationConfig

from .atspoke_client import AtSpokeClient
from .entity_mapper import (
    ACCOUNT_ENTITY_TYPE,
    REQUEST_ENTITY_TYPE,
    REQUEST_TYPE_ENTITY_TYPE,
    TEAM_ENTITY_TYPE,
    USER_ENTITY_TYPE,
    WEBHOOK_ENTITY_TYPE,
    create_account_entity,
    create_request_entity,
    create_request_type_entity,
    create_team_entity,
    create_user_entity,
    create_webhook_entity,
)
from .errors import MissingDependencyError, StepDependencyError
from .graph import (
    DATA_ACCOUNT_ENTITY,
    JobState,
    RelationshipClass,
    create_direct_relationship,
)

logger = logging.getLogger(__name__)


@dataclass
class StepExecutionContext:
    config: IntegrationConfig
    client: AtSpokeClient
    job_state: JobState


@dataclass(frozen=True)
class StepEntityMetadata:
    resource_name: str
    _type: str
    _class: str


@dataclass(frozen=True)
class StepRelationshipMetadata:
    _type: str
    _class: str
    source_type: str
    target_type: str


@dataclass
class IntegrationStep:
    id: str
    name: str
    execution_handler: Callable[[StepExecutionContext], None]
    entities: List[StepEntityMetadata] = field(default_factory=list)
    relationships: List[StepRelationshipMetadata] = field(default_factory=list)
    depends_on: List[str] = field(default_factory=list)


def _get_account_entity(job_state: JobState) -> Dict[str, Any]:
    account_entity = job_state.get_data(DATA_ACCOUNT_ENTITY)
    if not account_entity:
        raise MissingDependencyError(
            DATA_ACCOUNT_ENTITY, "Account entity not found; fetch-account must run first"
        )
    return account_entity


def fetch_account_details(context: StepExecutionContext):
    account_info = context.client.get_account_info()
    account_entity = context.job_state.add_entity(create_account_entity(account_info))
    context.job_state.set_data(DATA_ACCOUNT_ENTITY, account_entity)


def fetch_users(context: StepExecutionContext):
    job_state = context.job_state
    account_entity = _get_account_entity(job_state)

    def handle_user(user):
        user_entity = job_state.add_entity(create_user_entity(user, account_entity))
        job_state.add_relationship(
            create_direct_relationship(RelationshipClass.HAS, account_entity, user_entity)
        )

    context.client.iterate_users(handle_user)


def fetch_teams(context: StepExecutionContext):
    job_state = context.job_state
    account_entity = _get_account_entity(job_state)

    def handle_team(team):
        team_entity = job_state.add_entity(create_team_entity(team))
        job_state.add_relationship(
            create_direct_relationship(RelationshipClass.HAS, account_entity, team_entity)
        )

        for user in team.users:
            user_entity = job_state.find_entity(user.id)
            if not user_entity:
                raise MissingDependencyError(user.id, f"Expected user with key to exist (key={user.id})")
            job_state.add_relationship(
                create_direct_relationship(RelationshipClass.HAS, team_entity, user_entity)
            )

    context.client.iterate_teams(handle_team)


def fetch_webhooks(context: StepExecutionContext):
    job_state = context.job_state
    account_entity = _get_account_entity(job_state)

    def handle_webhook(webhook):
        webhook_entity = job_state.add_entity(create_webhook_entity(webhook))
        job_state.add_relationship(
            create_direct_relationship(RelationshipClass.HAS, account_entity, webhook_entity)
        )

    context.client.iterate_webhooks(handle_webhook)


def fetch_requests(context: StepExecutionContext):
    job_state = context.job_state
    account_entity = _get_account_entity(job_state)

    def handle_request(request):
        request_entity = job_state.add_entity(create_request_entity(request))
        job_state.add_relationship(
            create_direct_relationship(RelationshipClass.HAS, account_entity, request_entity)
        )

    context.client.iterate_requests(handle_request)


def fetch_request_types(context: StepExecutionContext):
    job_state = context.job_state
    account_entity = _get_account_entity(job_state)

    def handle_request_type(request_type):
        request_type_entity = job_state.add_entity(create_request_type_entity(request_type))
        job_state.add_relationship(
            create_direct_relationship(RelationshipClass.HAS, account_entity, request_type_entity)
        )

    context.client.iterate_request_types(handle_request_type)


def _has(source_type: str, target_type: str) -> StepRelationshipMetadata:
    target = target_type[len("atspoke_"):]
    return StepRelationshipMetadata(
        _type=f"{source_type}_has_{target}",
        _class=RelationshipClass.HAS,
        source_type=source_type,
        target_type=target_type,
    )


INTEGRATION_STEPS: List[IntegrationStep] = [
    IntegrationStep(
        id="fetch-account",
        name="Fetch Account Details",
        entities=[StepEntityMetadata("atSpoke Account", ACCOUNT_ENTITY_TYPE, "Account")],
        execution_handler=fetch_account_details,
    ),
    IntegrationStep(
        id="fetch-users",
        name="Fetch Users",
        entities=[StepEntityMetadata("atSpoke User", USER_ENTITY_TYPE, "User")],
        relationships=[_has(ACCOUNT_ENTITY_TYPE, USER_ENTITY_TYPE)],
        depends_on=["fetch-account"],
        execution_handler=fetch_users,
    ),
    IntegrationStep(
        id="fetch-teams",
        name="Fetch Teams",
        entities=[StepEntityMetadata("atSpoke Team", TEAM_ENTITY_TYPE, "UserGroup")],
        relationships=[
            _has(ACCOUNT_ENTITY_TYPE, TEAM_ENTITY_TYPE),
            _has(TEAM_ENTITY_TYPE, USER_ENTITY_TYPE),
        ],
        depends_on=["fetch-users"],
        execution_handler=fetch_teams,
    ),
    IntegrationStep(
        id="fetch-webhooks",
        name="Fetch Webhooks",
        entities=[StepEntityMetadata("atSpoke Webhook", WEBHOOK_ENTITY_TYPE, "ApplicationEndpoint")],
        relationships=[_has(ACCOUNT_ENTITY_TYPE, WEBHOOK_ENTITY_TYPE)],
        depends_on=["fetch-account"],
        execution_handler=fetch_webhooks,
    ),
    IntegrationStep(
        id="fetch-requests",
        name="Fetch Requests",
        entities=[StepEntityMetadata("atSpoke Request", REQUEST_ENTITY_TYPE, "Record")],
        relationships=[_has(ACCOUNT_ENTITY_TYPE, REQUEST_ENTITY_TYPE)],
        depends_on=["fetch-account"],
        execution_handler=fetch_requests,
    ),
    IntegrationStep(
        id="fetch-request-types",
        name="Fetch Request Types",
        entities=[StepEntityMetadata("atSpoke Request Type", REQUEST_TYPE_ENTITY_TYPE, "Configuration")],
        relationships=[_has(ACCOUNT_ENTITY_TYPE, REQUEST_TYPE_ENTITY_TYPE)],
        depends_on=["fetch-account"],
        execution_handler=fetch_request_types,
    ),
]


def resolve_step_order(steps: List[IntegrationStep]) -> List[IntegrationStep]:
    """Order steps so every step runs after the steps it depends on.

    Among steps that are ready at the same time, declaration order wins.

    Raises:
        StepDependencyError: On an unknown dependency or a dependency cycle.
    """
    by_id = {step.id: step for step in steps}
    for step in steps:
        for dep in step.depends_on:
            if dep not in by_id:
                raise StepDependencyError(f"Step '{step.id}' depends on unknown step '{dep}'")

    ordered: List[IntegrationStep] = []
    done = set()
    pending = list(steps)
    while pending:
        ready = [s for s in pending if all(dep in done for dep in s.depends_on)]
        if not ready:
            cycle = ", ".join(s.id for s in pending)
            raise StepDependencyError(f"Dependency cycle between steps: {cycle}")
        step = ready[0]
        ordered.append(step)
        done.add(step.id)
        pending.remove(step)
    return ordered


def execute_steps(
    context: StepExecutionContext,
    steps: Optional[List[IntegrationStep]] = None,
    on_step_start: Optional[Callable[[int, IntegrationStep], None]] = None,
) -> List[str]:
    """Run the steps sequentially in dependency order.

    Args:
        context: Shared config, client and job state.
        steps: Steps to run (default: INTEGRATION_STEPS).
        on_step_start: Called with (position, step) before each step runs.

    Returns:
        The ids of the steps that ran, in order.
    """
    executed = []
    if steps is None:
        steps = INTEGRATION_STEPS
    for position, step in enumerate(resolve_step_order(steps), start=1):
        if on_step_start:
            on_step_start(position, step)
        logger.debug("Running step %s", step.id)
        step.execution_handler(context)
        executed.append(step.id)
    return executed
