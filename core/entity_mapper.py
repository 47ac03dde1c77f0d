"""
Entity Mapper — Turns typed atSpoke records into graph entities.

This module sits between the API client and the job state. Each function
takes one record and returns one entity dict; nothing here touches the
network or the job state. Relationships are wired by the steps.

Mapping rules worth knowing:
  - atSpoke users may have no real name. The display name falls back to the
    email address, and is used for name, displayName and username.
  - The user API object has no web link, but one exists and is derivable:
    https://<account org>.askspoke.com/users/<user id>
  - Every entity's _key is the atSpoke identifier, so keys are unique per run
    without any bookkeeping. The account is the exception: its key is built
    from the org slug.
  - The team's raw data drops agentList; membership becomes team->user edges.

Pipeline context:
    Called from the step functions in core/steps.py, once per record the
    client hands to the step's iteratee.
"""

from typing import Any, Dict

from config.settings import ACCOUNT_WEB_LINK_TEMPLATE, USER_WEB_LINK_TEMPLATE

from .errors import MissingDependencyError
from .graph import create_integration_entity
from .models import (
    AtSpokeRequest,
    AtSpokeRequestType,
    AtSpokeTeam,
    AtSpokeUser,
    AtSpokeWebhook,
)

ACCOUNT_ENTITY_TYPE = "atspoke_account"
USER_ENTITY_TYPE = "atspoke_user"
TEAM_ENTITY_TYPE = "atspoke_team"
WEBHOOK_ENTITY_TYPE = "atspoke_webhook"
REQUEST_ENTITY_TYPE = "atspoke_request"
REQUEST_TYPE_ENTITY_TYPE = "atspoke_requesttype"


def get_org_slug(account_info: Dict[str, Any]) -> str:
    """Read the org slug from a whoami body.

    whoami describes the calling user; "org" is either the slug itself or an
    object carrying a "slug".
    """
    org = account_info.get("org")
    if isinstance(org, dict):
        org = org.get("slug")
    return org or ""


def build_user_web_link(org: str, user_id: str) -> str:
    return USER_WEB_LINK_TEMPLATE.format(org=org, user_id=user_id)


def create_account_entity(account_info: Dict[str, Any]) -> Dict[str, Any]:
    """Build the account entity from the whoami body.

    Raises:
        MissingDependencyError: If whoami carries no org, since user web
            links cannot be built without it.
    """
    org = get_org_slug(account_info)
    if not org:
        raise MissingDependencyError("org", "whoami response does not include an org")

    return create_integration_entity(
        source=account_info,
        assign={
            "_type": ACCOUNT_ENTITY_TYPE,
            "_class": "Account",
            "_key": f"atspoke-account-{org}",
            "name": f"atSpoke {org}",
            "displayName": f"atSpoke {org}",
            "org": org,
            "manager": account_info.get("displayName") or account_info.get("email"),
            "webLink": ACCOUNT_WEB_LINK_TEMPLATE.format(org=org),
        },
    )


def create_user_entity(user: AtSpokeUser, account_entity: Dict[str, Any]) -> Dict[str, Any]:
    graph_name = user.display_name or user.email
    return create_integration_entity(
        source=user.raw,
        assign={
            "_type": USER_ENTITY_TYPE,
            "_class": "User",
            "_key": user.id,
            "username": graph_name,
            "name": graph_name,
            "displayName": graph_name,
            "webLink": build_user_web_link(account_entity["org"], user.id),
            "email": user.email,
            "isEmailVerified": user.is_email_verified,
            "isProfileCompleted": user.is_profile_completed,
            "status": user.status,
        },
    )


def create_team_entity(team: AtSpokeTeam) -> Dict[str, Any]:
    source = {k: v for k, v in team.raw.items() if k != "agentList"}
    return create_integration_entity(
        source=source,
        assign={
            "_type": TEAM_ENTITY_TYPE,
            "_class": "UserGroup",
            "_key": team.id,
            "email": team.email,
            "name": team.name,
            "displayName": team.name,
            "description": team.description,
            "org": team.org,
            "slug": team.slug,
            "owner": team.owner,
            "webLink": team.permalink,
        },
    )


def create_webhook_entity(webhook: AtSpokeWebhook) -> Dict[str, Any]:
    name = webhook.description or webhook.url or webhook.id
    return create_integration_entity(
        source=webhook.raw,
        assign={
            "_type": WEBHOOK_ENTITY_TYPE,
            "_class": "ApplicationEndpoint",
            "_key": webhook.id,
            "name": name,
            "displayName": name,
            "enabled": webhook.enabled,
            "topics": webhook.topics,
            "url": webhook.url,
            "client": webhook.client,
            "description": webhook.description,
        },
    )


def create_request_entity(request: AtSpokeRequest) -> Dict[str, Any]:
    name = request.subject or request.id
    return create_integration_entity(
        source=request.raw,
        assign={
            "_type": REQUEST_ENTITY_TYPE,
            "_class": "Record",
            "_key": request.id,
            "name": name,
            "displayName": name,
            "subject": request.subject,
            "requester": request.requester,
            "owner": request.owner,
            "status": request.status,
            "privacyLevel": request.privacy_level,
            "team": request.team,
            "org": request.org,
            "webLink": request.permalink,
            "requestType": request.request_type,
            "isAutoResolve": request.is_auto_resolve,
            "isFiled": request.is_filed,
            "email": request.email,
        },
    )


def create_request_type_entity(request_type: AtSpokeRequestType) -> Dict[str, Any]:
    name = request_type.title or request_type.id
    return create_integration_entity(
        source=request_type.raw,
        assign={
            "_type": REQUEST_TYPE_ENTITY_TYPE,
            "_class": "Configuration",
            "_key": request_type.id,
            "name": name,
            "displayName": name,
            "title": request_type.title,
            "status": request_type.status,
            "icon": request_type.icon,
            "description": request_type.description,
        },
    )
