"""
Application Builder — Exports the collected graph as a Veza OAA CustomApplication.

The steps collect atSpoke data as a generic entity/relationship graph. This
module reshapes that graph into the OAA template so it can be saved as
oaa_payload.json and, when DRY_RUN=false, pushed to Veza.

Mapping:
  atspoke_account          Application properties (org, web_link, sync_timestamp)
  atspoke_user             Local user; unique_id = _key, identity = email
  atspoke_team             Local group with group_type "team"; unique_id = _key
  atspoke_team_has_user    Local user -> local group membership
  atspoke_webhook          Resource of type "webhook"

Requests and request types are ticket data, not authorization data, and are
left out of the OAA payload. They remain in graph_payload.json.

OAA property schemas defined:
  Application: org, web_link, sync_timestamp
  User:        atspoke_user_id, web_link, status, is_email_verified, is_profile_completed
  Group:       description, slug, web_link, team_email
  Resource:    url, enabled, topics, client (webhook)

Pipeline context:
    Used by the orchestrator after every step has run. Input is the JobState
    filled by core/steps.py.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from oaaclient.templates import CustomApplication, OAAPropertyType

from .entity_mapper import TEAM_ENTITY_TYPE, USER_ENTITY_TYPE, WEBHOOK_ENTITY_TYPE
from .errors import MissingDependencyError
from .graph import DATA_ACCOUNT_ENTITY, JobState

logger = logging.getLogger(__name__)

TEAM_HAS_USER_TYPE = "atspoke_team_has_user"


class ApplicationBuilder:
    """Builds an OAA CustomApplication from a filled JobState.

    Attributes:
        app_name_prefix: Prefix for the OAA application name.
        application_type: OAA application type string.
    """

    def __init__(self, app_name_prefix: str = "atspoke", application_type: str = "atSpoke"):
        self.app_name_prefix = app_name_prefix
        self.application_type = application_type

    def build(self, job_state: JobState) -> CustomApplication:
        """Build the application from the collected entities and relationships.

        Raises:
            MissingDependencyError: If the account entity was never collected.
        """
        account = job_state.get_data(DATA_ACCOUNT_ENTITY)
        if not account:
            raise MissingDependencyError(DATA_ACCOUNT_ENTITY, "Cannot build OAA application without the account entity")

        app = CustomApplication(
            name=f"{self.app_name_prefix}_{account['org']}",
            application_type=self.application_type,
            description=f"atSpoke - {account['name']}",
        )
        self._define_properties(app)

        app.set_property("org", account["org"])
        app.set_property("web_link", account.get("webLink", ""))
        app.set_property("sync_timestamp", datetime.now(timezone.utc).isoformat())

        for team in job_state.entities_of_type(TEAM_ENTITY_TYPE):
            self._add_team_group(app, team)

        for user in job_state.entities_of_type(USER_ENTITY_TYPE):
            self._add_user(app, user)

        for webhook in job_state.entities_of_type(WEBHOOK_ENTITY_TYPE):
            self._add_webhook(app, webhook)

        for membership in job_state.relationships_of_type(TEAM_HAS_USER_TYPE):
            local_user = app.local_users.get(membership["_toEntityKey"])
            if local_user:
                local_user.add_group(membership["_fromEntityKey"])

        logger.debug(
            "Built application %s: %d users, %d groups, %d resources",
            app.name, len(app.local_users), len(app.local_groups), len(app.resources),
        )
        return app

    def _define_properties(self, app: CustomApplication):
        defs = app.property_definitions

        defs.define_application_property("org", OAAPropertyType.STRING)
        defs.define_application_property("web_link", OAAPropertyType.STRING)
        defs.define_application_property("sync_timestamp", OAAPropertyType.STRING)

        defs.define_local_user_property("atspoke_user_id", OAAPropertyType.STRING)
        defs.define_local_user_property("web_link", OAAPropertyType.STRING)
        defs.define_local_user_property("status", OAAPropertyType.STRING)
        defs.define_local_user_property("is_email_verified", OAAPropertyType.BOOLEAN)
        defs.define_local_user_property("is_profile_completed", OAAPropertyType.BOOLEAN)

        defs.define_local_group_property("description", OAAPropertyType.STRING)
        defs.define_local_group_property("slug", OAAPropertyType.STRING)
        defs.define_local_group_property("web_link", OAAPropertyType.STRING)
        defs.define_local_group_property("team_email", OAAPropertyType.STRING)

        defs.define_resource_property("webhook", "url", OAAPropertyType.STRING)
        defs.define_resource_property("webhook", "enabled", OAAPropertyType.BOOLEAN)
        defs.define_resource_property("webhook", "topics", OAAPropertyType.STRING_LIST)
        defs.define_resource_property("webhook", "client", OAAPropertyType.STRING)

    def _add_team_group(self, app: CustomApplication, team: Dict[str, Any]):
        group = app.add_local_group(name=team["name"], unique_id=team["_key"])
        group.group_type = "team"
        for prop, key in (("description", "description"), ("slug", "slug"),
                          ("web_link", "webLink"), ("team_email", "email")):
            if team.get(key):
                group.set_property(prop, team[key])

    def _add_user(self, app: CustomApplication, user: Dict[str, Any]):
        local_user = app.add_local_user(name=user["name"], unique_id=user["_key"])
        status = user.get("status")
        local_user.is_active = status.upper() == "ACTIVE" if status else True
        local_user.set_property("atspoke_user_id", user["_key"])
        local_user.set_property("web_link", user["webLink"])
        if status:
            local_user.set_property("status", status)
        if user.get("email"):
            local_user.email = user["email"]
            local_user.add_identity(user["email"])
        for prop, key in (("is_email_verified", "isEmailVerified"),
                          ("is_profile_completed", "isProfileCompleted")):
            if user.get(key) is not None:
                local_user.set_property(prop, user[key])

    def _add_webhook(self, app: CustomApplication, webhook: Dict[str, Any]):
        resource = app.add_resource(
            name=webhook["name"],
            resource_type="webhook",
            description=webhook.get("description") or "",
            unique_id=webhook["_key"],
        )
        resource.set_property("enabled", webhook.get("enabled", False))
        resource.set_property("topics", webhook.get("topics", []))
        if webhook.get("url"):
            resource.set_property("url", webhook["url"])
        if webhook.get("client"):
            resource.set_property("client", webhook["client"])
