"""
Tests for core.entity_mapper using the JSON fixtures in tests/fixtures/.
"""

import pytest

from core.entity_mapper import (
    build_user_web_link,
    create_account_entity,
    create_request_entity,
    create_request_type_entity,
    create_team_entity,
    create_user_entity,
    create_webhook_entity,
    get_org_slug,
)
from core.errors import MissingDependencyError
from core.models import (
    AtSpokeRequest,
    AtSpokeRequestType,
    AtSpokeTeam,
    AtSpokeUser,
    AtSpokeWebhook,
)

from conftest import load_fixture


@pytest.fixture
def account_entity():
    return create_account_entity(load_fixture("whoami.json"))


def users():
    return [AtSpokeUser.from_api(u) for u in load_fixture("users.json")["results"]]


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


class TestAccountEntity:
    def test_fields(self, account_entity):
        assert account_entity["_key"] == "atspoke-account-acme"
        assert account_entity["_type"] == "atspoke_account"
        assert account_entity["_class"] == "Account"
        assert account_entity["name"] == "atSpoke acme"
        assert account_entity["org"] == "acme"
        assert account_entity["manager"] == "Ada Admin"
        assert account_entity["_rawData"][0]["rawData"]["id"] == "5f1a0c0e2b7d4a0011aa0001"

    def test_org_as_object(self):
        assert get_org_slug({"org": {"slug": "globex", "id": "o1"}}) == "globex"

    def test_missing_org_raises(self):
        with pytest.raises(MissingDependencyError):
            create_account_entity({"id": "me", "email": "me@acme.com"})

    def test_manager_falls_back_to_email(self):
        entity = create_account_entity({"org": "acme", "email": "me@acme.com"})
        assert entity["manager"] == "me@acme.com"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class TestUserEntity:
    def test_named_user(self, account_entity):
        entity = create_user_entity(users()[0], account_entity)
        assert entity["_key"] == "5f1a0c0e2b7d4a0011aa0001"
        assert entity["_type"] == "atspoke_user"
        assert entity["_class"] == "User"
        assert entity["name"] == entity["displayName"] == entity["username"] == "Ada Admin"
        assert entity["email"] == "ada@acme.com"
        assert entity["isEmailVerified"] is True
        assert entity["status"] == "ACTIVE"

    def test_name_falls_back_to_email(self, account_entity):
        entity = create_user_entity(users()[2], account_entity)
        assert entity["name"] == "carol@acme.com"
        assert entity["displayName"] == "carol@acme.com"
        assert entity["username"] == "carol@acme.com"

    def test_empty_display_name_falls_back_to_email(self, account_entity):
        user = AtSpokeUser.from_api({"id": "u9", "email": "x@acme.com", "displayName": ""})
        assert create_user_entity(user, account_entity)["name"] == "x@acme.com"

    def test_web_link_derived_from_org(self, account_entity):
        entity = create_user_entity(users()[1], account_entity)
        assert entity["webLink"] == "https://acme.askspoke.com/users/5f1a0c0e2b7d4a0011aa0002"

    def test_build_user_web_link(self):
        assert build_user_web_link("globex", "abc") == "https://globex.askspoke.com/users/abc"


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------


class TestTeamEntity:
    def test_fields(self):
        team = AtSpokeTeam.from_api(load_fixture("teams.json")["results"][0])
        entity = create_team_entity(team)
        assert entity["_key"] == "5f1a0c0e2b7d4a0011bb0001"
        assert entity["_type"] == "atspoke_team"
        assert entity["_class"] == "UserGroup"
        assert entity["name"] == "IT"
        assert entity["slug"] == "it"
        assert entity["webLink"] == "https://acme.askspoke.com/teams/it"
        assert entity["email"] == "it@acme.askspoke.com"

    def test_raw_data_omits_agent_list(self):
        team = AtSpokeTeam.from_api(load_fixture("teams.json")["results"][0])
        raw = create_team_entity(team)["_rawData"][0]["rawData"]
        assert "agentList" not in raw
        assert raw["keywords"] == ["laptop", "vpn"]
        # the model still holds the original record
        assert "agentList" in team.raw


# ---------------------------------------------------------------------------
# Webhooks, requests, request types
# ---------------------------------------------------------------------------


class TestOtherEntities:
    def test_webhook(self):
        webhook = AtSpokeWebhook.from_api(load_fixture("webhooks.json")["results"][0])
        entity = create_webhook_entity(webhook)
        assert entity["_type"] == "atspoke_webhook"
        assert entity["_class"] == "ApplicationEndpoint"
        assert entity["name"] == "New request notifications"
        assert entity["enabled"] is True
        assert entity["topics"] == ["request.created"]

    def test_webhook_without_description_named_by_url(self):
        webhook = AtSpokeWebhook.from_api(load_fixture("webhooks.json")["results"][1])
        entity = create_webhook_entity(webhook)
        assert entity["name"] == "https://hooks.acme.com/spoke/resolved"
        assert entity["enabled"] is False

    def test_request(self):
        request = AtSpokeRequest.from_api(load_fixture("requests.json")["results"][0])
        entity = create_request_entity(request)
        assert entity["_type"] == "atspoke_request"
        assert entity["_class"] == "Record"
        assert entity["name"] == "VPN is down"
        assert entity["privacyLevel"] == "private"
        assert entity["requestType"] == "5f1a0c0e2b7d4a0011ab0001"
        assert entity["isFiled"] is True

    def test_request_without_request_type(self):
        request = AtSpokeRequest.from_api(load_fixture("requests.json")["results"][1])
        assert "requestType" not in create_request_entity(request)

    def test_request_type(self):
        request_type = AtSpokeRequestType.from_api(load_fixture("request_types.json")["results"][0])
        entity = create_request_type_entity(request_type)
        assert entity["_type"] == "atspoke_requesttype"
        assert entity["_class"] == "Configuration"
        assert entity["name"] == "Network issue"
        assert entity["icon"] == "wifi"
