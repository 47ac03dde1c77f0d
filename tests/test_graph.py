"""
Tests for core.graph: entity/relationship construction and JobState.
"""

import pytest

from core.errors import DuplicateKeyError, MissingDependencyError
from core.graph import (
    DATA_ACCOUNT_ENTITY,
    JobState,
    RelationshipClass,
    create_direct_relationship,
    create_integration_entity,
    generate_relationship_type,
)


def account():
    return create_integration_entity(
        source={"org": "acme"},
        assign={"_key": "atspoke-account-acme", "_type": "atspoke_account", "_class": "Account"},
    )


def user(key="u1"):
    return create_integration_entity(
        source={"id": key},
        assign={"_key": key, "_type": "atspoke_user", "_class": "User", "name": key},
    )


# ---------------------------------------------------------------------------
# create_integration_entity
# ---------------------------------------------------------------------------


class TestCreateIntegrationEntity:
    def test_attaches_raw_data(self):
        source = {"id": "u1", "anything": [1, 2]}
        entity = create_integration_entity(
            source, {"_key": "u1", "_type": "atspoke_user", "_class": "User"}
        )
        assert entity["_rawData"] == [{"name": "default", "rawData": source}]

    def test_drops_none_values(self):
        entity = create_integration_entity(
            {}, {"_key": "u1", "_type": "atspoke_user", "_class": "User", "email": None, "status": ""}
        )
        assert "email" not in entity
        assert entity["status"] == ""

    @pytest.mark.parametrize("missing", ["_key", "_type", "_class"])
    def test_requires_core_properties(self, missing):
        assign = {"_key": "u1", "_type": "atspoke_user", "_class": "User"}
        del assign[missing]
        with pytest.raises(ValueError, match=missing):
            create_integration_entity({}, assign)


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------


class TestRelationships:
    @pytest.mark.parametrize("from_type,to_type,expected", [
        ("atspoke_account", "atspoke_user", "atspoke_account_has_user"),
        ("atspoke_team", "atspoke_user", "atspoke_team_has_user"),
        ("atspoke_account", "atspoke_requesttype", "atspoke_account_has_requesttype"),
        ("atspoke_account", "other_thing", "atspoke_account_has_other_thing"),
    ])
    def test_generate_relationship_type(self, from_type, to_type, expected):
        assert generate_relationship_type("HAS", from_type, to_type) == expected

    def test_direct_relationship_shape(self):
        rel = create_direct_relationship(RelationshipClass.HAS, account(), user())
        assert rel == {
            "_key": "atspoke-account-acme|has|u1",
            "_type": "atspoke_account_has_user",
            "_class": "HAS",
            "_fromEntityKey": "atspoke-account-acme",
            "_toEntityKey": "u1",
            "displayName": "HAS",
        }

    def test_lowercase_class_is_normalized(self):
        rel = create_direct_relationship("has", account(), user())
        assert rel["_class"] == "HAS"


# ---------------------------------------------------------------------------
# JobState
# ---------------------------------------------------------------------------


class TestJobState:
    def test_duplicate_entity_key_rejected(self, job_state):
        job_state.add_entity(user("u1"))
        with pytest.raises(DuplicateKeyError) as exc_info:
            job_state.add_entity(user("u1"))
        assert exc_info.value.key == "u1"
        assert len(job_state.collected_entities) == 1

    def test_duplicate_relationship_key_rejected(self, job_state):
        acct = job_state.add_entity(account())
        u1 = job_state.add_entity(user("u1"))
        job_state.add_relationship(create_direct_relationship("HAS", acct, u1))
        with pytest.raises(DuplicateKeyError):
            job_state.add_relationship(create_direct_relationship("HAS", acct, u1))

    def test_relationship_to_unknown_entity_rejected(self, job_state):
        acct = job_state.add_entity(account())
        with pytest.raises(MissingDependencyError) as exc_info:
            job_state.add_relationship(create_direct_relationship("HAS", acct, user("ghost")))
        assert exc_info.value.key == "ghost"
        assert job_state.collected_relationships == []

    def test_relationship_from_unknown_entity_rejected(self, job_state):
        u1 = job_state.add_entity(user("u1"))
        with pytest.raises(MissingDependencyError) as exc_info:
            job_state.add_relationship(create_direct_relationship("HAS", account(), u1))
        assert exc_info.value.key == "atspoke-account-acme"

    def test_find_entity(self, job_state):
        u1 = job_state.add_entity(user("u1"))
        assert job_state.find_entity("u1") is u1
        assert job_state.find_entity("nope") is None

    def test_data_store(self, job_state):
        assert job_state.get_data(DATA_ACCOUNT_ENTITY) is None
        job_state.set_data(DATA_ACCOUNT_ENTITY, {"_key": "a"})
        assert job_state.get_data(DATA_ACCOUNT_ENTITY) == {"_key": "a"}

    def test_payload_keeps_emission_order(self, job_state):
        acct = job_state.add_entity(account())
        for key in ("u2", "u1", "u3"):
            job_state.add_relationship(
                create_direct_relationship("HAS", acct, job_state.add_entity(user(key)))
            )
        payload = job_state.get_payload()
        assert [e["_key"] for e in payload["entities"]] == ["atspoke-account-acme", "u2", "u1", "u3"]
        assert len(payload["relationships"]) == 3
        assert payload["encounteredTypes"] == [
            "atspoke_account", "atspoke_account_has_user", "atspoke_user",
        ]

    def test_filters_by_type(self, job_state):
        acct = job_state.add_entity(account())
        u1 = job_state.add_entity(user("u1"))
        job_state.add_relationship(create_direct_relationship("HAS", acct, u1))
        assert job_state.entities_of_type("atspoke_user") == [u1]
        assert len(job_state.relationships_of_type("atspoke_account_has_user")) == 1
        assert job_state.relationships_of_type("atspoke_team_has_user") == []
