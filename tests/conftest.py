"""Shared fixtures. All HTTP is faked by replacing the client's requests.Session."""

import json
import os
from unittest.mock import MagicMock

import pytest

from config import IntegrationConfig
from core.atspoke_client import AtSpokeClient
from core.graph import JobState
from core.steps import StepExecutionContext

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")


def load_fixture(name):
    with open(os.path.join(FIXTURES_DIR, name)) as f:
        return json.load(f)


def make_response(payload=None, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


class FakeAtSpokeApi:
    """Serves fixture records by endpoint name, honouring start/limit."""

    def __init__(self, records):
        self.records = records
        self.calls = []

    def get(self, url, params=None, timeout=None):
        endpoint = url.rsplit("/", 1)[-1]
        self.calls.append((endpoint, dict(params or {})))
        data = self.records[endpoint]
        if endpoint == "whoami":
            return make_response(data)
        if params and "limit" in params:
            start = params["start"]
            data = data[start:start + params["limit"]]
        return make_response({"results": data})

    def calls_to(self, endpoint):
        return [params for name, params in self.calls if name == endpoint]


@pytest.fixture
def integration_config():
    return IntegrationConfig(api_key="fake_api_key", num_requests=5)


@pytest.fixture
def client(integration_config):
    api_client = AtSpokeClient(integration_config)
    api_client._session = MagicMock()
    return api_client


@pytest.fixture
def fixture_records():
    return {
        "whoami": load_fixture("whoami.json"),
        "users": load_fixture("users.json")["results"],
        "teams": load_fixture("teams.json")["results"],
        "webhooks": load_fixture("webhooks.json")["results"],
        "requests": load_fixture("requests.json")["results"],
        "request_types": load_fixture("request_types.json")["results"],
    }


@pytest.fixture
def fake_api(client, fixture_records):
    api = FakeAtSpokeApi(fixture_records)
    client._session.get.side_effect = api.get
    return api


@pytest.fixture
def job_state():
    return JobState()


@pytest.fixture
def context(integration_config, client, job_state):
    return StepExecutionContext(config=integration_config, client=client, job_state=job_state)
