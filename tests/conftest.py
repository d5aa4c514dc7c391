"""
Pytest configuration and fixtures for the DEP client tests.

Shared fixtures provide a client configuration with fixed test credentials,
a fixed signing timestamp and the in-process DEP API mock.

Usage:
    def test_something(client, dep_api_mock):
        response = client.send(client.build("GET", "/partner/1"))
        assert response.status_code == 200
"""

import datetime

import pytest

from mtndep import ClientConfig, DEPClient
from tests.mocks import DEPApiMock, DEPApiMockConfig

ACCESS_KEY = "AKID"
ACCESS_SECRET = "SECRET"
API_KEY = "test-api-key"
BASE_URL = "https://staging.api.dep.mtn.co.za"

FIXED_TIME = datetime.datetime(2018, 10, 22, 12, 59, 51, tzinfo=datetime.timezone.utc)
FIXED_AMZ_DATE = "20181022T125951Z"


@pytest.fixture
def client_config() -> ClientConfig:
    """Client configuration with fixed test credentials."""
    return ClientConfig(
        access_key=ACCESS_KEY,
        access_secret=ACCESS_SECRET,
        api_key=API_KEY,
        base_url=BASE_URL,
    )


@pytest.fixture
def dep_api_mock() -> DEPApiMock:
    """
    Mock DEP API.

    Subscription 1 is configured to be rejected with the API's 464 error.
    """
    return DEPApiMock(config=DEPApiMockConfig(base_url=BASE_URL, api_key=API_KEY))


@pytest.fixture
def client(client_config: ClientConfig, dep_api_mock: DEPApiMock):
    """DEP client signing at FIXED_TIME and sending to the mock API."""
    with DEPClient(
        client_config,
        transport=dep_api_mock.transport(),
        clock=lambda: FIXED_TIME,
    ) as dep_client:
        yield dep_client
