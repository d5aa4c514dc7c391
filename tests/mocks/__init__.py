"""
Test mocks for the DEP client test suite.

This module provides an in-process stand-in for the DEP API so the client
can be exercised end to end without network access or staging credentials.

Available Mocks:
- DEPApiMock: Mock DEP API served through httpx.MockTransport
- DEPApiMockConfig: Configuration for the mock

Usage:
    from tests.mocks import DEPApiMock

    mock = DEPApiMock()
    client = DEPClient(config, transport=mock.transport())
    response = client.send(client.build("GET", "/partner/1"))
    assert response.json()["partner_id"] == 1
    assert mock.requests[-1].method == "GET"
"""

from .dep_api_mock import DEPApiMock, DEPApiMockConfig

__all__ = [
    "DEPApiMock",
    "DEPApiMockConfig",
]
