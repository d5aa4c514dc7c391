"""
DEP API Mock for Local Testing.

The mock simulates the parts of the DEP API the client test suite talks to:
- partner and service lookups, with ``expand=subscription(...)``
- subscription creation (returns a PENDING subscription)
- the application-level 464 error the API returns for a rejected DELETE

Every request is checked for the ``x-api-key`` header and a SigV4
Authorization header; requests without them get a 403 like the real gateway.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx


@dataclass
class DEPApiMockConfig:
    """
    Configuration for the DEP API mock.

    Attributes:
        base_url: Base URL the mock answers for
        api_key: API key expected in the x-api-key header
        rejected_subscription_ids: Subscription IDs whose DELETE fails with 464
    """
    base_url: str = "https://staging.api.dep.mtn.co.za"
    api_key: str = "test-api-key"
    rejected_subscription_ids: set[int] = field(default_factory=lambda: {1})


class DEPApiMock:
    """
    Mock DEP API for local testing.

    Attributes:
        config: Mock configuration
        requests: Every request received, in order
    """

    ERROR_APPLICATION = 464

    def __init__(self, config: Optional[DEPApiMockConfig] = None):
        self.config = config or DEPApiMockConfig()
        self.requests: list[httpx.Request] = []
        self._next_subscription_id = 100
        self.subscriptions: dict[int, dict[str, Any]] = {
            10: {"subscription_id": 10, "svc_id": 1, "status_name": "ACTIVE", "msisdn": "27833334444"},
            11: {"subscription_id": 11, "svc_id": 1, "status_name": "ACTIVE", "msisdn": "27833335555"},
        }
        self.partners = {1: {"partner_id": 1, "partner_name": "Unit Test Partner"}}
        self.services = {
            1: {
                "service_id": 1,
                "service_name": "Unit Test Service",
                "billing_cycle": "DAILY",
                "billing_rate": 300,
                "status_id": 2,
                "status_name": "ACTIVE",
            }
        }

    def transport(self) -> httpx.MockTransport:
        """Return an httpx transport serving this mock."""
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.headers.get("x-api-key") != self.config.api_key:
            return self._error(403, "Forbidden")
        if not request.headers.get("Authorization", "").startswith("AWS4-HMAC-SHA256 "):
            return self._error(403, "Missing Authentication Token")

        path = request.url.path
        expand = request.url.params.get("expand", "")

        match = re.fullmatch(r"/partner/(\d+)", path)
        if match and request.method == "GET":
            return self._lookup(self.partners, int(match.group(1)), expand)

        match = re.fullmatch(r"/service/(\d+)", path)
        if match and request.method == "GET":
            return self._lookup(self.services, int(match.group(1)), expand)

        if path == "/subscription" and request.method == "POST":
            return self._create_subscription(json.loads(request.content))

        match = re.fullmatch(r"/subscription/(\d+)", path)
        if match and request.method == "DELETE":
            return self._delete_subscription(int(match.group(1)))

        return self._error(404, "Not Found")

    def _lookup(self, table: dict[int, dict[str, Any]], key: int, expand: str) -> httpx.Response:
        if key not in table:
            return self._error(404, "Not Found")
        payload = dict(table[key])
        if expand.startswith("subscription"):
            payload["subscription"] = list(self.subscriptions.values())
        return httpx.Response(200, json=payload)

    def _create_subscription(self, body: dict[str, Any]) -> httpx.Response:
        subscription_id = self._next_subscription_id
        self._next_subscription_id += 1
        subscription = {
            "subscription_id": subscription_id,
            "svc_id": body.get("svc_id"),
            "msisdn": body.get("msisdn"),
            "ext_ref": body.get("ext_ref"),
            "status_name": "PENDING",
        }
        self.subscriptions[subscription_id] = subscription
        return httpx.Response(200, json=subscription)

    def _delete_subscription(self, subscription_id: int) -> httpx.Response:
        if subscription_id in self.config.rejected_subscription_ids:
            return self._error(self.ERROR_APPLICATION, "Subscription cannot be cancelled")
        if self.subscriptions.pop(subscription_id, None) is None:
            return self._error(404, "Not Found")
        return httpx.Response(200, json={"subscription_id": subscription_id, "status_name": "CANCELLED"})

    @staticmethod
    def _error(status_code: int, message: str) -> httpx.Response:
        return httpx.Response(status_code, json={"error_code": status_code, "error_message": message})
