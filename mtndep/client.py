"""
MTN DEP API client with AWS SigV4 authentication.

This module builds and signs requests for the DEP platform and sends them
through an ``httpx`` transport.

Usage:
    from mtndep import ClientConfig, DEPClient

    client = DEPClient(ClientConfig(
        access_key=access_key,
        access_secret=access_secret,
        api_key=api_key,
        base_url="https://staging.api.dep.mtn.co.za",
    ))

    # Only build the signed request
    request = client.build("POST", "/subscription", body={"msisdn": "27833334444"})

    # Build and send
    response = client.send(client.build("GET", "/partner/1"))
    print(response.json())

    # Two-step, as a chain
    response = client.create_request("GET", "/service/1").send()
"""

import datetime
import json
import logging
from typing import Any, Callable, Mapping, Optional
from urllib.parse import urlsplit

import httpx
from opentelemetry import trace

from .auth import DEFAULT_PRESIGN_EXPIRES, Credentials, SigV4Signer
from .auth.sigv4 import Timestamp
from .config import ClientConfig
from .exceptions import InvalidMethodError, NoRequestBuiltError
from .models import PreparedRequest, RequestSpec, SignedRequest
from .tracing import get_tracer, set_request_attributes, traced
from .url import build_url
from .user_agent import default_user_agent
from .version import __version__

logger = logging.getLogger(__name__)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def encode_body(body: Optional[Mapping[str, Any]]) -> Optional[bytes]:
    """Serialize a body mapping to compact JSON; empty or absent bodies yield None."""
    if not body:
        return None
    return json.dumps(body, separators=(",", ":")).encode("utf-8")


class DEPClient:
    """
    Client for the MTN DEP API.

    The client handles:
    - URL composition from the base URL, a path and query parameters
    - Accept/Content-Type/User-Agent/x-api-key headers
    - AWS SigV4 request signing
    - Sending signed requests through an injectable httpx transport

    ``build`` and ``presign`` only read the frozen configuration and are safe
    to call from several threads. The two-step ``create_request`` API keeps
    the last request on the client and is not.

    Attributes:
        config: Client configuration
    """

    VERSION = __version__
    GET = "GET"
    POST = "POST"
    PATCH = "PATCH"
    DELETE = "DELETE"
    ALLOWED_METHODS = (GET, POST, PATCH, DELETE)

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Optional[Callable[[], datetime.datetime]] = None,
    ):
        """
        Initialize the DEP client.

        Args:
            config: Client configuration
            transport: httpx transport used by ``send`` (default: network)
            clock: Callable returning the current UTC time, used for signing
        """
        self.config = config
        self._clock = clock or _utcnow
        self._http = httpx.Client(timeout=config.timeout, transport=transport)
        self._request: Optional[SignedRequest] = None

    @classmethod
    def from_env(cls, **kwargs: Any) -> "DEPClient":
        """Create a client from DEP_* environment variables."""
        return cls(ClientConfig.from_env(), **kwargs)

    def __enter__(self) -> "DEPClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _spec(
        self,
        method: str,
        path: Optional[str],
        query_parameters: Optional[Mapping[str, Any]],
        body: Optional[Mapping[str, Any]],
    ) -> RequestSpec:
        if not isinstance(method, str) or method.upper() not in self.ALLOWED_METHODS:
            raise InvalidMethodError(str(method), self.ALLOWED_METHODS)
        return RequestSpec(
            method=method,
            path=path or "/",
            query_parameters=query_parameters or {},
            body=body,
        )

    def _prepare(self, spec: RequestSpec) -> PreparedRequest:
        headers = {
            "Accept": self.config.accept,
            "Content-Type": self.config.content_type_header,
            "User-Agent": self.config.user_agent or default_user_agent(),
            "x-api-key": self.config.api_key,
        }
        return PreparedRequest(
            method=spec.method,
            url=build_url(self.config.base_url, spec.path, spec.query_parameters),
            headers=headers,
            body=encode_body(spec.body),
        )

    def _credentials(self) -> Credentials:
        return Credentials(
            access_key_id=self.config.access_key,
            secret_key=self.config.access_secret,
            session_token=self.config.session_token,
        )

    def _signer(self) -> SigV4Signer:
        return SigV4Signer(region=self.config.region, service=self.config.service, clock=self._clock)

    @traced(name="dep.build")
    def build(
        self,
        method: str,
        path: Optional[str] = None,
        query_parameters: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
        *,
        timestamp: Optional[Timestamp] = None,
    ) -> SignedRequest:
        """
        Build a signed request.

        Args:
            method: GET, POST, PATCH or DELETE (any case)
            path: Path appended to the base URL path ("/" when empty)
            query_parameters: Query parameters, merged over the base URL query
            body: Mapping sent as a JSON body; empty mappings send no body
            timestamp: Signing time; the client clock's time when omitted

        Returns:
            SignedRequest ready to be sent

        Raises:
            InvalidMethodError: If the method is not supported
        """
        spec = self._spec(method, path, query_parameters, body)
        prepared = self._prepare(spec)
        headers = self._signer().sign(prepared, self._credentials(), timestamp)
        set_request_attributes(trace.get_current_span(), prepared.method, prepared.url)

        logger.debug("Built signed %s request for %s", spec.method, urlsplit(prepared.url).path)
        return SignedRequest(
            method=prepared.method,
            url=prepared.url,
            headers=headers,
            body=prepared.body,
        )

    def presign(
        self,
        method: str,
        path: Optional[str] = None,
        query_parameters: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
        *,
        expires: int = DEFAULT_PRESIGN_EXPIRES,
        timestamp: Optional[Timestamp] = None,
    ) -> SignedRequest:
        """
        Build a request whose signature travels in the URL query string.

        Takes the same arguments as :meth:`build`, plus ``expires`` (seconds
        the URL stays valid). The returned headers carry no Authorization.
        """
        spec = self._spec(method, path, query_parameters, body)
        prepared = self._prepare(spec)
        url = self._signer().presign(prepared, self._credentials(), expires, timestamp)

        logger.debug("Presigned %s request for %s", spec.method, urlsplit(url).path)
        return SignedRequest(
            method=prepared.method,
            url=url,
            headers=prepared.headers,
            body=prepared.body,
        )

    def create_request(
        self,
        method: str,
        path: Optional[str] = None,
        query_parameters: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
        *,
        timestamp: Optional[Timestamp] = None,
    ) -> "DEPClient":
        """
        Build a signed request and keep it for :meth:`get_request` and :meth:`send`.

        Returns:
            The client itself, so calls can be chained
        """
        self._request = self.build(method, path, query_parameters, body, timestamp=timestamp)
        return self

    def get_request(self) -> SignedRequest:
        """
        Return the request built by the last :meth:`create_request` call.

        Raises:
            NoRequestBuiltError: If no request has been created yet
        """
        if self._request is None:
            raise NoRequestBuiltError()
        return self._request

    def send(self, request: Optional[SignedRequest] = None) -> httpx.Response:
        """
        Send a signed request to the DEP API.

        Args:
            request: The request to send; defaults to the one kept by
                :meth:`create_request`

        Returns:
            The httpx response for a 2xx status

        Raises:
            NoRequestBuiltError: If no request is given and none was created
            httpx.HTTPStatusError: For non-2xx responses, with the response attached
            httpx.TransportError: If the request could not be sent
        """
        request = request or self.get_request()
        path = urlsplit(request.url).path

        with get_tracer().start_as_current_span("dep.send") as span:
            set_request_attributes(span, request.method, request.url)

            response = self._http.send(request.to_httpx())
            span.set_attribute("http.response.status_code", response.status_code)

            if response.is_success:
                logger.info("%s %s -> %s", request.method, path, response.status_code)
            else:
                logger.warning("%s %s -> %s", request.method, path, response.status_code)
            response.raise_for_status()
            return response
