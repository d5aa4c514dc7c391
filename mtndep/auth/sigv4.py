"""
AWS SigV4 request signing for the DEP API.

This module implements the AWS Signature Version 4 process the DEP API
gateway verifies. Unlike a generic SigV4 signer it signs a fixed header set
(``host``, ``x-amz-date`` and ``x-api-key``); Accept and Content-Type are sent
but left out of the signature.

Usage:
    from mtndep.auth import Credentials, SigV4Signer

    signer = SigV4Signer(region="eu-west-1", service="execute-api")
    headers = signer.sign(
        PreparedRequest(
            method="DELETE",
            url="https://staging.api.dep.mtn.co.za/subscription/1",
            headers={"x-api-key": api_key},
        ),
        Credentials(access_key_id="AKID", secret_key="SECRET"),
    )

    # Query-string signature instead of an Authorization header
    url = signer.presign(request, credentials, expires=300)
"""

import datetime
import hashlib
import hmac
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Union
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

import boto3

from ..models import PreparedRequest

DEFAULT_REGION = "eu-west-1"
DEFAULT_SERVICE = "execute-api"

DEFAULT_PRESIGN_EXPIRES = 3600
MAX_PRESIGN_EXPIRES = 7 * 24 * 60 * 60

AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"

DEFAULT_PORTS = {"http": 80, "https": 443}

Timestamp = Union[datetime.datetime, str]


@dataclass(frozen=True)
class Credentials:
    """AWS-style credentials for SigV4 signing."""
    access_key_id: str
    secret_key: str
    session_token: Optional[str] = None


def get_aws_credentials(profile_name: Optional[str] = None) -> Credentials:
    """
    Resolve credentials from the boto3 credential chain.

    Args:
        profile_name: Optional AWS profile name to use

    Returns:
        Credentials with access key, secret key, and optional session token

    Raises:
        ValueError: If credentials cannot be obtained
    """
    if profile_name:
        session = boto3.Session(profile_name=profile_name)
    else:
        session = boto3.Session()

    credentials = session.get_credentials()
    if credentials is None:
        raise ValueError("No AWS credentials found")

    frozen_credentials = credentials.get_frozen_credentials()
    return Credentials(
        access_key_id=frozen_credentials.access_key,
        secret_key=frozen_credentials.secret_key,
        session_token=frozen_credentials.token,
    )


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def format_amz_date(value: Timestamp) -> str:
    """
    Format a timestamp as an ``X-Amz-Date`` value (``YYYYMMDD'T'HHMMSS'Z'``).

    Accepts a datetime (naive values are taken as UTC), an ISO-8601 string
    such as ``2018-10-22T12:59:51Z``, or an already formatted amz date.
    Fractional seconds are dropped.
    """
    if isinstance(value, str):
        try:
            value = datetime.datetime.strptime(value, AMZ_DATE_FORMAT)
        except ValueError:
            text = value[:-1] + "+00:00" if value.endswith("Z") else value
            value = datetime.datetime.fromisoformat(text)

    if value.tzinfo is not None:
        value = value.astimezone(datetime.timezone.utc)
    return value.strftime(AMZ_DATE_FORMAT)


def _remove_dot_segments(path: str) -> str:
    """Removes dot segments from a path per :rfc:`3986#section-5.2.4`."""
    output: list[str] = []
    for segment in path.split("/"):
        if segment == ".":
            continue
        elif segment != "..":
            output.append(segment)
        elif output:
            output.pop()
    if path.startswith("/") and (not output or output[0]):
        output.insert(0, "")
    if output and path.endswith(("/.", "/..")):
        output.append("")
    return "/".join(output)


def _canonical_host(url: str) -> str:
    parts = urlsplit(url)
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    if parts.port is not None and DEFAULT_PORTS.get(parts.scheme) != parts.port:
        host = f"{host}:{parts.port}"
    return host


def _encode_query(pairs: Iterable[tuple[str, str]]) -> str:
    # Pairs are sorted by their encoded form.
    encoded = sorted((quote(key, safe=""), quote(value, safe="")) for key, value in pairs)
    return "&".join(f"{key}={value}" for key, value in encoded)


class SigV4Signer:
    """
    AWS Signature Version 4 signer for DEP API requests.

    A signer holds no credentials; they are passed to each call so that a
    signer can be created per request and discarded afterwards.

    Attributes:
        region: Region of the credential scope (e.g., "eu-west-1")
        service: Service of the credential scope (e.g., "execute-api")
    """

    ALGORITHM = "AWS4-HMAC-SHA256"
    TERMINATOR = "aws4_request"
    SIGNED_HEADERS = ("host", "x-amz-date", "x-api-key")
    PRESIGNED_HEADERS = ("host", "x-api-key")

    def __init__(
        self,
        region: str = DEFAULT_REGION,
        service: str = DEFAULT_SERVICE,
        clock: Optional[Callable[[], datetime.datetime]] = None,
    ):
        """
        Initialize the signer.

        Args:
            region: Region of the credential scope
            service: Service of the credential scope
            clock: Callable returning the current UTC time
        """
        self.region = region
        self.service = service
        self._clock = clock or _utcnow

    def _sign(self, key: bytes, msg: str) -> bytes:
        """Create HMAC-SHA256 signature."""
        return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()

    def _get_signature_key(self, secret_key: str, date_stamp: str) -> bytes:
        """
        Derive the signing key for SigV4.

        Args:
            secret_key: The secret access key
            date_stamp: Date in YYYYMMDD format

        Returns:
            Derived signing key
        """
        k_date = self._sign(f"AWS4{secret_key}".encode("utf-8"), date_stamp)
        k_region = self._sign(k_date, self.region)
        k_service = self._sign(k_region, self.service)
        k_signing = self._sign(k_service, self.TERMINATOR)
        return k_signing

    def _hash_payload(self, payload: Optional[bytes]) -> str:
        """Create SHA256 hash of the payload (empty when absent)."""
        return hashlib.sha256(payload or b"").hexdigest()

    def _scope(self, date_stamp: str) -> str:
        return f"{date_stamp}/{self.region}/{self.service}/{self.TERMINATOR}"

    def _timestamp(self, timestamp: Optional[Timestamp]) -> str:
        return format_amz_date(timestamp if timestamp is not None else self._clock())

    def _create_canonical_request(
        self,
        method: str,
        url: str,
        canonical_headers: dict[str, str],
        payload_hash: str,
        query_pairs: Optional[Iterable[tuple[str, str]]] = None,
    ) -> tuple[str, str]:
        """
        Create the canonical request string for SigV4.

        Args:
            method: HTTP method
            url: Request URL
            canonical_headers: Lowercased names of the signed headers mapped
                to their values
            payload_hash: SHA256 hash of the request payload
            query_pairs: Query parameters to sign instead of the URL's own

        Returns:
            Tuple of the canonical request and the signed header list
        """
        parsed = urlsplit(url)

        canonical_uri = quote(_remove_dot_segments(parsed.path or "/") or "/", safe="/~")

        if query_pairs is None:
            query_pairs = parse_qsl(parsed.query, keep_blank_values=True)
        canonical_querystring = _encode_query(query_pairs)

        names = sorted(canonical_headers)
        header_lines = "".join(
            f"{name}:{' '.join(canonical_headers[name].split())}\n" for name in names
        )
        signed_headers = ";".join(names)

        canonical_request = "\n".join([
            method.upper(),
            canonical_uri,
            canonical_querystring,
            header_lines,
            signed_headers,
            payload_hash,
        ])
        return canonical_request, signed_headers

    def _create_string_to_sign(self, amz_date: str, canonical_request: str) -> str:
        """
        Create the string to sign for SigV4.

        Args:
            amz_date: Timestamp in YYYYMMDD'T'HHMMSS'Z' format
            canonical_request: The canonical request string

        Returns:
            String to sign
        """
        return "\n".join([
            self.ALGORITHM,
            amz_date,
            self._scope(amz_date[:8]),
            hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
        ])

    def _signature(self, credentials: Credentials, amz_date: str, canonical_request: str) -> str:
        string_to_sign = self._create_string_to_sign(amz_date, canonical_request)
        signing_key = self._get_signature_key(credentials.secret_key, amz_date[:8])
        return hmac.new(
            signing_key,
            string_to_sign.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def sign(
        self,
        request: PreparedRequest,
        credentials: Credentials,
        timestamp: Optional[Timestamp] = None,
    ) -> dict[str, str]:
        """
        Sign a request using AWS SigV4.

        Args:
            request: The unsigned request
            credentials: Credentials to sign with
            timestamp: Signing time; the clock's current time when omitted

        Returns:
            The request headers plus Host, X-Amz-Date and Authorization
            (and X-Amz-Security-Token for temporary credentials)
        """
        amz_date = self._timestamp(timestamp)

        replaced = {"x-amz-date", "x-amz-security-token", "authorization"}
        headers = {
            name: value for name, value in request.headers.items() if name.lower() not in replaced
        }
        if request.get_header("Host") is None:
            headers["Host"] = _canonical_host(request.url)
        headers["X-Amz-Date"] = amz_date

        names = list(self.SIGNED_HEADERS)
        if credentials.session_token:
            headers["X-Amz-Security-Token"] = credentials.session_token
            names.append("x-amz-security-token")

        signing_view = PreparedRequest(request.method, request.url, headers, request.body)
        canonical_headers = {name: signing_view.get_header(name, "") for name in names}

        canonical_request, signed_headers = self._create_canonical_request(
            method=request.method,
            url=request.url,
            canonical_headers=canonical_headers,
            payload_hash=self._hash_payload(request.body),
        )
        signature = self._signature(credentials, amz_date, canonical_request)

        headers["Authorization"] = (
            f"{self.ALGORITHM} "
            f"Credential={credentials.access_key_id}/{self._scope(amz_date[:8])}, "
            f"SignedHeaders={signed_headers}, "
            f"Signature={signature}"
        )
        return headers

    def presign(
        self,
        request: PreparedRequest,
        credentials: Credentials,
        expires: int = DEFAULT_PRESIGN_EXPIRES,
        timestamp: Optional[Timestamp] = None,
    ) -> str:
        """
        Create a presigned URL carrying the signature in its query string.

        Args:
            request: The unsigned request
            credentials: Credentials to sign with
            expires: Validity of the URL in seconds (at most seven days)
            timestamp: Signing time; the clock's current time when omitted

        Returns:
            The request URL with the X-Amz-* query parameters appended

        Raises:
            ValueError: If expires is out of range
        """
        if not 0 < expires <= MAX_PRESIGN_EXPIRES:
            raise ValueError(
                f"expires must be between 1 and {MAX_PRESIGN_EXPIRES} seconds, got {expires}"
            )

        amz_date = self._timestamp(timestamp)
        host = request.get_header("Host") or _canonical_host(request.url)
        canonical_headers = {
            "host": host,
            "x-api-key": request.get_header("x-api-key", ""),
        }

        parts = urlsplit(request.url)
        params = parse_qsl(parts.query, keep_blank_values=True)
        params += [
            ("X-Amz-Algorithm", self.ALGORITHM),
            ("X-Amz-Credential", f"{credentials.access_key_id}/{self._scope(amz_date[:8])}"),
            ("X-Amz-Date", amz_date),
            ("X-Amz-Expires", str(expires)),
            ("X-Amz-SignedHeaders", ";".join(sorted(canonical_headers))),
        ]
        if credentials.session_token:
            params.append(("X-Amz-Security-Token", credentials.session_token))

        canonical_request, _ = self._create_canonical_request(
            method=request.method,
            url=request.url,
            canonical_headers=canonical_headers,
            payload_hash=self._hash_payload(request.body),
            query_pairs=params,
        )
        signature = self._signature(credentials, amz_date, canonical_request)

        query = _encode_query(params) + "&" + urlencode({"X-Amz-Signature": signature})
        return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
