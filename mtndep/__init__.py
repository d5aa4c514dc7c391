"""MTN DEP API client - SigV4-signed requests for the DEP platform."""

from .auth import Credentials, SigV4Signer, format_amz_date, get_aws_credentials
from .client import DEPClient, encode_body
from .config import (
    DEFAULT_ACCEPT_HEADER,
    DEFAULT_API_VERSION,
    DEFAULT_CONTENT_TYPE_HEADER,
    ClientConfig,
)
from .exceptions import (
    ConfigurationError,
    DEPClientError,
    InvalidMethodError,
    NoRequestBuiltError,
)
from .models import PreparedRequest, RequestSpec, SignedRequest
from .tracing import init_tracing
from .url import build_url
from .user_agent import default_user_agent
from .version import __version__

__all__ = [
    # Client
    "DEPClient",
    "ClientConfig",
    "DEFAULT_ACCEPT_HEADER",
    "DEFAULT_API_VERSION",
    "DEFAULT_CONTENT_TYPE_HEADER",
    "build_url",
    "default_user_agent",
    "encode_body",
    # Requests
    "PreparedRequest",
    "RequestSpec",
    "SignedRequest",
    # Signing
    "Credentials",
    "SigV4Signer",
    "format_amz_date",
    "get_aws_credentials",
    # Errors
    "ConfigurationError",
    "DEPClientError",
    "InvalidMethodError",
    "NoRequestBuiltError",
    # Tracing
    "init_tracing",
    "__version__",
]
