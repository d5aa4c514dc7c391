"""Configuration for the DEP API client."""

import os
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlsplit

from dotenv import load_dotenv

from .auth import DEFAULT_REGION, DEFAULT_SERVICE, get_aws_credentials
from .exceptions import ConfigurationError

DEFAULT_API_VERSION = "1.4"
DEFAULT_ACCEPT_HEADER = "application/vnd.sdp+json"
DEFAULT_CONTENT_TYPE_HEADER = "application/json"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class ClientConfig:
    """Configuration for one DEP client instance."""

    # Credentials
    access_key: str
    access_secret: str
    api_key: str

    # API endpoint, e.g. "https://staging.api.dep.mtn.co.za"
    base_url: str

    # Content negotiation
    api_version: str = DEFAULT_API_VERSION
    accept_header: str = DEFAULT_ACCEPT_HEADER
    content_type_header: str = DEFAULT_CONTENT_TYPE_HEADER

    # SigV4 credential scope
    region: str = DEFAULT_REGION
    service: str = DEFAULT_SERVICE
    session_token: Optional[str] = None

    # Transport
    timeout: float = DEFAULT_TIMEOUT
    user_agent: Optional[str] = None

    def __post_init__(self) -> None:
        missing = [
            name
            for name in ("access_key", "access_secret", "api_key")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

        parts = urlsplit(self.base_url or "")
        if not parts.scheme or not parts.netloc:
            raise ConfigurationError(
                f"base_url must be an absolute URL with scheme and host, got {self.base_url!r}"
            )

    @property
    def accept(self) -> str:
        """Value of the Accept header, carrying the API version."""
        return f"{self.accept_header};version={self.api_version}"

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientConfig":
        """Load configuration from environment variables (and a .env file)."""
        load_dotenv()
        timeout = os.getenv("DEP_TIMEOUT", str(DEFAULT_TIMEOUT))
        try:
            timeout_seconds = float(timeout)
        except ValueError as e:
            raise ConfigurationError(f"DEP_TIMEOUT must be a number of seconds, got {timeout!r}") from e

        values: dict[str, Any] = {
            "access_key": os.getenv("DEP_ACCESS_KEY", ""),
            "access_secret": os.getenv("DEP_ACCESS_SECRET", ""),
            "api_key": os.getenv("DEP_API_KEY", ""),
            "base_url": os.getenv("DEP_BASE_URL", ""),
            "api_version": os.getenv("DEP_API_VERSION", DEFAULT_API_VERSION),
            "accept_header": os.getenv("DEP_ACCEPT_HEADER", DEFAULT_ACCEPT_HEADER),
            "content_type_header": os.getenv("DEP_CONTENT_TYPE_HEADER", DEFAULT_CONTENT_TYPE_HEADER),
            "region": os.getenv("DEP_REGION", DEFAULT_REGION),
            "service": os.getenv("DEP_SERVICE", DEFAULT_SERVICE),
            "session_token": os.getenv("DEP_SESSION_TOKEN") or None,
            "timeout": timeout_seconds,
            "user_agent": os.getenv("DEP_USER_AGENT") or None,
        }
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_aws_profile(
        cls,
        api_key: str,
        base_url: str,
        profile_name: Optional[str] = None,
        **overrides: Any,
    ) -> "ClientConfig":
        """Build a configuration whose credentials come from a boto3 profile."""
        try:
            credentials = get_aws_credentials(profile_name)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        return cls(
            access_key=credentials.access_key_id,
            access_secret=credentials.secret_key,
            api_key=api_key,
            base_url=base_url,
            session_token=credentials.session_token,
            **overrides,
        )
