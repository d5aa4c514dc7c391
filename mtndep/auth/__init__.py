"""
Authentication utilities for the DEP client.

This module provides AWS SigV4 request signing for the DEP API.
"""

from .sigv4 import (
    DEFAULT_PRESIGN_EXPIRES,
    DEFAULT_REGION,
    DEFAULT_SERVICE,
    MAX_PRESIGN_EXPIRES,
    Credentials,
    SigV4Signer,
    format_amz_date,
    get_aws_credentials,
)

__all__ = [
    "DEFAULT_PRESIGN_EXPIRES",
    "DEFAULT_REGION",
    "DEFAULT_SERVICE",
    "MAX_PRESIGN_EXPIRES",
    "Credentials",
    "SigV4Signer",
    "format_amz_date",
    "get_aws_credentials",
]
