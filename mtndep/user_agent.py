"""Default User-Agent string for DEP API requests."""

import platform
from functools import lru_cache

import httpx

from .version import __version__


@lru_cache(maxsize=None)
def default_user_agent() -> str:
    """Return e.g. ``MTNDEP/1.0.0 httpx/0.27.0 Python/3.12.1``."""
    return f"MTNDEP/{__version__} httpx/{httpx.__version__} Python/{platform.python_version()}"
