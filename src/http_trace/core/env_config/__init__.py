"""
Environment configuration for http-trace.

Example:
    >>> from http_trace.core.env_config import load_from_env
    >>> config = load_from_env()
    >>> config = load_from_env(base_url="https://custom.api.com")
"""

from .loader import load_from_env
from .validator import HTTPTraceSettings

__all__ = [
    "load_from_env",
    "HTTPTraceSettings",
]
