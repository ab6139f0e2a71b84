"""Утилиты http-trace."""

from .representation import (
    MAX_TEXT_REPR_BYTES,
    SENSITIVE_MARKER,
    UNREADABLE_MARKER,
    strip_utf8_bom,
    take_only_n_bytes,
    text_repr,
    headers_repr,
    response_headers_repr,
)
from .sanitizer import (
    REDACTED,
    SENSITIVE_HEADERS,
    mask_sensitive_data,
    mask_url,
)

__all__ = [
    "MAX_TEXT_REPR_BYTES",
    "SENSITIVE_MARKER",
    "UNREADABLE_MARKER",
    "strip_utf8_bom",
    "take_only_n_bytes",
    "text_repr",
    "headers_repr",
    "response_headers_repr",
    "REDACTED",
    "SENSITIVE_HEADERS",
    "mask_sensitive_data",
    "mask_url",
]
