"""Bounded text representations of bodies and headers for trace events."""

from typing import Iterable, Optional, Tuple, Union

import httpx

from .sanitizer import SENSITIVE_HEADERS

KB = 1024
MAX_TEXT_REPR_BYTES = 30 * KB

SENSITIVE_MARKER = "<sensitive>"
UNREADABLE_MARKER = "<n/a>"

_UTF8_BOM = b"\xef\xbb\xbf"

HeadersLike = Union[httpx.Headers, Iterable[Tuple[Union[str, bytes], Union[str, bytes]]]]


def strip_utf8_bom(data: bytes) -> bytes:
    """Remove a leading UTF-8 byte-order-mark, if present."""
    if data.startswith(_UTF8_BOM):
        return data[len(_UTF8_BOM):]
    return data


def take_only_n_bytes(data: bytes, count: int) -> bytes:
    if len(data) > count:
        return data[:count]
    return data


def text_repr(data: bytes, limit: int = MAX_TEXT_REPR_BYTES) -> str:
    """
    Convert a buffer to a string suitable for a trace event.

    The BOM is stripped before truncation, so the limit applies to payload
    bytes. A multi-byte character cut at the limit and any invalid sequence
    become U+FFFD instead of raising.

    Example:
        >>> text_repr(b"\\xef\\xbb\\xbfhello")
        'hello'
    """
    return take_only_n_bytes(strip_utf8_bom(bytes(data)), limit).decode("utf-8", errors="replace")


def _header_items(headers: HeadersLike):
    if isinstance(headers, httpx.Headers):
        # raw keeps original casing, order and repeated names
        return headers.raw
    return headers


def _to_text(value: Union[str, bytes]) -> Optional[str]:
    if isinstance(value, str):
        return value
    try:
        return value.decode("ascii")
    except UnicodeDecodeError:
        return None


def headers_repr(headers: HeadersLike, sensitive: Iterable[str] = ()) -> str:
    """
    Render headers one per line as ``name: value``.

    Args:
        headers: httpx.Headers or an iterable of (name, value) pairs
        sensitive: Header names (case-insensitive) rendered as ``<sensitive>``

    Example:
        >>> headers_repr([("Accept", "*/*"), ("Authorization", "Bearer x")], {"authorization"})
        'Accept: */*\\nAuthorization: <sensitive>'
    """
    names = {name.lower() for name in sensitive}
    lines = []

    for raw_name, raw_value in _header_items(headers):
        name = _to_text(raw_name) or UNREADABLE_MARKER
        if name.lower() in names:
            value = SENSITIVE_MARKER
        else:
            value = _to_text(raw_value)
            if value is None:
                value = UNREADABLE_MARKER
        lines.append(f"{name}: {value}")

    return "\n".join(lines)


def response_headers_repr(headers: HeadersLike) -> str:
    """headers_repr with the default sensitive set (cookies, auth tokens)."""
    return headers_repr(headers, SENSITIVE_HEADERS)
