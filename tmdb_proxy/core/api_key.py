"""
API key extraction and redaction.

The key is looked up in a fixed order: X-API-Key header, then the
api_key query parameter, then the key query parameter.
"""

from typing import Mapping, Optional
from urllib.parse import parse_qsl, urlencode

API_KEY_HEADER = "x-api-key"
API_KEY_QUERY_PARAMS = ("api_key", "key")
REDACTED = "***"


def extract_api_key(headers: Mapping[str, str], query_params: Mapping[str, str]) -> Optional[str]:
    """
    Return the caller's API key, or None.

    Empty values are treated as absent and fall through to the next source.
    """
    key = _header_value(headers, API_KEY_HEADER)
    if key:
        return key
    for param in API_KEY_QUERY_PARAMS:
        value = query_params.get(param)
        if value:
            return value
    return None


def is_admin_key(api_key: Optional[str], required_length: int = 32) -> bool:
    """Admin access is an exact-length check, not a secret comparison."""
    return bool(api_key) and len(api_key) == required_length


def redact_query(query: str) -> str:
    """Mask api_key/key values in a raw query string for logging."""
    if not query:
        return query
    pairs = parse_qsl(query, keep_blank_values=True)
    masked = [(k, REDACTED if k in API_KEY_QUERY_PARAMS and v else v) for k, v in pairs]
    return urlencode(masked, safe="*")


def redact_secret(text: str, secret: Optional[str]) -> str:
    if not secret:
        return text
    return text.replace(secret, REDACTED)


def _header_value(headers: Mapping[str, str], name: str) -> Optional[str]:
    # Starlette headers are case-insensitive; plain dicts in tests are not.
    value = headers.get(name)
    if value is None:
        for k, v in headers.items():
            if k.lower() == name:
                return v
    return value
