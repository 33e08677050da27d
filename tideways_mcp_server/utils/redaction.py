"""
Header Redaction

Request headers are logged for debugging, but they carry the Tideways bearer
token and may carry other credentials. Everything that reaches a log line goes
through ``redact_headers`` first.
"""

from typing import Any, Dict, Iterable, Mapping, Optional

REDACTED = "[REDACTED]"

SENSITIVE_HEADERS = ("X-API-Key", "X-Auth-Token", "Cookie", "Set-Cookie")


def redact_headers(
    headers: Optional[Mapping[str, Any]],
    token: Optional[str] = None,
    sensitive_headers: Iterable[str] = SENSITIVE_HEADERS,
) -> Dict[str, Any]:
    """
    Return a copy of ``headers`` that is safe to log.

    The ``Authorization`` value becomes ``Bearer [REDACTED]``, every header in
    ``sensitive_headers`` is replaced by ``[REDACTED]`` (names compared
    case-insensitively) and any remaining occurrence of the literal ``token``
    in other header values is masked as well.

    Args:
        headers: Outgoing request headers
        token: The bearer credential to scrub from remaining values
        sensitive_headers: Header names whose values are always hidden

    Returns:
        New dictionary; the input mapping is left untouched

    Example:
        >>> redact_headers({"Authorization": "Bearer abc", "Accept": "application/json"})
        {'Authorization': 'Bearer [REDACTED]', 'Accept': 'application/json'}
    """
    if not headers:
        return {}

    sensitive = {name.lower() for name in sensitive_headers}
    safe: Dict[str, Any] = {}

    for name, value in headers.items():
        lowered = str(name).lower()
        if lowered == "authorization":
            safe[name] = f"Bearer {REDACTED}"
        elif lowered in sensitive:
            safe[name] = REDACTED
        elif token and isinstance(value, str) and token in value:
            safe[name] = value.replace(token, REDACTED)
        else:
            safe[name] = value

    return safe
