"""Request context management for tracing tool calls through the system.

Every MCP tool call gets a short request ID that is carried through the
dispatcher, the API client and the log output, so all lines belonging to one
call can be filtered together.

Key features:
- Async-safe request ID propagation using contextvars
- Short 6-digit hex IDs with a ``req_`` prefix
- Automatic fallback for operations started outside a tool call
"""

import asyncio
import secrets
from contextvars import ContextVar
from functools import wraps
from typing import Callable, Optional, TypeVar

# Global context variable for request ID - thread-safe and async-safe
REQUEST_ID_CONTEXT: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

T = TypeVar("T")


def generate_request_id() -> str:
    """Generate a unique 6-digit hex request ID with req_ prefix.

    Returns:
        str: Request ID in format 'req_a1b2c3'

    Examples:
        >>> request_id = generate_request_id()
        >>> request_id.startswith('req_')
        True
        >>> len(request_id) == 9  # 'req_' + 6 hex chars
        True
    """
    return f"req_{secrets.token_hex(3)}"  # 3 bytes = 6 hex chars


def get_request_id() -> Optional[str]:
    """Get the current request ID from context, or None if unset."""
    return REQUEST_ID_CONTEXT.get()


def set_request_id(request_id: str) -> None:
    """Set the request ID in the current context.

    Args:
        request_id: Request ID to set (e.g., 'req_a1b2c3')
    """
    REQUEST_ID_CONTEXT.set(request_id)


def format_request_id(request_id: Optional[str]) -> str:
    """Format request ID for logging and display.

    Examples:
        >>> format_request_id('req_a1b2c3')
        'req_a1b2c3'
        >>> format_request_id(None)
        'req_unknown'
    """
    return request_id or "req_unknown"


def ensure_request_id() -> str:
    """Ensure a request ID exists, generating one if necessary.

    Returns:
        str: Current or newly generated request ID
    """
    current_id = get_request_id()
    if current_id:
        return current_id

    new_id = generate_request_id()
    set_request_id(new_id)
    return new_id


def with_request_id(request_id: Optional[str] = None):
    """Decorator to run a function inside a request ID context.

    Uses the given ID, the ID already in context, or a freshly generated one,
    and restores the previous context when the function returns.

    Examples:
        @with_request_id()
        async def health_check():
            return get_request_id()
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        if asyncio.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs) -> T:
                current_id = request_id or get_request_id() or generate_request_id()

                token = REQUEST_ID_CONTEXT.set(current_id)
                try:
                    return await func(*args, **kwargs)
                finally:
                    REQUEST_ID_CONTEXT.reset(token)

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs) -> T:
            current_id = request_id or get_request_id() or generate_request_id()

            token = REQUEST_ID_CONTEXT.set(current_id)
            try:
                return func(*args, **kwargs)
            finally:
                REQUEST_ID_CONTEXT.reset(token)

        return sync_wrapper

    return decorator

