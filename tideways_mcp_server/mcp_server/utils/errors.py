"""
Error Sanitizing

Unexpected exceptions raised inside a tool call are turned into text for the
MCP host. This strips local file system details from that text first.
"""

import re
from pathlib import Path


def sanitize_error(error: Exception) -> str:
    """
    Make an exception message safe to hand back to the MCP host.

    Replaces the home directory with ``~``, drops directory components of
    absolute paths and truncates messages longer than 200 characters.

    Example:
        >>> sanitize_error(FileNotFoundError("/home/user/secret/file.txt not found"))
        'file.txt not found'
    """
    try:
        sanitized = str(error).replace(str(Path.home()), "~")
        sanitized = re.sub(r"/[a-zA-Z0-9_/.-]*/", "", sanitized)

        if len(sanitized) > 200:
            sanitized = sanitized[:200] + "..."

        return sanitized
    except Exception:
        return "Internal server error occurred"
