"""
JSON Serialization Utilities

Tool results are returned to the MCP host as pretty-printed JSON text. The
encoder here covers the non-JSON types that show up in API payloads and our
own result models: datetimes, Decimals, Enums and pydantic models.
"""

import json
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any


class MCPJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime, Decimal, Enum and pydantic objects."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        elif isinstance(obj, Decimal):
            return float(obj)
        elif isinstance(obj, Enum):
            return obj.value
        elif hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json")
        return super().default(obj)


def safe_json_dumps(obj: Any, indent: int = 2) -> str:
    """
    Serialize ``obj`` as indented JSON, keeping key insertion order.

    Falls back to a JSON envelope around ``str(obj)`` when the object
    cannot be encoded, so callers always get valid JSON back.

    Example:
        >>> print(safe_json_dumps({"b": 1, "a": 2}))
        {
          "b": 1,
          "a": 2
        }
    """
    try:
        return json.dumps(obj, cls=MCPJSONEncoder, ensure_ascii=False, indent=indent)
    except (TypeError, ValueError) as e:
        return json.dumps(
            {"error": f"Serialization failed: {e}", "data": str(obj)}, indent=indent
        )
