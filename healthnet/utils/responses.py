# healthnet/utils/responses.py
from typing import Any, Optional


def success_response(data: Any = None, message: str = "Success") -> dict:
    """Standard success envelope returned by every router."""
    return {"success": True, "message": message, "data": data}


def error_response(message: str, errors: Optional[Any] = None) -> dict:
    body = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = errors
    return body
