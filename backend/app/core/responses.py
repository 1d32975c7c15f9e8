# app/core/responses.py
from typing import Any


def api_response(status_code: int, data: Any = None, message: str = "Success") -> dict:
    """
    Uniform success envelope. The HTTP status of the route must match `status_code`.
    """
    return {
        "statusCode": status_code,
        "data": data if data is not None else {},
        "message": message,
        "success": status_code < 400,
    }
