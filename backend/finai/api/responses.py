"""
JSON error envelope shared by the API routes
"""
from typing import Any, Optional

from fastapi.responses import JSONResponse


def error_response(status_code: int, error: str, details: Optional[Any] = None) -> JSONResponse:
    """Build an {error, details} response"""
    content = {"success": False, "error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)
