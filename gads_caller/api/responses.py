"""
Error response envelope: {"success": false, "message": ..., **context}.
"""
from fastapi.responses import JSONResponse


def error_response(status_code: int, message: str, **context) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **context},
    )
