from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def create_response(
    message: str,
    data: dict | None = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Return a flat JSON payload: ``success``, ``message`` and any extra keys."""
    content = {
        "success": status_code < 400,
        "message": message,
    }
    if data:
        content.update(jsonable_encoder(data))
    return JSONResponse(status_code=status_code, content=content)


def handle_exception(error: Exception, fallback_message: str = "Internal server error") -> JSONResponse:
    """Coerce raised errors into the shared response structure."""
    if isinstance(error, HTTPException):
        detail = error.detail if isinstance(error.detail, str) else str(error.detail)
        return create_response(detail, None, error.status_code)

    return create_response(fallback_message, None, status.HTTP_500_INTERNAL_SERVER_ERROR)
