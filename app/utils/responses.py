from typing import Any, Dict, Optional
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.schemas.response import ApiResponse, ErrorResponse


def create_api_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Wrap a payload in the ``{success, data, message?}`` envelope.

    ``message`` is left out entirely when not given.
    """
    response = ApiResponse(data=jsonable_encoder(data), message=message)
    body = response.model_dump(mode="json")
    if body["message"] is None:
        body.pop("message")
    return body


def create_error_response(
    status_code: int,
    error: str,
    message: Optional[str] = None,
    document_id: Optional[UUID] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Build the ``{success: false, error, message?, document_id?}`` response."""
    response = ErrorResponse(error=error, message=message, document_id=document_id)
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )
