import traceback
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from diarquia.core.config import AppConfig
from diarquia.schemas.booking import Envelope

GENERIC_SERVER_ERROR = "Internal server error"


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def envelope_response(
    status_code: int,
    message: str,
    success: bool = False,
    data: Optional[Dict[str, Any]] = None,
    details: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None,
    path: Optional[str] = None,
) -> JSONResponse:
    envelope = Envelope(success=success, message=message, data=data, details=details, error=error, path=path)
    return JSONResponse(status_code=status_code, content=envelope.to_content())


def internal_error_response(exc: BaseException, config: AppConfig) -> JSONResponse:
    """500 envelope; detail only leaves the process in development mode."""
    if config.is_development:
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return envelope_response(500, message=str(exc) or GENERIC_SERVER_ERROR, error=trace)
    return envelope_response(500, message=GENERIC_SERVER_ERROR)
