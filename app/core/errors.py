# Exception handlers rendering every failure into the response envelope

import logging
from typing import Any, Dict, List, Sequence, Type, TypeVar

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppError, UnauthenticatedError, ValidationFailed
from app.core.responses import error_body

logger = logging.getLogger("app")

ModelT = TypeVar("ModelT", bound=BaseModel)

# Location prefixes that say where a field came from, not which field it is
_LOCATION_PARTS = {"body", "query", "path", "header", "cookie", "form"}

def format_validation_errors(errors: Sequence[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic errors into [{field, message}]"""
    formatted = []
    for err in errors:
        # Unparseable JSON is located by character offset, not by field
        if err.get("type") == "json_invalid":
            loc = []
        else:
            loc = [str(part) for part in err.get("loc", ()) if str(part) not in _LOCATION_PARTS]
        field = ".".join(loc) if loc else "body"
        # Messages raised by our own validators are shown verbatim
        ctx_error = (err.get("ctx") or {}).get("error")
        message = str(ctx_error) if ctx_error else err.get("msg", "Invalid value")
        formatted.append({"field": field, "message": message})
    return formatted

async def read_json_body(request: Request, model: Type[ModelT]) -> ModelT:
    """
    Parse and validate the request body as model.

    Routes that must authorize the caller before looking at the payload read
    the body through this instead of declaring it as a parameter, which
    FastAPI would parse ahead of every dependency.
    """
    try:
        return model.model_validate_json(await request.body())
    except ValidationError as e:
        raise ValidationFailed(format_validation_errors(e.errors()))

async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, ValidationFailed):
        body = error_body(errors=exc.errors)
    else:
        body = error_body(message=exc.message)

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthenticatedError) else None
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)

async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(errors=format_validation_errors(exc.errors())),
    )

async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message=str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )

async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(message="Internal server error"),
    )

def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
