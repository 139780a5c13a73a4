"""
Error handling for the HTTP transports.

Endpoints never leak stack traces or validation internals: bad input becomes
a 400 with a plain message, anything unexpected a logged 500.
"""
import asyncio
from functools import wraps
from typing import Any, Callable, TypeVar, Union

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.requests import Request as StarletteRequest

from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


def _translate(operation_name: str, exc: Exception) -> HTTPException:
    """Map an endpoint exception onto an HTTPException, logging it."""
    if isinstance(exc, ValueError):
        logger.warning(
            f"Validation error in {operation_name}: {exc}",
            extra={"operation": operation_name, "error_type": "validation"}
        )
        return HTTPException(status_code=400, detail=str(exc))

    logger.error(
        f"Error in {operation_name}: {exc}",
        exc_info=exc,
        extra={"operation": operation_name, "error_type": "server"}
    )
    return HTTPException(status_code=500, detail=f"Error processing {operation_name}")


def handle_api_errors(operation_name: str):
    """
    Decorator to standardize error handling across API endpoints.

    - HTTPException is re-raised as-is
    - ValueError becomes 400 (bad request)
    - anything else becomes 500 and is logged with its traceback

    Args:
        operation_name: Name of the operation (e.g., "analyze", "messages")

    Usage:
        @app.post("/api/analyze")
        @handle_api_errors("analyze")
        async def analyze(...):
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        if asyncio.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs) -> T:
                try:
                    return await func(*args, **kwargs)
                except HTTPException:
                    raise
                except Exception as e:
                    raise _translate(operation_name, e) from e
            return async_wrapper  # type: ignore

        @wraps(func)
        def sync_wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except HTTPException:
                raise
            except Exception as e:
                raise _translate(operation_name, e) from e
        return sync_wrapper  # type: ignore
    return decorator


# ============================================================================
# Custom Exception Handlers
# ============================================================================

def _bad_request(error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": error, "message": message}
    )


async def validation_exception_handler(
    request: Union[Request, StarletteRequest, Any],
    exc: Union[RequestValidationError, Exception]
) -> JSONResponse:
    """
    Turn pydantic validation errors into user-friendly 400 responses.

    Field locations, validator types and constraint values stay in the logs.

    Args:
        request: The incoming request
        exc: The validation error exception

    Returns:
        JSONResponse with a plain error message
    """
    errors = exc.errors() if hasattr(exc, "errors") else []
    logger.warning(
        f"Validation error on {request.url.path}: {errors}",
        extra={"url": str(request.url)}
    )

    for error in errors:
        error_type = error.get("type", "")

        if error_type == "string_too_short":
            return _bad_request("Empty message", "Please send a message describing your IT issue.")

        if error_type == "string_too_long":
            return _bad_request("Message too long", "Your message is too long. Please shorten it and try again.")

        if error_type == "missing":
            return _bad_request("Missing text", "Required information is missing. Please check your request.")

        if error_type == "json_invalid":
            return _bad_request(
                "Invalid request format",
                "Unable to process your request. Please check the format and try again."
            )

        if error_type == "value_error":
            return _bad_request("Invalid input", error.get("msg", "Invalid input value"))

    return _bad_request("Invalid request", "Please check your input and try again.")
