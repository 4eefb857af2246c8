from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, Optional
import json
import traceback
from .logger import logger


class FashionRelayError(Exception):
    """Base exception for the fashion design relay"""
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500):
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(self.message)


class MissingFieldError(FashionRelayError):
    """Raised when the single required field of a route is empty"""
    def __init__(self, message: str):
        super().__init__(message, "MISSING_FIELD", 400)


class InvalidRequestError(FashionRelayError):
    """Raised when the request body is not valid JSON or has the wrong shape"""
    def __init__(self, message: str = "Invalid JSON"):
        super().__init__(message, "INVALID_REQUEST", 400)


class ConfigurationError(FashionRelayError):
    def __init__(self, message: str = "REPLICATE_API_TOKEN not configured"):
        super().__init__(message, "CONFIGURATION_ERROR", 500)


class UpstreamAPIError(FashionRelayError):
    """Raised when the inference API answers with an unexpected HTTP status"""
    def __init__(self, upstream_status: int, body: str):
        self.upstream_status = upstream_status
        self.body = body
        super().__init__(f"API Error: {upstream_status} - {body}", "UPSTREAM_API_ERROR", 500)


class UpstreamParseError(FashionRelayError):
    """Raised when the inference API returns a body that is not valid JSON"""
    def __init__(self, detail: str):
        super().__init__(f"Parse Error: {detail}", "UPSTREAM_PARSE_ERROR", 500)


class UpstreamRequestError(FashionRelayError):
    """Raised when the request to the inference API could not be sent"""
    def __init__(self, detail: str):
        super().__init__(f"Request Error: {detail}", "UPSTREAM_REQUEST_ERROR", 500)


class PredictionFailedError(FashionRelayError):
    """Raised when the inference service reports the prediction as failed"""
    def __init__(self, error: Any):
        self.error = error
        if not isinstance(error, str) and error is not None:
            error = json.dumps(error, ensure_ascii=False, default=str)
        super().__init__(f"Prediction failed: {error}", "PREDICTION_FAILED", 500)


class PredictionTimeoutError(FashionRelayError):
    """Raised when the poll budget runs out before the prediction settles"""
    def __init__(self, prediction_id: str, attempts: int):
        self.prediction_id = prediction_id
        self.attempts = attempts
        super().__init__("Prediction timeout", "PREDICTION_TIMEOUT", 500)


class UnknownPredictionStatusError(FashionRelayError):
    def __init__(self, status: Optional[str]):
        self.status = status
        super().__init__(f"Unknown status: {status}", "UNKNOWN_PREDICTION_STATUS", 500)


class EmptyOutputError(FashionRelayError):
    def __init__(self, message: str = "No image URL returned from API"):
        super().__init__(message, "EMPTY_OUTPUT", 500)


class AllAnglesFailedError(FashionRelayError):
    def __init__(self, message: str = "Failed to generate any angle views"):
        super().__init__(message, "ALL_ANGLES_FAILED", 500)


class GenerationFailedError(FashionRelayError):
    """Wraps a downstream error with the name of the stage that failed"""
    def __init__(self, stage_message: str, cause: FashionRelayError):
        self.cause = cause
        super().__init__(f"{stage_message}: {cause.message}", "GENERATION_FAILED", cause.status_code)


async def fashion_relay_exception_handler(request: Request, exc: FashionRelayError):
    """Handle custom application exceptions"""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"Application exception: {exc.code} - {exc.message}",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "request_path": request.url.path,
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.message,
            "code": exc.code,
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are client errors, not 422s"""
    if any(err.get("type") == "json_invalid" for err in exc.errors()):
        error = InvalidRequestError()
    else:
        error = InvalidRequestError("Invalid request body")
    return await fashion_relay_exception_handler(request, error)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions, including unknown routes and wrong methods"""
    logger.warning(
        f"HTTP {exc.status_code}: {exc.detail}",
        extra={
            "http_status_code": exc.status_code,
            "http_detail": exc.detail,
            "request_path": request.url.path,
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "code": "HTTP_ERROR",
        },
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions"""
    logger.error(
        f"Unhandled exception: {type(exc).__name__} - {str(exc)}",
        extra={
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
            "request_path": request.url.path,
            "exc_traceback": traceback.format_exc(),
        }
    )
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "An internal error occurred. Please try again later.",
            "code": "INTERNAL_SERVER_ERROR",
        }
    )
