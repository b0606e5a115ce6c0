"""
Bookshelf REST API base library
"""

import logging
import secrets
from typing import Any, Dict, Optional, Union

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import errors, schemas
from ..misc import serializer


logger = logging.getLogger(__name__)

runtime_key = secrets.token_hex(16)


class APIWithoutValidationError(FastAPI):
    """
    FastAPI class that excludes 422 validation error responses in OpenAPI schema
    """

    def openapi(self) -> Dict[str, Any]:
        if not self.openapi_schema:
            schema = super().openapi()
            for path, operations in schema.get("paths", {}).items():
                for method, metadata in operations.items():
                    metadata.get("responses", {}).pop("422", None)
        return self.openapi_schema


def _make_error(
        request: Request,
        status_code: int,
        repeat: bool,
        message: str,
        details: str,
        headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    error = schemas.APIError(
        status=status_code,
        method=request.method,
        request=request.url.path,
        repeat=repeat,
        message=message,
        details=details
    )
    return JSONResponse(jsonable_encoder(error), status_code=status_code, headers=headers)


async def handle_generic_exception(request: Request, _: Exception):
    logger.exception("Unhandled exception caught in base exception handler!")
    return _make_error(
        request,
        500,
        False,
        "Unexpected server error. The requested action wasn't completed successfully.",
        ""
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    msgs = "\n".join(["\t" + error["msg"] for error in exc.errors()])
    message = f"Failed to process the request:\n{msgs}"
    return _make_error(request, 400, False, message, str(exc.errors()))


async def handle_authorization_error(request: Request, exc: errors.AuthorizationError):
    logger.debug(f"Rejected '{request.method} {request.url.path}' due to missing role {exc.role!r}")
    return _make_error(request, 403, False, exc.message, f"role={exc.role!r}")


async def handle_violations(request: Request, exc: Union[errors.DecodeError, errors.ValidationError]):
    """
    Answer decoding and validation problems with the plain list of violations
    """

    logger.debug(f"{type(exc).__name__} @ '{request.method} {request.url.path}': {exc}")
    return Response(serializer.encode_violations(exc.violations), status_code=400, media_type="application/json")


async def handle_not_found_error(request: Request, exc: errors.NotFoundError):
    return await APIException.handle(request, NotFound(f"{exc.kind} with ID {exc.identity!r}", f"id={exc.identity!r}"))


class APIException(HTTPException):
    """
    Base class for any kind of generic API exception
    """

    def __init__(
            self,
            status_code: int,
            detail: Optional[str],
            repeat: bool = False,
            message: Optional[str] = None,
            headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.repeat = repeat
        self.message = message

    @classmethod
    async def handle(cls, request: Request, exc: StarletteHTTPException) -> Response:
        """
        Render any HTTP exception as APIError, including those raised by Starlette itself
        """

        message = getattr(exc, "message", None) or exc.__class__.__name__
        logger.debug(f"{type(exc).__name__}: {message} @ '{request.method} {request.url.path}' ({exc.detail})")
        return _make_error(
            request,
            exc.status_code,
            getattr(exc, "repeat", False),
            message,
            str(exc.detail),
            getattr(exc, "headers", None)
        )


class Unauthorized(APIException):
    """
    Exception when the request carries an invalid or expired access token
    """

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            status_code=401,
            detail=detail,
            repeat=False,
            message=message,
            headers={"WWW-Authenticate": "Bearer"}
        )


class NotFound(APIException):
    """
    Exception when a requested resource was not found in the system
    """

    def __init__(self, resource: str, detail: Optional[str] = None):
        super().__init__(
            status_code=404,
            detail=detail,
            repeat=False,
            message=f"{str(resource)!r} was not found."
        )
