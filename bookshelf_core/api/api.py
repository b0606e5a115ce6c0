"""
Bookshelf core REST API definitions

This API serves authors and their books. Reading is possible for
everyone, while creating, updating and deleting resources requires
an account with the admin role. Log in with username and password
(see `POST /api/login`) to get a token that should be included in the
`Authorization` header with the type `Bearer`.

Lists of books and authors are paginated with the `page` and `limit`
query parameters. The detail view of books is versioned: select the
representation version with the `version` parameter of the `Accept`
header (e.g. `Accept: application/json; version=2.0`).

Invalid resources are answered with `400` (Bad Request) and a plain list
of `{field, message}` violations. All other error responses use the
schema of the `APIError`: `401` (Unauthorized) for invalid or expired
tokens, `403` (Forbidden) for missing privileges and `404` (Not Found)
for unknown resource IDs.
"""

import logging
from typing import Optional

import fastapi
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import auth, base
from .routers import router
from .. import errors, schemas, __version__
from ..misc.cache import TagAwareCache
from ..misc.logger import configure_logging as _configure_logging
from ..persistence import database
from ..schemas.config import CoreConfig
from ..settings import Settings


DEFAULT_EXCEPTION_HANDLERS = {
    errors.AuthorizationError: base.handle_authorization_error,
    errors.DecodeError: base.handle_violations,
    errors.ValidationError: base.handle_violations,
    errors.NotFoundError: base.handle_not_found_error,
    StarletteHTTPException: base.APIException.handle,
    RequestValidationError: base.handle_request_validation_error,
    Exception: base.handle_generic_exception
}


async def _redirect_root():
    return fastapi.responses.RedirectResponse("./docs")


def create_app(
        settings: Optional[CoreConfig] = None,
        configure_logging: bool = True,
        configure_database: bool = True
) -> fastapi.FastAPI:
    """
    Create a new ``FastAPI`` instance using the specified settings and switches

    This function is conveniently used to allow overwriting the settings
    before launching the application as well as to allow multiple ``FastAPI``
    instances in one program, which in turn makes unit testing much easier.
    Every application gets its own response cache, which lives as long
    as the application and is available as ``app.state.cache``.

    :param settings: optional Settings instance (would be created if not present)
    :param configure_logging: switch whether to configure logging
    :param configure_database: switch whether to configure the database
    :return: new ``FastAPI`` instance
    """

    if settings is None:
        settings = Settings()

    if configure_logging:
        _configure_logging(settings.logging)
    logger = logging.getLogger(__name__)
    logger.debug("Starting application...")

    if configure_database:
        database.init(settings.database.connection, settings.database.debug_sql)
    auth.configure_password_check(settings.server.allow_weak_insecure_password_hashes)

    app = base.APIWithoutValidationError(
        title="Bookshelf core REST API",
        version=__version__,
        description=__doc__,
        responses={401: {"model": schemas.APIError}, 403: {"model": schemas.APIError}},
        exception_handlers=DEFAULT_EXCEPTION_HANDLERS
    )
    app.add_api_route("/", _redirect_root, include_in_schema=False)
    app.state.settings = settings
    app.state.cache = TagAwareCache(
        max_entries=settings.cache.max_entries,
        ttl=settings.cache.ttl,
        logger=logging.getLogger("bookshelf_core.cache")
    )
    app.include_router(router)

    logger.info(f"Serving supported API versions {', '.join(settings.general.supported_api_versions)}")
    return app


class APIWrapper:
    """
    Wrapper class around the FastAPI main object, accessible via the ``app`` property

    There should be only one global instance of this object, which should only
    export its functionality to hold the ``app`` property. This wrapper can be
    used to allow easy command-line usage via ``uvicorn`` calls. Example:

    .. code-block::

        uvicorn bookshelf_core.api:api.app
    """

    def __init__(self):
        self._app: Optional[fastapi.FastAPI] = None

    def set_app(self, application: fastapi.FastAPI):
        if not isinstance(application, fastapi.FastAPI):
            raise TypeError
        self._app = application

    @property
    def app(self) -> fastapi.FastAPI:
        """
        Return the ``app`` instance (or create it with default settings if it doesn't exist)
        """

        if self._app is not None:
            return self._app
        self._app = create_app()
        return self._app


api = APIWrapper()
