"""
Bookshelf API dependency library
"""

import logging
from typing import Generator, Optional, Tuple

import sqlalchemy.exc
import fastapi.datastructures
from fastapi import Depends, Request, Response
from fastapi.security import OAuth2PasswordBearer
from jose import jwt
from sqlalchemy.orm import Session

from . import base, versioning
from .. import errors
from ..misc.cache import TagAwareCache
from ..persistence import database, models
from ..schemas.config import CoreConfig


def get_session() -> Generator[Session, None, bool]:
    """
    Return a generator to handle database sessions gracefully
    """

    logger = logging.getLogger(__name__)
    session = database.get_new_session()

    try:
        yield session
        session.flush()
    except sqlalchemy.exc.DBAPIError as exc:
        details = (exc.statement or "").replace("\n", "")
        logger.exception(f"{type(exc).__name__}: {exc} @ {details!r}")
        session.rollback()
        raise
    except sqlalchemy.exc.SQLAlchemyError as exc:
        logger.exception(f"{type(exc).__name__}: {str(exc)}")
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
    return True


class MinimalRequestData:
    """
    Collection of minimal dependencies used by path operations without any account
    """

    def __init__(
            self,
            request: Request,
            response: Response,
            session: Session = Depends(get_session)
    ):
        self.request = request
        self.response = response
        self.headers: fastapi.datastructures.Headers = request.headers
        self.session = session

    @property
    def config(self) -> CoreConfig:
        return self.request.app.state.settings

    @property
    def cache(self) -> TagAwareCache:
        return self.request.app.state.cache

    @property
    def version(self) -> str:
        """Representation version negotiated for this request"""
        return versioning.negotiate_version(self.request, self.config.general)


async def check_auth_token(
        token: Optional[str] = Depends(OAuth2PasswordBearer(tokenUrl="api/login", auto_error=False))
) -> Optional[Tuple[str, str, int]]:
    """
    Decode the optional bearer token of the request

    Requests without token are anonymous and yield ``None``. Presenting
    an invalid or expired token is always an error, though.
    """

    if token is None:
        return None

    credentials_exception = base.Unauthorized("Failed to validate token successfully", f"token={token!r}")
    try:
        payload = jwt.decode(
            token,
            base.runtime_key,
            algorithms=[jwt.ALGORITHMS.HS256],
            options={"require_exp": True, "require_iat": True}
        )
        username = payload.get("sub", None)
        expiration = int(payload.get("exp", 0))
        if username is None or expiration <= 0:
            raise credentials_exception
        return token, username, expiration
    except (jwt.JWTError, ValueError) as exc:
        raise credentials_exception from exc


class LocalRequestData(MinimalRequestData):
    """
    Collection of core dependencies used by all resource path operations

    This class stores references to various important objects that
    will almost certainly be used by request handlers (path operations),
    including the account of the requesting user, if a token was presented.
    Note that any dependency added here will be added to the OpenAPI
    definition, if it refers to a Query, Header, Path or Cookie.
    """

    def __init__(
            self,
            request: Request,
            response: Response,
            session: Session = Depends(get_session),
            auth_check: Optional[Tuple[str, str, int]] = Depends(check_auth_token)
    ):
        super().__init__(request, response, session)
        self.user: Optional[models.User] = None

        if auth_check is not None:
            token, username, _ = auth_check
            users = session.query(models.User).filter_by(username=username).all()
            if len(users) != 1:
                raise base.Unauthorized("Token owner couldn't be determined", f"token={token!r}")
            self.user = users[0]

    def has_role(self, role: str) -> bool:
        return self.user is not None and self.user.has_role(role)

    def require_role(self, role: str, message: Optional[str] = None):
        """
        Ensure that the requesting user holds the given role

        :raises AuthorizationError: for anonymous requests and users without the role
        """

        if not self.has_role(role):
            raise errors.AuthorizationError(role, message)
