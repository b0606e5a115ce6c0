"""
Bookshelf router module for authentication
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from argon2.exceptions import VerificationError, InvalidHashError

from ..base import Unauthorized
from ..dependency import MinimalRequestData
from .. import auth
from ... import schemas


logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


@router.post(
    "/login",
    response_model=schemas.Token,
    responses={401: {"model": schemas.APIError}}
)
async def login(
        data: OAuth2PasswordRequestForm = Depends(),
        local: MinimalRequestData = Depends(MinimalRequestData)
):
    """
    Login using username and password via the OAuth Password Flow

    Note that this endpoint is the only API endpoint that uses
    URL-encoded form data instead of JSON bodies, since this
    is enforced by the OAuth standard for the Password Flow.

    See RFC 6749, section 1.3.3, for more details.
    """

    logger.debug(f"Login request using username {data.username!r}...")
    try:
        await auth.check_user_credentials(data.username, data.password, local.session)
    except (ValueError, VerificationError, InvalidHashError) as exc:
        raise Unauthorized("Invalid credentials", f"username={data.username!r}, password=?") from exc

    return {
        "access_token": auth.create_access_token(data.username, local.config.server.token_expiration_minutes),
        "token_type": "bearer"
    }
