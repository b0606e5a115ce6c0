"""
Authentication helper library for the core REST API
"""

import datetime
from typing import List, Optional

from jose import jwt
from sqlalchemy.orm import Session
from argon2 import PasswordHasher, profiles

from . import base
from .. import schemas
from ..persistence import database, models


ADMIN_ROLE = "ROLE_ADMIN"
USER_ROLE = "ROLE_USER"

_password_check: Optional[PasswordHasher] = None


def configure_password_check(allow_weak_insecure_password_hashes: bool = False) -> PasswordHasher:
    """
    Select the argon2 parameters used for hashing and verifying passwords

    The cheapest profile must only be used for testing purposes.
    """

    global _password_check
    if allow_weak_insecure_password_hashes:
        _password_check = PasswordHasher.from_parameters(profiles.CHEAPEST)
    else:
        _password_check = PasswordHasher.from_parameters(profiles.RFC_9106_LOW_MEMORY)
    return _password_check


def _get_password_check() -> PasswordHasher:
    if _password_check is not None:
        return _password_check
    return configure_password_check()


def hash_password(password: str) -> str:
    return _get_password_check().hash(password)


async def check_user_credentials(username: str, password: str, session: Session) -> models.User:
    """
    Check the correctness of a password for a given username, raise some error otherwise
    """

    checker = _get_password_check()
    users = session.query(models.User).filter_by(username=username).all()
    if len(users) == 0:
        raise ValueError(f"Unknown user {username!r}!")
    user = users[0]
    checker.verify(user.hashed_password, password)
    if checker.check_needs_rehash(user.hashed_password):
        user.hashed_password = checker.hash(password)
        session.add(user)
        session.commit()
    return user


def create_user(username: str, password: str, roles: Optional[List[str]] = None) -> schemas.User:
    creation = schemas.UserCreation(username=username, password=password, roles=roles or [USER_ROLE])
    with database.get_new_session() as session:
        user = models.User(
            username=creation.username,
            hashed_password=hash_password(creation.password),
            roles=list(creation.roles)
        )
        session.add(user)
        session.commit()
        return user.schema


def create_access_token(username: str, expiration_minutes: int = 120) -> str:
    now = datetime.datetime.now(datetime.timezone.utc)
    return jwt.encode(
        {
            "exp": now + datetime.timedelta(minutes=expiration_minutes),
            "iat": now,
            "sub": username
        },
        base.runtime_key,
        algorithm=jwt.ALGORITHMS.HS256
    )
