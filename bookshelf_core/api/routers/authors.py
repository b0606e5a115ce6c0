"""
Bookshelf router module for /authors requests
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ..dependency import LocalRequestData
from .. import helpers
from ...persistence.repository import AuthorRepository
from ... import schemas


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/authors",
    tags=["Authors"]
)


@router.get("")
async def get_authors(
        page: Optional[str] = None,
        limit: Optional[str] = None,
        local: LocalRequestData = Depends(LocalRequestData)
):
    """
    Return one page of authors in the list view, each with references to their books.
    """

    return await helpers.get_page(AuthorRepository, page, limit, local)


@router.get(
    "/{author_id}",
    name="get_author",
    responses={404: {"model": schemas.APIError}}
)
async def get_author(author_id: int, local: LocalRequestData = Depends(LocalRequestData)):
    """
    Return one author in the detail view.

    A 404 error will be returned if the `author_id` is unknown.
    """

    return await helpers.get_one(AuthorRepository, author_id, local)


@router.post(
    "",
    status_code=201,
    responses={400: {"model": schemas.APIError}, 403: {"model": schemas.APIError}}
)
async def create_author(local: LocalRequestData = Depends(LocalRequestData)):
    """
    Create a new author.

    A 400 error will be returned with the list of violations if the author is invalid.
    A 403 error will be returned if the requesting user is no admin.
    """

    return await helpers.create_one(AuthorRepository, local, logger, "Insufficient privileges to create an author")


@router.put(
    "/{author_id}",
    status_code=204,
    responses={403: {"model": schemas.APIError}, 404: {"model": schemas.APIError}}
)
async def update_author(author_id: int, local: LocalRequestData = Depends(LocalRequestData)):
    """
    Update the names of an existing author.

    A 403 error will be returned if the requesting user is no admin.
    A 404 error will be returned if the `author_id` is unknown.
    """

    return await helpers.update_one(
        AuthorRepository,
        author_id,
        local,
        logger,
        "Insufficient privileges to update an author"
    )


@router.delete(
    "/{author_id}",
    status_code=204,
    responses={403: {"model": schemas.APIError}, 404: {"model": schemas.APIError}}
)
async def delete_author(author_id: int, local: LocalRequestData = Depends(LocalRequestData)):
    """
    Delete an existing author together with all books of that author.

    A 403 error will be returned if the requesting user is no admin.
    A 404 error will be returned if the `author_id` is unknown.
    """

    return await helpers.delete_one(
        AuthorRepository,
        author_id,
        local,
        logger,
        "Insufficient privileges to delete an author"
    )
