"""
Bookshelf router module for /books requests
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from ..dependency import LocalRequestData
from .. import helpers
from ...persistence.repository import BookRepository
from ... import schemas


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/books",
    tags=["Books"]
)


@router.get("")
async def get_books(
        page: Optional[str] = None,
        limit: Optional[str] = None,
        local: LocalRequestData = Depends(LocalRequestData)
):
    """
    Return one page of books in the list view.

    Missing or invalid `page` and `limit` values fall back to the
    configured defaults (page 1 with 3 books, unless configured otherwise).
    """

    return await helpers.get_page(BookRepository, page, limit, local)


@router.get("/clearCache", response_class=PlainTextResponse)
async def clear_cache(request: Request):
    """
    Drop all cached pages of book and author lists.

    No authentication is needed, so any presented token is ignored.
    """

    removed = request.app.state.cache.invalidate_by_tag(helpers.CACHE_TAG)
    logger.info(f"Cache cleared on request, {removed} list page(s) dropped")
    return PlainTextResponse("Cache cleared")


@router.get(
    "/{book_id}",
    name="get_book",
    responses={404: {"model": schemas.APIError}}
)
async def get_book(book_id: int, local: LocalRequestData = Depends(LocalRequestData)):
    """
    Return one book in the detail view.

    The representation depends on the requested API version: the `comment`
    of the book is only included since version 2.0. Select the version with
    the `version` parameter of the `Accept` header or the `version` query.

    A 404 error will be returned if the `book_id` is unknown.
    """

    return await helpers.get_one(BookRepository, book_id, local, versioned=True)


@router.post(
    "",
    status_code=201,
    responses={400: {"model": schemas.APIError}, 403: {"model": schemas.APIError}}
)
async def create_book(local: LocalRequestData = Depends(LocalRequestData)):
    """
    Create a new book, optionally linked to the author identified by `idAuthor`.

    A 400 error will be returned with the list of violations if the book is invalid.
    A 403 error will be returned if the requesting user is no admin.
    """

    return await helpers.create_one(
        BookRepository,
        local,
        logger,
        "Insufficient privileges to create a book",
        versioned=True
    )


@router.put(
    "/{book_id}",
    status_code=204,
    responses={403: {"model": schemas.APIError}, 404: {"model": schemas.APIError}}
)
async def update_book(book_id: int, local: LocalRequestData = Depends(LocalRequestData)):
    """
    Update an existing book.

    The `title` and the `coverText` are always replaced, the `comment` only
    if it's present in the body. The author is replaced by the one identified
    by `idAuthor`; without a known `idAuthor`, the book loses its author.

    A 403 error will be returned if the requesting user is no admin.
    A 404 error will be returned if the `book_id` is unknown.
    """

    return await helpers.update_one(BookRepository, book_id, local, logger, "Insufficient privileges to update a book")


@router.delete(
    "/{book_id}",
    status_code=204,
    responses={403: {"model": schemas.APIError}, 404: {"model": schemas.APIError}}
)
async def delete_book(book_id: int, local: LocalRequestData = Depends(LocalRequestData)):
    """
    Delete an existing book.

    A 403 error will be returned if the requesting user is no admin.
    A 404 error will be returned if the `book_id` is unknown.
    """

    return await helpers.delete_one(BookRepository, book_id, local, logger, "Insufficient privileges to delete a book")
