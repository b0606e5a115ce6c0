"""
Bookshelf router modules for handling requests to various endpoints

This module exports the ``router`` object which includes all known
endpoints and path operations below the common ``/api`` prefix.
"""

from fastapi import APIRouter

from . import authors, books, generic, login


router = APIRouter(prefix="/api")

# The order of the routers defines the order of the endpoints in the OpenAPI documentation
router.include_router(login.router)
router.include_router(books.router)
router.include_router(authors.router)
router.include_router(generic.router)
