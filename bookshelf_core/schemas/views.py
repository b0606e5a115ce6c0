"""
Bookshelf view schemas defining the representations of the resources

Every view whitelists the attributes of one representation. Fields
that were introduced or dropped in a certain API version are marked
with ``since`` or ``until`` in their extra schema information; the
serializer evaluates those markers for the requested API version.
"""

from typing import Dict, List, Optional

import pydantic


__all__ = [
    "Link", "AuthorReferenceView", "BookReferenceView", "BookSummaryView",
    "BookListView", "BookDetailView", "AuthorListView", "AuthorDetailView"
]


def since(version: str) -> Dict[str, str]:
    return {"since": version}


class Link(pydantic.BaseModel):
    href: str


class AuthorReferenceView(pydantic.BaseModel):
    id: pydantic.NonNegativeInt
    first_name: str = pydantic.Field(serialization_alias="firstName")
    last_name: str = pydantic.Field(serialization_alias="lastName")


class BookReferenceView(pydantic.BaseModel):
    id: pydantic.NonNegativeInt
    title: str


class BookSummaryView(BookReferenceView):
    cover_text: Optional[str] = pydantic.Field(None, serialization_alias="coverText")


class BookListView(pydantic.BaseModel):
    id: pydantic.NonNegativeInt
    title: str
    cover_text: Optional[str] = pydantic.Field(None, serialization_alias="coverText")
    comment: Optional[str] = pydantic.Field(None, json_schema_extra=since("2.0"))
    author: Optional[AuthorReferenceView] = None


class BookDetailView(BookListView):
    links: Dict[str, Link] = pydantic.Field(default_factory=dict, serialization_alias="_links")


class AuthorListView(pydantic.BaseModel):
    id: pydantic.NonNegativeInt
    first_name: str = pydantic.Field(serialization_alias="firstName")
    last_name: str = pydantic.Field(serialization_alias="lastName")
    books: List[BookReferenceView] = []


class AuthorDetailView(pydantic.BaseModel):
    id: pydantic.NonNegativeInt
    first_name: str = pydantic.Field(serialization_alias="firstName")
    last_name: str = pydantic.Field(serialization_alias="lastName")
    books: List[BookSummaryView] = []
    links: Dict[str, Link] = pydantic.Field(default_factory=dict, serialization_alias="_links")
