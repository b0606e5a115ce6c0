"""
Bookshelf schemas for the base system

This module contains the immutable records of authors and books,
the payloads decoded from request bodies, constraint violations
and the schemas of user accounts and their access tokens.
"""

import enum
from typing import List, Optional, Tuple

import pydantic


__all__ = [
    "ResourceKind", "Violation", "AuthorReference", "BookReference", "Author", "Book",
    "AuthorPayload", "BookPayload", "Token", "User", "UserCreation"
]


class ResourceKind(str, enum.Enum):
    AUTHOR = "author"
    BOOK = "book"

    @property
    def list_cache_prefix(self) -> str:
        """Prefix of the cache keys of paginated lists of this kind"""
        return f"get{self.value.capitalize()}List"


class Violation(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)

    field: str
    message: str


class AuthorReference(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)

    id: pydantic.NonNegativeInt
    first_name: str
    last_name: str


class BookReference(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)

    id: pydantic.NonNegativeInt
    title: str
    cover_text: Optional[str] = None


class Author(pydantic.BaseModel):
    """
    Author record as handled between repositories, validator and serializer

    The ``id`` is ``None`` as long as the record has not been persisted.
    The ``books`` are the inverse side of the relationship and therefore
    ignored when persisting an author; link books to authors instead.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    id: Optional[pydantic.NonNegativeInt] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    books: Tuple[BookReference, ...] = ()

    @property
    def reference(self) -> AuthorReference:
        return AuthorReference(id=self.id, first_name=self.first_name, last_name=self.last_name)


class Book(pydantic.BaseModel):
    """
    Book record as handled between repositories, validator and serializer

    The ``author`` is the owning side of the relationship. It's ``None``
    when the book is not linked to any author.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    id: Optional[pydantic.NonNegativeInt] = None
    title: Optional[str] = None
    cover_text: Optional[str] = None
    comment: Optional[str] = None
    author: Optional[AuthorReference] = None


class AuthorPayload(pydantic.BaseModel):
    """
    Decoded request body for creating or updating an author
    """

    model_config = pydantic.ConfigDict(strict=True, extra="ignore", populate_by_name=True)

    first_name: Optional[str] = pydantic.Field(None, alias="firstName")
    last_name: Optional[str] = pydantic.Field(None, alias="lastName")

    def to_entity(self) -> Author:
        return Author(first_name=self.first_name, last_name=self.last_name)

    def merge_into(self, current: Author) -> Author:
        return current.model_copy(update={"first_name": self.first_name, "last_name": self.last_name})


class BookPayload(pydantic.BaseModel):
    """
    Decoded request body for creating or updating a book

    The ``id_author`` is a link hint only. It's resolved by the request
    handler; if it doesn't resolve, the book stays without author.
    """

    model_config = pydantic.ConfigDict(strict=True, extra="ignore", populate_by_name=True)

    title: Optional[str] = None
    cover_text: Optional[str] = pydantic.Field(None, alias="coverText")
    comment: Optional[str] = None
    id_author: Optional[int] = pydantic.Field(None, alias="idAuthor")

    def to_entity(self) -> Book:
        return Book(title=self.title, cover_text=self.cover_text, comment=self.comment)

    def merge_into(self, current: Book) -> Book:
        update = {"title": self.title, "cover_text": self.cover_text}
        if "comment" in self.model_fields_set:
            update["comment"] = self.comment
        return current.model_copy(update=update)


class Token(pydantic.BaseModel):
    access_token: str
    token_type: str


class User(pydantic.BaseModel):
    id: pydantic.NonNegativeInt
    username: pydantic.constr(max_length=255)
    roles: List[str]
    created: pydantic.NonNegativeInt


class UserCreation(pydantic.BaseModel):
    username: pydantic.constr(min_length=1, max_length=255)
    password: pydantic.constr(min_length=1)
    roles: List[str] = ["ROLE_USER"]
