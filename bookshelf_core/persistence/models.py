"""
Bookshelf core database models
"""

import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Integer, String, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from .database import Base
from .. import schemas


class Author(Base):
    """
    Model representing one author, the inverse side of the author-book relationship
    """

    __tablename__ = "authors"

    id: Mapped[int] = mapped_column(Integer, nullable=False, primary_key=True, autoincrement=True, unique=True)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)

    books: Mapped[List["Book"]] = relationship(
        "Book",
        back_populates="author",
        cascade="all,delete",
        passive_deletes=True,
        order_by="Book.id"
    )
    """Books of the author, removed together with the author (also by the foreign key cascade)"""

    @property
    def schema(self) -> schemas.Author:
        """
        Immutable record of the database model that can be handed to the upper layers
        """

        return schemas.Author(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            books=tuple(book.reference for book in self.books)
        )

    @property
    def reference(self) -> schemas.AuthorReference:
        return schemas.AuthorReference(id=self.id, first_name=self.first_name, last_name=self.last_name)

    def __repr__(self) -> str:
        return f"Author(id={self.id}, first_name={self.first_name!r}, last_name={self.last_name!r})"


class Book(Base):
    """
    Model representing one book, the owning side of the author-book relationship
    """

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(Integer, nullable=False, primary_key=True, autoincrement=True, unique=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    cover_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    comment: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Free-text comment about the book, part of the representation since API version 2.0"""
    author_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("authors.id", ondelete="CASCADE"), nullable=True)

    author: Mapped[Optional[Author]] = relationship("Author", back_populates="books")

    @property
    def schema(self) -> schemas.Book:
        """
        Immutable record of the database model that can be handed to the upper layers
        """

        return schemas.Book(
            id=self.id,
            title=self.title,
            cover_text=self.cover_text,
            comment=self.comment,
            author=self.author and self.author.reference
        )

    @property
    def reference(self) -> schemas.BookReference:
        return schemas.BookReference(id=self.id, title=self.title, cover_text=self.cover_text)

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title={self.title!r}, author_id={self.author_id})"


class User(Base):
    """
    Model representing an account that may log in to the API
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, nullable=False, primary_key=True, autoincrement=True, unique=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    roles: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    created: Mapped[datetime.datetime] = mapped_column(DateTime, server_default=func.now())

    @property
    def schema(self) -> schemas.User:
        """
        Pydantic schema representation of the database model that can be sent to clients
        """

        return schemas.User(
            id=self.id,
            username=self.username,
            roles=list(self.roles or []),
            created=int(self.created.timestamp())
        )

    def has_role(self, role: str) -> bool:
        return role in (self.roles or [])

    def __repr__(self) -> str:
        return f"User(id={self.id}, username={self.username!r}, roles={self.roles})"
