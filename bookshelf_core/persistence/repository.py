"""
Bookshelf repositories: pagination-aware query layer over the database models

The repositories hand out and accept the immutable records of the
``schemas`` package only. Every ``persist`` and ``remove`` commits
its own transaction; there is no batching across calls.
"""

import logging
from typing import Generic, List, Optional, Type, TypeVar

import pydantic
import sqlalchemy
from sqlalchemy.orm import Session

from . import models
from .. import schemas
from ..errors import NotFoundError


ModelT = TypeVar("ModelT", models.Author, models.Book)
RecordT = TypeVar("RecordT", schemas.Author, schemas.Book)

MAX_IDENTITY = 2 ** 63 - 1
"""
largest value the signed 64-bit integer columns of the database can hold
"""


class Repository(Generic[ModelT, RecordT]):
    """
    Generic repository over one kind of entity bound to a database session
    """

    model: Type[ModelT]
    kind: schemas.ResourceKind

    def __init__(self, session: Session, logger: Optional[logging.Logger] = None):
        self.session = session
        self.logger = logger or logging.getLogger(__name__)

    def _lookup(self, identity: int) -> Optional[ModelT]:
        if not -MAX_IDENTITY <= identity <= MAX_IDENTITY:
            return None
        return self.session.get(self.model, identity)

    def _get_model(self, identity: int) -> ModelT:
        obj = self._lookup(identity)
        if obj is None:
            raise NotFoundError(self.model.__name__, identity)
        return obj

    def _apply(self, obj: ModelT, record: RecordT) -> None:
        raise NotImplementedError

    def find_by_id(self, identity: int) -> RecordT:
        """
        Return the record identified by its ID

        :raises NotFoundError: when the ID doesn't resolve to a stored entity
        """

        return self._get_model(identity).schema

    def find(self, identity: Optional[int]) -> Optional[RecordT]:
        """
        Return the record identified by its ID or None if there's no such record
        """

        if identity is None:
            return None
        obj = self._lookup(identity)
        return obj and obj.schema

    def find_page(self, page: pydantic.PositiveInt, limit: pydantic.PositiveInt) -> List[RecordT]:
        """
        Return one page of records in the stable order of their IDs

        :param page: one-based page number
        :param limit: page size, i.e. the maximum number of returned records
        :return: list of at most ``limit`` records, skipping ``(page - 1) * limit``
        """

        if page < 1 or limit < 1:
            raise ValueError(f"Invalid pagination (page={page}, limit={limit})")
        offset = (page - 1) * limit
        if offset > MAX_IDENTITY:
            return []
        limit = min(limit, MAX_IDENTITY)
        query = (
            sqlalchemy.select(self.model)
            .order_by(self.model.id)
            .offset(offset)
            .limit(limit)
        )
        return [obj.schema for obj in self.session.scalars(query).all()]

    def count(self) -> int:
        return self.session.scalar(sqlalchemy.select(sqlalchemy.func.count()).select_from(self.model))

    def persist(self, record: RecordT) -> RecordT:
        """
        Insert a new record or update the stored state of an existing one

        :return: the stored record with its assigned identity
        :raises NotFoundError: when an existing record has been removed meanwhile
        """

        if record.id is None:
            obj = self.model()
        else:
            obj = self._get_model(record.id)
        self._apply(obj, record)
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        self.logger.info(f"Persisted {obj!r}")
        return obj.schema

    def remove(self, record: RecordT) -> None:
        """
        Remove a record from the database

        :raises NotFoundError: when the record doesn't exist (anymore)
        """

        obj = self._get_model(record.id)
        self.logger.debug(f"Deleting model {obj!r}...")
        self.session.delete(obj)
        self.session.commit()
        self.logger.info(f"Removed {self.model.__name__} with ID {record.id}")


class AuthorRepository(Repository[models.Author, schemas.Author]):
    """
    Repository of authors

    Removing an author removes all books of that author as well, which
    is declared as ``ON DELETE CASCADE`` on the foreign key of the books.
    """

    model = models.Author
    kind = schemas.ResourceKind.AUTHOR

    def _apply(self, obj: models.Author, record: schemas.Author) -> None:
        obj.first_name = record.first_name
        obj.last_name = record.last_name


class BookRepository(Repository[models.Book, schemas.Book]):
    """
    Repository of books
    """

    model = models.Book
    kind = schemas.ResourceKind.BOOK

    def _apply(self, obj: models.Book, record: schemas.Book) -> None:
        obj.title = record.title
        obj.cover_text = record.cover_text
        obj.comment = record.comment
        obj.author = record.author and self.session.get(models.Author, record.author.id)
