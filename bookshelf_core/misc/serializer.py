"""
Serializer turning author and book records into JSON and request bodies into payloads

Records are first projected onto an explicit view schema (see
``schemas.views``), which whitelists the attributes of one named view.
The projected view is then dumped for the requested API version:
fields marked ``since`` a newer version or ``until`` an older or
equal version are left out of the representation.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import pydantic

from .. import errors, schemas


logger = logging.getLogger(__name__)

LIST_VIEW = "list"
DETAIL_VIEW = "detail"
VIEWS = (LIST_VIEW, DETAIL_VIEW)

Entity = Union[schemas.Author, schemas.Book]
Links = Optional[Dict[str, str]]

PAYLOADS = {
    schemas.ResourceKind.AUTHOR: schemas.AuthorPayload,
    schemas.ResourceKind.BOOK: schemas.BookPayload
}


def parse_version(version: Union[str, Tuple[int, ...]]) -> Tuple[int, ...]:
    """
    Convert a version string like ``2.0`` into a comparable tuple

    :raises ValueError: when the version is not made of dot-separated integers
    """

    if isinstance(version, tuple):
        return version
    parts = tuple(int(part) for part in str(version).strip().split("."))
    while len(parts) > 1 and parts[-1] == 0:
        parts = parts[:-1]
    return parts


def _author_reference(author: Optional[schemas.AuthorReference]) -> Optional[schemas.AuthorReferenceView]:
    if author is None:
        return None
    return schemas.AuthorReferenceView(id=author.id, first_name=author.first_name, last_name=author.last_name)


def _links(links: Links) -> Dict[str, schemas.Link]:
    return {name: schemas.Link(href=href) for name, href in (links or {}).items()}


def to_book_list_view(book: schemas.Book) -> schemas.BookListView:
    return schemas.BookListView(
        id=book.id,
        title=book.title,
        cover_text=book.cover_text,
        comment=book.comment,
        author=_author_reference(book.author)
    )


def to_book_detail_view(book: schemas.Book, links: Links = None) -> schemas.BookDetailView:
    return schemas.BookDetailView(
        **dict(to_book_list_view(book)),
        links=_links(links)
    )


def to_author_list_view(author: schemas.Author) -> schemas.AuthorListView:
    return schemas.AuthorListView(
        id=author.id,
        first_name=author.first_name,
        last_name=author.last_name,
        books=[schemas.BookReferenceView(id=b.id, title=b.title) for b in author.books]
    )


def to_author_detail_view(author: schemas.Author, links: Links = None) -> schemas.AuthorDetailView:
    return schemas.AuthorDetailView(
        id=author.id,
        first_name=author.first_name,
        last_name=author.last_name,
        books=[schemas.BookSummaryView(id=b.id, title=b.title, cover_text=b.cover_text) for b in author.books],
        links=_links(links)
    )


def project(entity: Entity, view: str, links: Links = None) -> pydantic.BaseModel:
    """
    Project a record onto the view schema of its kind

    :param entity: author or book record
    :param view: name of the view, one of ``VIEWS``
    :param links: optional hypermedia links (name to URL), used by the detail views only
    :return: instance of the view schema
    :raises ValueError: for unknown views
    :raises TypeError: for unsupported entities
    """

    if view not in VIEWS:
        raise ValueError(f"Unknown view {view!r}")
    if isinstance(entity, schemas.Book):
        return to_book_list_view(entity) if view == LIST_VIEW else to_book_detail_view(entity, links)
    if isinstance(entity, schemas.Author):
        return to_author_list_view(entity) if view == LIST_VIEW else to_author_detail_view(entity, links)
    raise TypeError(f"Can't project {type(entity)!r}")


def dump(value: Any, version: Tuple[int, ...]) -> Any:
    """
    Dump a view (or any nested structure of views) for the given API version
    """

    if isinstance(value, pydantic.BaseModel):
        result = {}
        for name, field in type(value).model_fields.items():
            extra = field.json_schema_extra if isinstance(field.json_schema_extra, dict) else {}
            if "since" in extra and parse_version(extra["since"]) > version:
                continue
            if "until" in extra and parse_version(extra["until"]) <= version:
                continue
            result[field.serialization_alias or name] = dump(getattr(value, name), version)
        return result
    if isinstance(value, (list, tuple)):
        return [dump(v, version) for v in value]
    if isinstance(value, dict):
        return {k: dump(v, version) for k, v in value.items()}
    return value


def encode(
        obj: Union[Entity, Sequence[Entity]],
        view: str,
        version: Union[str, Tuple[int, ...]],
        links: Links = None
) -> bytes:
    """
    Encode a record or a list of records as UTF-8 JSON

    :param obj: single record or sequence of records
    :param view: name of the view the records are projected onto
    :param version: API version of the representation
    :param links: optional hypermedia links of a single record in the detail view
    :return: encoded JSON document
    """

    v = parse_version(version)
    if isinstance(obj, (schemas.Author, schemas.Book)):
        content = dump(project(obj, view, links), v)
    else:
        content = [dump(project(entity, view), v) for entity in obj]
    return json.dumps(content, ensure_ascii=False, separators=(",", ":")).encode("UTF-8")


def encode_violations(violations: List[schemas.Violation]) -> bytes:
    return json.dumps([v.model_dump() for v in violations], ensure_ascii=False, separators=(",", ":")).encode("UTF-8")


def decode(data: Union[bytes, str], kind: schemas.ResourceKind) -> Union[schemas.AuthorPayload, schemas.BookPayload]:
    """
    Decode a JSON request body into the payload of the given kind

    Missing fields are not considered a decoding problem; the validator
    reports them later. Malformed documents and wrongly typed fields are.

    :param data: raw request body
    :param kind: kind of the targeted resource
    :return: decoded payload
    :raises DecodeError: when the body is no JSON object matching the payload
    """

    try:
        return PAYLOADS[kind].model_validate_json(data or b"")
    except pydantic.ValidationError as exc:
        violations = [
            schemas.Violation(field=".".join(map(str, error["loc"])) or "body", message=error["msg"])
            for error in exc.errors()
        ]
        logger.debug(f"Failed to decode {kind.value} payload: {violations}")
        raise errors.DecodeError(violations) from exc
