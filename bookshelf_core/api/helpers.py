"""
Generic helper library for the core REST API

The helpers implement the request handling pipeline shared by the
resource path operations: authorize (for mutating requests), decode,
validate, execute, invalidate cached lists and finally respond.
"""

import logging
from typing import Dict, Optional, Tuple, Type, Union

from fastapi.responses import Response

from . import auth, versioning
from .dependency import LocalRequestData
from .. import errors, schemas
from ..misc import serializer, validation
from ..misc.logger import enforce_logger
from ..persistence.repository import AuthorRepository, Repository
from ..schemas import config


CACHE_TAG = "booksCache"
"""Single tag shared by all cached list pages of both resource kinds"""

Payload = Union[schemas.AuthorPayload, schemas.BookPayload]
Entity = Union[schemas.Author, schemas.Book]


def _positive_or_default(value: Optional[str], default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def parse_pagination(page: Optional[str], limit: Optional[str], general: config.GeneralConfig) -> Tuple[int, int]:
    """
    Normalize the raw pagination query parameters

    Absent, non-numeric and non-positive values fall back to the configured
    defaults. The limit is clamped to the maximum page size, if configured.

    :param page: raw value of the ``page`` query parameter
    :param limit: raw value of the ``limit`` query parameter
    :param general: general config section holding the defaults
    :return: tuple of the effective page and limit
    """

    page = _positive_or_default(page, general.default_page)
    limit = _positive_or_default(limit, general.default_limit)
    if general.max_page_size is not None:
        limit = min(limit, general.max_page_size)
    return page, limit


def get_list_cache_key(kind: schemas.ResourceKind, page: int, limit: int) -> str:
    return f"{kind.list_cache_prefix}-{page}-{limit}"


def get_detail_url(kind: schemas.ResourceKind, identity: int, local: LocalRequestData) -> str:
    return str(local.request.url_for(f"get_{kind.value}", **{f"{kind.value}_id": identity}))


def make_links(kind: schemas.ResourceKind, identity: int, local: LocalRequestData) -> Dict[str, str]:
    """
    Build the hypermedia links of one resource for the requesting user

    The ``self`` link is always present. The ``update`` and ``delete``
    links are only advertised to users holding the admin role.
    """

    url = get_detail_url(kind, identity, local)
    links = {"self": url}
    if local.has_role(auth.ADMIN_ROLE):
        links["update"] = url
        links["delete"] = url
    return links


def _get_version(local: LocalRequestData, versioned: bool) -> Tuple[str, str]:
    if versioned:
        version = local.version
        return version, versioning.get_media_type(version)
    return local.config.general.default_api_version, versioning.get_media_type()


def _validate(entity: Entity, logger: logging.Logger):
    violations = validation.validate(entity)
    if violations:
        logger.debug(f"Rejecting {type(entity).__name__} with {len(violations)} violation(s)")
        raise errors.ValidationError(violations)


def _resolve_author(entity: Entity, payload: Payload, local: LocalRequestData) -> Entity:
    """
    Link a book to the author referenced by the ``idAuthor`` of its payload

    A missing or unresolved author identity leaves the book without author.
    """

    if not isinstance(payload, schemas.BookPayload):
        return entity
    author = AuthorRepository(local.session).find(payload.id_author)
    return entity.model_copy(update={"author": author and author.reference})


def _invalidate(local: LocalRequestData, logger: logging.Logger):
    removed = local.cache.invalidate_by_tag(CACHE_TAG)
    logger.debug(f"Dropped {removed} cached list page(s)")


async def get_page(
        repository_class: Type[Repository],
        page: Optional[str],
        limit: Optional[str],
        local: LocalRequestData
) -> Response:
    """
    Return one page of resources in their list view, read through the cache

    :param repository_class: repository of the requested kind of resources
    :param page: raw value of the ``page`` query parameter
    :param limit: raw value of the ``limit`` query parameter
    :param local: contextual local data
    :return: response containing the JSON list
    """

    page, limit = parse_pagination(page, limit, local.config.general)
    kind = repository_class.kind

    def compute() -> bytes:
        records = repository_class(local.session).find_page(page, limit)
        return serializer.encode(records, serializer.LIST_VIEW, local.config.general.default_api_version)

    content = local.cache.get_or_compute(get_list_cache_key(kind, page, limit), [CACHE_TAG], compute)
    return Response(content, media_type=versioning.get_media_type())


async def get_one(
        repository_class: Type[Repository],
        identity: int,
        local: LocalRequestData,
        versioned: bool = False
) -> Response:
    """
    Return one resource in its detail view including the hypermedia links

    :param repository_class: repository of the requested kind of resource
    :param identity: ID of the requested resource
    :param local: contextual local data
    :param versioned: switch whether to use the negotiated representation version
    :return: response containing the JSON object
    :raises NotFoundError: when the ID doesn't resolve to a stored resource
    """

    record = repository_class(local.session).find_by_id(identity)
    version, media_type = _get_version(local, versioned)
    links = make_links(repository_class.kind, record.id, local)
    return Response(serializer.encode(record, serializer.DETAIL_VIEW, version, links), media_type=media_type)


async def create_one(
        repository_class: Type[Repository],
        local: LocalRequestData,
        logger: Optional[logging.Logger] = None,
        forbidden_message: Optional[str] = None,
        versioned: bool = False
) -> Response:
    """
    Create a new resource from the JSON body of the request

    :param repository_class: repository of the kind of the new resource
    :param local: contextual local data
    :param logger: optional logger that should be used for INFO and ERROR messages
    :param forbidden_message: optional message for requests lacking the admin role
    :param versioned: switch whether to use the negotiated representation version
    :return: 201 response with the stored resource and its ``Location``
    :raises AuthorizationError: when the requesting user is no admin
    :raises DecodeError: when the body couldn't be decoded
    :raises ValidationError: when the new resource violates any constraint
    """

    logger = enforce_logger(logger)
    local.require_role(auth.ADMIN_ROLE, forbidden_message)

    kind = repository_class.kind
    payload = serializer.decode(await local.request.body(), kind)
    entity = payload.to_entity()
    _validate(entity, logger)

    entity = _resolve_author(entity, payload, local)
    stored = repository_class(local.session, logger).persist(entity)
    _invalidate(local, logger)

    version, media_type = _get_version(local, versioned)
    links = make_links(kind, stored.id, local)
    return Response(
        serializer.encode(stored, serializer.DETAIL_VIEW, version, links),
        status_code=201,
        headers={"Location": links["self"]},
        media_type=media_type
    )


async def update_one(
        repository_class: Type[Repository],
        identity: int,
        local: LocalRequestData,
        logger: Optional[logging.Logger] = None,
        forbidden_message: Optional[str] = None
) -> Response:
    """
    Replace the state of an existing resource by the JSON body of the request

    The decoded fields are merged onto the stored record before validation.
    For books, the author link is always replaced by the ``idAuthor`` of the
    body, i.e. a missing ``idAuthor`` removes the link to the author.

    :return: 204 response without body
    :raises AuthorizationError: when the requesting user is no admin
    :raises NotFoundError: when the ID doesn't resolve to a stored resource
    :raises DecodeError: when the body couldn't be decoded
    :raises ValidationError: when the updated resource violates any constraint
    """

    logger = enforce_logger(logger)
    local.require_role(auth.ADMIN_ROLE, forbidden_message)

    repository = repository_class(local.session, logger)
    current = repository.find_by_id(identity)
    payload = serializer.decode(await local.request.body(), repository_class.kind)
    entity = payload.merge_into(current)
    _validate(entity, logger)

    entity = _resolve_author(entity, payload, local)
    repository.persist(entity)
    _invalidate(local, logger)
    return Response(status_code=204)


async def delete_one(
        repository_class: Type[Repository],
        identity: int,
        local: LocalRequestData,
        logger: Optional[logging.Logger] = None,
        forbidden_message: Optional[str] = None
) -> Response:
    """
    Delete an existing resource (and, for authors, all their books)

    :return: 204 response without body
    :raises AuthorizationError: when the requesting user is no admin
    :raises NotFoundError: when the ID doesn't resolve to a stored resource
    """

    logger = enforce_logger(logger)
    local.require_role(auth.ADMIN_ROLE, forbidden_message)

    repository = repository_class(local.session, logger)
    repository.remove(repository.find_by_id(identity))
    _invalidate(local, logger)
    return Response(status_code=204)
