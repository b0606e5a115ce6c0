"""
Bookshelf unit tests for the cache, the validator, the serializer and related helpers
"""

import json
import logging
import unittest as _unittest
from typing import Callable, Optional

import cachetools
import pydantic
from starlette.requests import Request

from bookshelf_core import errors, schemas
from bookshelf_core.api import helpers, versioning
from bookshelf_core.misc import serializer, validation
from bookshelf_core.misc.cache import TagAwareCache
from bookshelf_core.misc.logger import NoDebugFilter, configure_logging, enforce_logger
from bookshelf_core.schemas import config


class TagAwareCacheTests(_unittest.TestCase):
    def test_read_through(self):
        cache = TagAwareCache()
        calls = []

        def compute() -> bytes:
            calls.append(None)
            return b"[]"

        self.assertEqual(b"[]", cache.get_or_compute("getBookList-1-3", ["booksCache"], compute))
        self.assertEqual(b"[]", cache.get_or_compute("getBookList-1-3", ["booksCache"], compute))
        self.assertEqual(1, len(calls))
        self.assertEqual((1, 1), (cache.hits, cache.misses))
        self.assertIn("getBookList-1-3", cache)
        self.assertNotIn("getBookList-2-3", cache)

    def test_invalidate_by_tag(self):
        cache = TagAwareCache()
        cache.set("getBookList-1-3", b"1", ["booksCache"])
        cache.set("getAuthorList-1-3", b"2", ["booksCache", "authors"])
        cache.set("unrelated", b"3", ["other"])
        cache.set("untagged", b"4")

        self.assertEqual(2, cache.invalidate_by_tag("booksCache"))
        self.assertIsNone(cache.get("getBookList-1-3"))
        self.assertIsNone(cache.get("getAuthorList-1-3"))
        self.assertEqual(b"3", cache.get("unrelated"))
        self.assertEqual(b"4", cache.get("untagged"))
        self.assertEqual(0, cache.invalidate_by_tag("booksCache"))
        self.assertEqual(0, cache.invalidate_by_tag("authors"))
        self.assertEqual(0, cache.invalidate_by_tag("unknown"))

        self.assertEqual(1, cache.invalidate_tags(["other", "unknown"]))
        cache.delete("untagged")
        self.assertEqual(0, len(cache))

    def test_recompute_after_invalidation(self):
        cache = TagAwareCache()
        values = iter([b"old", b"new"])
        self.assertEqual(b"old", cache.get_or_compute("key", ["tag"], lambda: next(values)))
        cache.invalidate_by_tag("tag")
        self.assertEqual(b"new", cache.get_or_compute("key", ["tag"], lambda: next(values)))
        cache.clear()
        self.assertEqual(0, len(cache))

    def test_bounded_storage(self):
        cache = TagAwareCache(max_entries=2)
        for i in range(3):
            cache.set(f"key{i}", b"x", ["tag"])
        self.assertEqual(2, len(cache))
        self.assertNotIn("key0", cache)
        self.assertEqual(2, cache.invalidate_by_tag("tag"))

        self.assertIsInstance(TagAwareCache(ttl=60)._entries, cachetools.TTLCache)
        self.assertIsInstance(TagAwareCache()._entries, cachetools.LRUCache)


    def test_invalidation_during_compute(self):
        cache = TagAwareCache()

        def compute_racing_with(invalidate: Callable[[], object]) -> Callable[[], bytes]:
            def compute() -> bytes:
                invalidate()
                return b"stale"
            return compute

        racing = compute_racing_with(lambda: cache.invalidate_by_tag("booksCache"))
        self.assertEqual(b"stale", cache.get_or_compute("getBookList-1-3", ["booksCache"], racing))
        self.assertNotIn("getBookList-1-3", cache)
        self.assertEqual(set(), cache.keys_of("booksCache"))

        racing = compute_racing_with(cache.clear)
        self.assertEqual(b"stale", cache.get_or_compute("getBookList-1-3", ["booksCache"], racing))
        self.assertNotIn("getBookList-1-3", cache)

        unrelated = compute_racing_with(lambda: cache.invalidate_by_tag("other"))
        self.assertEqual(b"stale", cache.get_or_compute("getBookList-1-3", ["booksCache"], unrelated))
        self.assertIn("getBookList-1-3", cache)
        self.assertEqual(b"stale", cache.get_or_compute("getBookList-1-3", ["booksCache"], lambda: b"fresh"))

    def test_evicted_keys_leave_tags(self):
        cache = TagAwareCache(max_entries=2)
        for i in range(5):
            cache.set(f"key{i}", b"x", ["tag"])
        self.assertEqual({"key3", "key4"}, cache.keys_of("tag"))
        self.assertEqual({"key3", "key4"}, cache._tags["tag"])


class ValidatorTests(_unittest.TestCase):
    def test_valid_entities(self):
        self.assertEqual([], validation.validate(schemas.Author(first_name="J", last_name="V" * 255)))
        self.assertEqual([], validation.validate(schemas.Book(title="T")))
        self.assertEqual([], validation.validate(schemas.Book(title="é" * 255, comment="c" * 255)))

    def test_author_violations(self):
        violations = validation.validate(schemas.Author(first_name="", last_name=None))
        self.assertEqual(["firstName", "firstName", "lastName"], [v.field for v in violations])
        self.assertEqual("The last name of the author is mandatory", violations[-1].message)
        self.assertEqual(
            ["The first name of the author is mandatory", "The first name must have at least 1 characters"],
            [v.message for v in violations[:2]]
        )

        violations = validation.validate(schemas.Author(first_name="J" * 256, last_name="Verne"))
        self.assertEqual(
            [schemas.Violation(field="firstName", message="The first name must not have more than 255 characters")],
            violations
        )

    def test_book_violations(self):
        violations = validation.validate(schemas.Book(title=None, comment="c" * 256))
        self.assertEqual(["title", "comment"], [v.field for v in violations])
        self.assertEqual(
            ["title"],
            [v.field for v in validation.validate(schemas.Book(title="t" * 256, cover_text="c" * 1000))]
        )

    def test_constraint_models(self):
        for record_type, constraints in validation.RULES.items():
            self.assertTrue(issubclass(constraints, pydantic.BaseModel), record_type)
            for name in constraints.model_fields:
                self.assertIn(name, record_type.model_fields)
        with self.assertRaises(pydantic.ValidationError):
            validation.BookConstraints(title="")
        self.assertEqual("Jules", validation.AuthorConstraints(firstName="Jules", lastName="Verne").first_name)

    def test_unknown_type(self):
        with self.assertRaises(TypeError):
            validation.validate(schemas.Violation(field="f", message="m"))


class SerializerTests(_unittest.TestCase):
    author = schemas.Author(
        id=1,
        first_name="Jules",
        last_name="Verne",
        books=(schemas.BookReference(id=2, title="Hector Servadac", cover_text="comet"),)
    )
    book = schemas.Book(
        id=2,
        title="Hector Servadac",
        cover_text="comet",
        comment="travels in the solar system",
        author=schemas.AuthorReference(id=1, first_name="Jules", last_name="Verne")
    )

    @staticmethod
    def _load(data: bytes, view: str, version: str, links: Optional[dict] = None):
        return json.loads(serializer.encode(data, view, version, links))

    def test_parse_version(self):
        self.assertEqual((2,), serializer.parse_version("2.0"))
        self.assertEqual((2,), serializer.parse_version("2"))
        self.assertEqual((1, 5), serializer.parse_version(" 1.5 "))
        self.assertLess(serializer.parse_version("1.0"), serializer.parse_version("1.5"))
        self.assertLess(serializer.parse_version("1.5"), serializer.parse_version("2.0"))
        with self.assertRaises(ValueError):
            serializer.parse_version("latest")

    def test_book_views(self):
        self.assertEqual(
            {
                "id": 2,
                "title": "Hector Servadac",
                "coverText": "comet",
                "author": {"id": 1, "firstName": "Jules", "lastName": "Verne"}
            },
            self._load(self.book, serializer.LIST_VIEW, "1.0")
        )
        self.assertEqual(
            "travels in the solar system",
            self._load(self.book, serializer.LIST_VIEW, "2.0")["comment"]
        )

        detail = self._load(self.book, serializer.DETAIL_VIEW, "2.0", {"self": "http://host/api/books/2"})
        self.assertEqual({"self": {"href": "http://host/api/books/2"}}, detail["_links"])
        self.assertIn("comment", detail)
        self.assertIsNone(self._load(schemas.Book(id=3, title="Alone"), serializer.LIST_VIEW, "1.0")["author"])

    def test_author_views(self):
        self.assertEqual(
            [{"id": 1, "firstName": "Jules", "lastName": "Verne", "books": [{"id": 2, "title": "Hector Servadac"}]}],
            self._load([self.author], serializer.LIST_VIEW, "1.0")
        )
        detail = self._load(self.author, serializer.DETAIL_VIEW, "1.0")
        self.assertEqual([{"id": 2, "title": "Hector Servadac", "coverText": "comet"}], detail["books"])
        self.assertEqual({}, detail["_links"])

    def test_encoding(self):
        data = serializer.encode(schemas.Book(id=1, title="Les Misérables"), serializer.LIST_VIEW, "1.0")
        self.assertIsInstance(data, bytes)
        self.assertIn("Misérables".encode("UTF-8"), data)
        self.assertEqual(b"[]", serializer.encode([], serializer.LIST_VIEW, "1.0"))
        with self.assertRaises(ValueError):
            serializer.encode(self.book, "summary", "1.0")
        with self.assertRaises(TypeError):
            serializer.project(schemas.Violation(field="f", message="m"), serializer.LIST_VIEW)

    def test_decode(self):
        payload = serializer.decode(
            '{"title": "Kéraban", "coverText": "stubborn", "idAuthor": 1, "unknown": true}'.encode("UTF-8"),
            schemas.ResourceKind.BOOK
        )
        self.assertEqual(schemas.BookPayload(title="Kéraban", cover_text="stubborn", id_author=1), payload)
        self.assertNotIn("comment", payload.model_fields_set)

        payload = serializer.decode(b"{}", schemas.ResourceKind.AUTHOR)
        self.assertEqual(schemas.Author(), payload.to_entity())

    def test_decode_errors(self):
        for data in [b"", b"{", b"[]", b'"text"', b"null"]:
            with self.assertRaises(errors.DecodeError) as context:
                serializer.decode(data, schemas.ResourceKind.AUTHOR)
            self.assertEqual(["body"], [v.field for v in context.exception.violations])

        with self.assertRaises(errors.DecodeError) as context:
            serializer.decode(b'{"firstName": 1, "lastName": ["Verne"]}', schemas.ResourceKind.AUTHOR)
        self.assertEqual(["firstName", "lastName"], [v.field for v in context.exception.violations])

        with self.assertRaises(errors.DecodeError) as context:
            serializer.decode(b'{"title": "T", "idAuthor": "1"}', schemas.ResourceKind.BOOK)
        self.assertEqual(["idAuthor"], [v.field for v in context.exception.violations])

    def test_merge_payload(self):
        current = self.book
        merged = schemas.BookPayload(title="Off on a Comet").merge_into(current)
        self.assertEqual("Off on a Comet", merged.title)
        self.assertIsNone(merged.cover_text)
        self.assertEqual(current.comment, merged.comment)
        self.assertEqual(current.author, merged.author)
        self.assertIsNone(schemas.BookPayload(title="X", comment=None).merge_into(current).comment)

        merged = schemas.AuthorPayload(firstName="Michel").merge_into(self.author)
        self.assertEqual(("Michel", None), (merged.first_name, merged.last_name))
        self.assertEqual(self.author.books, merged.books)


class PaginationTests(_unittest.TestCase):
    def test_defaults(self):
        general = config.GeneralConfig()
        self.assertEqual((1, 3), helpers.parse_pagination(None, None, general))
        self.assertEqual((1, 3), helpers.parse_pagination("", "abc", general))
        self.assertEqual((1, 3), helpers.parse_pagination("0", "-5", general))
        self.assertEqual((1, 3), helpers.parse_pagination("1.5", "2e3", general))
        self.assertEqual((4, 25), helpers.parse_pagination("4", "25", general))
        self.assertEqual((2, 1000), helpers.parse_pagination("2", "1000", general))

    def test_max_page_size(self):
        general = config.GeneralConfig(default_limit=5, max_page_size=10)
        self.assertEqual((1, 5), helpers.parse_pagination(None, None, general))
        self.assertEqual((3, 10), helpers.parse_pagination("3", "1000", general))

    def test_cache_keys(self):
        self.assertEqual("getBookList-1-3", helpers.get_list_cache_key(schemas.ResourceKind.BOOK, 1, 3))
        self.assertEqual("getAuthorList-2-5", helpers.get_list_cache_key(schemas.ResourceKind.AUTHOR, 2, 5))


class VersionNegotiationTests(_unittest.TestCase):
    general = config.GeneralConfig()

    @staticmethod
    def _make_request(accept: Optional[str] = None, query: str = "") -> Request:
        headers = [] if accept is None else [(b"accept", accept.encode())]
        return Request({"type": "http", "method": "GET", "path": "/", "query_string": query.encode(), "headers": headers})

    def _negotiate(self, accept: Optional[str] = None, query: str = "") -> str:
        return versioning.negotiate_version(self._make_request(accept, query), self.general)

    def test_accept_header(self):
        self.assertEqual("2.0", self._negotiate("application/json; version=2.0"))
        self.assertEqual("2.0", self._negotiate("application/json;version=2"))
        self.assertEqual("2.0", self._negotiate('text/html, application/json; q=0.9; version="2.0"'))
        self.assertEqual("1.0", self._negotiate("application/json; version=1.0"))

    def test_query_parameter(self):
        self.assertEqual("2.0", self._negotiate(query="version=2.0"))
        self.assertEqual("1.0", self._negotiate("application/json; version=1.0", "version=2.0"))

    def test_fallback(self):
        self.assertEqual("1.0", self._negotiate())
        self.assertEqual("1.0", self._negotiate("application/json"))
        self.assertEqual("1.0", self._negotiate("application/json; version=3.0"))
        self.assertEqual("1.0", self._negotiate("application/json; version=next"))
        self.assertEqual("1.0", self._negotiate(query="version="))

    def test_media_type(self):
        self.assertEqual("application/json", versioning.get_media_type())
        self.assertEqual("application/json; version=2.0", versioning.get_media_type("2.0"))

    def test_config_validation(self):
        with self.assertRaises(ValueError):
            config.GeneralConfig(default_api_version="3.0")


class LoggerTests(_unittest.TestCase):
    def test_enforce_logger(self):
        logger = logging.getLogger("bookshelf_core.tests")
        self.assertIs(logger, enforce_logger(logger))
        with self.assertLogs("bookshelf_core", logging.WARNING):
            self.assertIsInstance(enforce_logger(), logging.Logger)
        with self.assertRaises(TypeError):
            enforce_logger("bookshelf_core")  # noqa

    def test_no_debug_filter(self):
        no_debug = NoDebugFilter("multipart.multipart")

        def record(name: str, level: int) -> logging.LogRecord:
            return logging.LogRecord(name, level, __file__, 1, "message", None, None)

        self.assertFalse(no_debug.filter(record("multipart.multipart", logging.DEBUG)))
        self.assertTrue(no_debug.filter(record("multipart.multipart", logging.INFO)))
        self.assertTrue(no_debug.filter(record("bookshelf_core", logging.DEBUG)))

        renamed = NoDebugFilter("multipart.multipart", names=["python_multipart.multipart"])
        self.assertFalse(renamed.filter(record("python_multipart.multipart", logging.DEBUG)))
        self.assertTrue(renamed.filter(record("python_multipart", logging.DEBUG)))
        self.assertTrue(NoDebugFilter().filter(record("multipart.multipart", logging.DEBUG)))

    def test_configure_logging(self):
        original = config.LoggingConfig(
            filters={},
            formatters={},
            handlers={"null": {"class": "logging.NullHandler", "level": "INFO"}},
            root={"level": "INFO", "handlers": ["null"]}
        )
        root_level = logging.getLogger().level
        self.addCleanup(logging.getLogger().setLevel, root_level)

        self.assertIs(original, configure_logging(original))
        self.assertEqual(logging.INFO, logging.getLogger().level)

        applied = configure_logging(original, debug=True)
        self.assertEqual("DEBUG", applied.root["level"])
        self.assertEqual("DEBUG", applied.handlers["null"]["level"])
        self.assertEqual("INFO", original.handlers["null"]["level"])
        self.assertEqual(logging.DEBUG, logging.getLogger().level)


if __name__ == '__main__':
    _unittest.main()
