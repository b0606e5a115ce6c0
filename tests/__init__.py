"""
Bookshelf core unit tests
"""

import unittest
from .test_api import APITests, AuthorizationTests, CacheTests, VersioningTests
from .test_cli import StandaloneCLITests
from .test_misc import LoggerTests, PaginationTests, SerializerTests, TagAwareCacheTests, ValidatorTests, VersionNegotiationTests
from .test_persistence import CascadeTests, RepositoryTests


TEST_CLASSES = [
    APITests,
    AuthorizationTests,
    CacheTests,
    CascadeTests,
    LoggerTests,
    PaginationTests,
    RepositoryTests,
    SerializerTests,
    StandaloneCLITests,
    TagAwareCacheTests,
    ValidatorTests,
    VersioningTests,
    VersionNegotiationTests,
]


def get_suite() -> unittest.TestSuite:
    suite = unittest.TestSuite()
    for cls in TEST_CLASSES:
        for fixture in filter(lambda f: f.startswith("test_"), dir(cls)):
            suite.addTest(cls(fixture))
    return suite
