"""
Helper functions to make writing unit tests for the Bookshelf core easier
"""

import os
import sys
import random
import string
import secrets
import unittest
from typing import Iterable, List, Mapping, Optional, Tuple, Type, Union

import httpx
import pydantic
import sqlalchemy.orm
from fastapi.testclient import TestClient

from bookshelf_core import settings as _settings
from bookshelf_core.api import auth
from bookshelf_core.api.api import create_app
from bookshelf_core.persistence import database, models
from bookshelf_core.schemas import config as _config

from . import conf


class BaseTest(unittest.TestCase):
    """
    A base class for unit tests which introduces simple setup and teardown of unit tests

    If a subclass needs special setup or teardown functionality, it **MUST**
    call the superclasses setup and teardown methods: the superclass setup
    method at the beginning of the subclass setup method, the superclass
    teardown method at the end of the subclass teardown method.
    """

    config_file: Optional[str] = None
    database_url: Optional[str] = None
    _database_file: Optional[str] = None

    def setUp(self) -> None:
        self.config_file = f"config_{os.getpid()}_{secrets.token_hex(8)}.json"
        _settings.CONFIG_PATHS = [self.config_file]

        if conf.DATABASE_URL is not None:
            self.database_url = conf.DATABASE_URL

        else:
            self._database_file = conf.DATABASE_DEFAULT_FILE_FORMAT.format(
                os.getpid(),
                "".join([random.choice(string.ascii_lowercase) for _ in range(6)])
            )

            try:
                open(self._database_file, "wb").close()
                os.remove(self._database_file)
                self.database_url = conf.DATABASE_URL_FORMAT.format(self._database_file)

            except OSError as exc:
                self.database_url = conf.DATABASE_FALLBACK_URL
                self._database_file = None
                print(
                    f"{exc}: Falling back to in-memory database. This is not recommended!",
                    file=sys.stderr
                )

        database.PRINT_SQLITE_WARNING = False

    def tearDown(self) -> None:
        database.dispose()

        if self.database_url != conf.DATABASE_FALLBACK_URL and self._database_file:
            if os.path.exists(self._database_file):
                os.remove(self._database_file)

        if self.config_file and os.path.exists(self.config_file):
            os.remove(self.config_file)

    def get_config(self) -> _config.CoreConfig:
        config = _config.CoreConfig(**_settings.get_default_config())
        config.database.debug_sql = conf.SQLALCHEMY_ECHOING
        config.database.connection = self.database_url
        config.server.allow_weak_insecure_password_hashes = True
        return config

    def write_config(self, config: Optional[_config.CoreConfig] = None) -> _config.CoreConfig:
        config = config or self.get_config()
        with open(self.config_file, "w") as f:
            f.write(config.model_dump_json())
        return config


class BasePersistenceTests(BaseTest):
    session: sqlalchemy.orm.Session

    def setUp(self) -> None:
        super().setUp()
        database.init(self.database_url, conf.SQLALCHEMY_ECHOING)
        self.session = database.get_new_session()

    def tearDown(self) -> None:
        self.session.close()
        super().tearDown()

    @staticmethod
    def get_sample_authors() -> List[models.Author]:
        return [
            models.Author(first_name="Victor", last_name="Hugo"),
            models.Author(first_name="Jules", last_name="Verne"),
            models.Author(first_name="Émile", last_name="Zola")
        ]


class BaseAPITests(BaseTest):
    """
    A base class for unit tests calling the API in-process using a test client

    Every test gets its own application with a fresh cache and a fresh
    database containing two accounts: one admin and one plain reader.
    """

    app = None
    client: Optional[TestClient] = None
    admin_token: Optional[str] = None
    reader_token: Optional[str] = None

    def setUp(self) -> None:
        super().setUp()
        self.config = self.get_config()
        self.app = create_app(self.config, configure_logging=False)
        self.client = TestClient(self.app)
        self.cache = self.app.state.cache

        auth.create_user(*conf.ADMIN_CREDENTIALS, [auth.USER_ROLE, auth.ADMIN_ROLE])
        auth.create_user(*conf.READER_CREDENTIALS)
        self.admin_token = self.login(*conf.ADMIN_CREDENTIALS)
        self.reader_token = self.login(*conf.READER_CREDENTIALS)

    def tearDown(self) -> None:
        self.client.close()
        super().tearDown()

    def login(self, username: str, password: str, status_code: int = 200) -> Optional[str]:
        response = self.client.post(
            "/api/login",
            data={"grant_type": "password", "username": username, "password": password}
        )
        self.assertEqual(status_code, response.status_code, response.text)
        if response.status_code == 200:
            return response.json()["access_token"]

    def assertQuery(
            self,
            endpoint: Tuple[str, str],
            status_code: Union[int, Iterable[int]] = 200,
            json: Optional[Union[dict, list, pydantic.BaseModel]] = None,
            headers: Optional[dict] = None,
            token: Optional[str] = None,
            r_none: bool = False,
            r_is_json: bool = True,
            r_headers: Optional[Union[Mapping, Iterable]] = None,
            r_schema: Optional[Union[pydantic.BaseModel, Type[pydantic.BaseModel]]] = None,
            **kwargs
    ) -> httpx.Response:
        """
        Do a query to the specified endpoint and return the response

        Besides also carrying the optional JSON data, headers and other keyword arguments,
        this function asserts that the response has the specified status code. Furthermore,
        the optional asserted response headers and asserted response schema can be used,
        where the headers are either an iterable to only assert certain keys or a mapping
        to also assert values, and the schema is either a schema class or an instance
        thereof (in the later case, the values will be compared to the response, too).

        :param endpoint: tuple of the method and the path of the endpoint
        :param status_code: asserted status code(s) of the final server's response
        :param json: optional dictionary, list or model holding the request data
        :param headers: optional set of headers to sent in the request
        :param token: optional access token sent as bearer token
        :param r_none: switch to expect no (=empty) result and skip all other response content checks
        :param r_is_json: switch to check that the response contains JSON data
        :param r_headers: optional set of headers which are asserted in the response
        :param r_schema: optional class or instance of a response schema to be asserted
        :param kwargs: dict of any further keyword arguments, passed to the test client
        :return: response to the requested resource
        """

        method, path = endpoint
        if isinstance(json, pydantic.BaseModel):
            json = json.model_dump(by_alias=True)

        headers = dict(headers or {})
        if token is not None:
            headers.update({"Authorization": f"Bearer {token}"})
        response = self.client.request(method.upper(), path, json=json, headers=headers, **kwargs)

        if isinstance(status_code, int):
            self.assertEqual(status_code, response.status_code, response.text)
        elif isinstance(status_code, Iterable):
            self.assertTrue(
                response.status_code in status_code,
                (response.text, response.status_code, status_code)
            )

        if r_headers is not None:
            for k in (r_headers if isinstance(r_headers, Iterable) else r_headers.keys()):
                self.assertIsNotNone(response.headers.get(k), response.headers)
                if isinstance(r_headers, Mapping):
                    self.assertEqual(r_headers[k], response.headers.get(k), response.headers)

        if r_none:
            self.assertEqual("", response.text)

        else:
            if r_is_json:
                try:
                    self.assertIsNotNone(response.json())
                except ValueError:
                    self.fail(("No JSON content detected", response.headers, response.text))

            if r_schema and isinstance(r_schema, pydantic.BaseModel):
                self.assertEqual(r_schema, type(r_schema)(**response.json()), response.json())
            elif r_schema and isinstance(r_schema, type) and issubclass(r_schema, pydantic.BaseModel):
                self.assertTrue(r_schema(**response.json()), response.json())

        return response

    def make_author(self, first_name: str = "Jules", last_name: str = "Verne") -> dict:
        return self.assertQuery(
            ("POST", "/api/authors"),
            201,
            json={"firstName": first_name, "lastName": last_name},
            token=self.admin_token
        ).json()

    def make_book(self, title: str, author_id: Optional[int] = None, **extra) -> dict:
        body = {"title": title, "coverText": f"About {title}", **extra}
        if author_id is not None:
            body["idAuthor"] = author_id
        return self.assertQuery(("POST", "/api/books"), 201, json=body, token=self.admin_token).json()
