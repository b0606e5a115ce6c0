"""
Special schemas for the configuration file and its properties
"""

from typing import Dict, List, Optional, Union

import pydantic


class GeneralConfig(pydantic.BaseModel):
    default_page: pydantic.PositiveInt = 1
    default_limit: pydantic.PositiveInt = 3
    max_page_size: Optional[pydantic.PositiveInt] = None
    """Upper bound for the `limit` query parameter (no bound if unset)"""
    default_api_version: str = "1.0"
    supported_api_versions: List[str] = ["1.0", "2.0"]

    @pydantic.model_validator(mode="after")
    def enforce_default_version_supported(self):
        if self.default_api_version not in self.supported_api_versions:
            raise ValueError("Field 'default_api_version' must be one of the supported API versions")
        return self


class ServerConfig(pydantic.BaseModel):
    host: str = "127.0.0.1"
    port: pydantic.conint(gt=0, lt=65536) = 8000
    token_expiration_minutes: pydantic.PositiveInt = 120
    allow_weak_insecure_password_hashes: bool = False


class DatabaseConfig(pydantic.BaseModel):
    connection: str = "sqlite://"
    debug_sql: bool = False


class CacheConfig(pydantic.BaseModel):
    max_entries: pydantic.PositiveInt = 4096
    ttl: Optional[pydantic.PositiveInt] = None
    """Seconds until cached entries expire (entries live until invalidated if unset)"""


class LoggingConfig(pydantic.BaseModel):
    version: pydantic.conint(ge=1, le=1) = 1
    disable_existing_loggers: bool = False
    incremental: bool = False
    filters: Dict[str, Dict[str, Union[str, list]]] = {
        "multipart_no_debug": {
            "()": "bookshelf_core.misc.logger.NoDebugFilter",
            "name": "multipart.multipart",
            "names": ["python_multipart.multipart"]
        }
    }
    formatters: Dict[str, Dict[str, str]] = {
        "default": {
            "style": "{",
            "format": "{asctime}: Bookshelf {process}: [{levelname}] {name}: {message}",
            "datefmt": "%d.%m.%Y %H:%M:%S"
        },
        "file": {
            "style": "{",
            "format": "{asctime} ({process}): [{levelname}] {name}: {message}",
            "datefmt": "%d.%m.%Y %H:%M"
        },
        "access": {
            "()": "uvicorn.logging.AccessFormatter",
            "fmt": "%(asctime)s %(client_addr)s - \"%(request_line)s\" %(status_code)s"
        }
    }
    loggers: Dict[str, dict] = {}
    handlers: Dict[str, Dict[str, Union[str, list]]] = {
        "default": {
            "level": "INFO",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "default"
        },
        "file": {
            "level": "DEBUG",
            "class": "logging.FileHandler",
            "filename": "./bookshelf.log",
            "formatter": "file"
        },
        "access": {
            "level": "INFO",
            "class": "logging.FileHandler",
            "filename": "./access.log",
            "formatter": "access"
        }
    }
    root: dict = {
        "level": "INFO",
        "handlers": ["default", "file"]
    }


class CoreConfig(pydantic.BaseModel):
    general: GeneralConfig = GeneralConfig()
    server: ServerConfig = ServerConfig()
    database: DatabaseConfig = DatabaseConfig()
    cache: CacheConfig = CacheConfig()
    logging: LoggingConfig = LoggingConfig()
