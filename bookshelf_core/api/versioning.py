"""
Bookshelf API library to negotiate the version of resource representations

Clients select the representation version with the ``version`` parameter
of the ``Accept`` header (e.g. ``Accept: application/json; version=2.0``)
or with the ``version`` query parameter. Unknown, unsupported or missing
versions fall back to the configured default version.
"""

import logging
from typing import Optional

from fastapi import Request

from ..misc import serializer
from ..schemas import config


VERSION_PARAMETER = "version"
JSON_MEDIA_TYPE = "application/json"

logger = logging.getLogger(__name__)


def get_requested_version(request: Request) -> Optional[str]:
    """
    Return the raw version requested by the client, if any
    """

    for media_range in request.headers.get("accept", "").split(","):
        for parameter in media_range.split(";")[1:]:
            key, _, value = parameter.partition("=")
            if key.strip().lower() == VERSION_PARAMETER and value.strip():
                return value.strip().strip('"')
    return request.query_params.get(VERSION_PARAMETER) or None


def negotiate_version(request: Request, general: config.GeneralConfig) -> str:
    """
    Determine the representation version used for the response to the request

    :param request: incoming request
    :param general: general config section holding the default and supported versions
    :return: one of the supported versions (as spelled in the config)
    """

    requested = get_requested_version(request)
    if requested is None:
        return general.default_api_version
    try:
        wanted = serializer.parse_version(requested)
    except ValueError:
        logger.debug(f"Ignoring malformed API version {requested!r}")
        return general.default_api_version
    for supported in general.supported_api_versions:
        if serializer.parse_version(supported) == wanted:
            return supported
    logger.debug(f"Unsupported API version {requested!r}, using {general.default_api_version!r}")
    return general.default_api_version


def get_media_type(version: Optional[str] = None) -> str:
    if version is None:
        return JSON_MEDIA_TYPE
    return f"{JSON_MEDIA_TYPE}; {VERSION_PARAMETER}={version}"
