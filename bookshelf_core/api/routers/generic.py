"""
Bookshelf router module generic functionalities
"""

from fastapi import APIRouter, Depends

from ..dependency import MinimalRequestData
from ...misc import serializer
from ... import schemas


router = APIRouter(tags=["Generic"])


@router.get("/health")
async def verify_running_backend(_: MinimalRequestData = Depends(MinimalRequestData)):
    """
    Return 200 OK with an empty object as body to only verify that the service and the middlewares work
    """

    return {}


@router.get("/versions", response_model=schemas.Versions)
async def get_versions(local: MinimalRequestData = Depends(MinimalRequestData)):
    """
    Return the representation versions supported by the versioned endpoints
    """

    general = local.config.general
    return schemas.Versions(
        default=general.default_api_version,
        latest=max(general.supported_api_versions, key=serializer.parse_version),
        versions=general.supported_api_versions
    )
