"""
Bookshelf extra schemas
"""

from typing import List

import pydantic


__all__ = ["Versions"]


class Versions(pydantic.BaseModel):
    default: pydantic.constr(min_length=1)
    latest: pydantic.constr(min_length=1)
    versions: List[str]
