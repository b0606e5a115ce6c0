"""
Bookshelf core REST API package

Use ``api.app`` (e.g. ``uvicorn bookshelf_core.api:api.app``) to
serve the application with the settings of the configuration file.
"""

from .api import api, create_app
