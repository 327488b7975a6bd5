"""HTTP API: application factory, middleware, schemas and routers."""

from clientbook.api.app import create_app

__all__ = ["create_app"]
