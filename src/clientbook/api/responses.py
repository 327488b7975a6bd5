"""Uniform JSON response envelope.

Every response has the shape::

    {"success": bool, "message": str, "data"?: ..., "error_code"?: str, "errors"?: {...}}

Paginated listings add ``meta`` and ``links``.
"""

from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from clientbook.db.repositories.base import Page


class ApiResponse:
    """Builders for the response envelope."""

    @staticmethod
    def success(
        data: Any = None,
        message: str = "Success",
        status_code: int = status.HTTP_200_OK,
        headers: dict[str, str] | None = None,
    ) -> JSONResponse:
        content: dict[str, Any] = {"success": True, "message": message}
        if data is not None:
            content["data"] = data
        return JSONResponse(
            status_code=status_code, content=jsonable_encoder(content), headers=headers
        )

    @staticmethod
    def created(data: Any = None, message: str = "Resource created successfully") -> JSONResponse:
        return ApiResponse.success(data, message, status.HTTP_201_CREATED)

    @staticmethod
    def error(
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        errors: dict[str, Any] | None = None,
        error_code: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> JSONResponse:
        content: dict[str, Any] = {"success": False, "message": message}
        if error_code is not None:
            content["error_code"] = error_code
        if errors is not None:
            content["errors"] = errors
        return JSONResponse(
            status_code=status_code, content=jsonable_encoder(content), headers=headers
        )

    @staticmethod
    def paginated(
        page: Page,
        items: list[Any],
        request: Request,
        message: str = "Success",
    ) -> JSONResponse:
        """Wrap one page of serialized items with paging meta and links."""
        content = {
            "success": True,
            "message": message,
            "data": items,
            "meta": {
                "current_page": page.page,
                "last_page": page.last_page,
                "per_page": page.per_page,
                "total": page.total,
                "from": page.first_item,
                "to": page.last_item,
            },
            "links": {
                "first": _page_url(request, 1),
                "last": _page_url(request, page.last_page),
                "prev": _page_url(request, page.page - 1) if page.page > 1 else None,
                "next": (
                    _page_url(request, page.page + 1) if page.page < page.last_page else None
                ),
            },
        }
        return JSONResponse(status_code=status.HTTP_200_OK, content=jsonable_encoder(content))


def _page_url(request: Request, page: int) -> str:
    return str(request.url.include_query_params(page=page))
