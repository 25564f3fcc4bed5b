"""Cursor pagination types shared by list endpoints.

PageResponse[T]: Pydantic model for HTTP responses (serializable).
Page[T]:         plain dataclass for service-layer returns (not serializable).
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel

from svcutils.ctoken import encode

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """Plain dataclass for a page of results inside the service layer.

    ``cursor`` is the raw position to resume from, or None on the last page.
    Services never see encoded tokens; the router converts on the way out::

        page = await list_orders(db, after=ctoken.decode_optional(token))
        return OrderPage.from_page(page)
    """

    items: list[T]
    cursor: str | None = None


class PageResponse(BaseModel, Generic[T]):
    """Pydantic model for paginated HTTP responses.

    ``ctoken`` is the encoded continuation token to send back for the next
    page, or None when there are no more results. Reuse for any entity::

        OrderPage = PageResponse[OrderResponse]
    """

    items: list[T]
    ctoken: str | None = None

    @classmethod
    def from_page(cls, page: Page[T]) -> "PageResponse[T]":
        """Build the response from a service-layer page, encoding its cursor."""
        token = encode(page.cursor) if page.cursor is not None else None
        return cls(items=page.items, ctoken=token)
