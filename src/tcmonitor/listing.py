"""
Paginated resource listing.

The first page is fetched alone; when it does not cover ``total_count``
the remaining windows are fetched concurrently. A failed first page
propagates; a failed later page is logged and dropped.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import structlog

from tcmonitor.clients.base import CloudAPIClient
from tcmonitor.core.errors import PartialListingFailure
from tcmonitor.envelopes import check_response
from tcmonitor.models import ListingPage, ResolvedInstance
from tcmonitor.products.registry import ProductSpec

logger = structlog.get_logger()

MAX_PAGE_SIZE = 2000


def page_windows(total: int, page_size: int = MAX_PAGE_SIZE, start: int = 0) -> list[tuple[int, int]]:
    """Split ``[start, total)`` into ``(offset, limit)`` windows of at most ``page_size``."""
    size = min(page_size, MAX_PAGE_SIZE)
    if size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")
    windows = []
    offset = start
    while offset < total:
        windows.append((offset, min(size, total - offset)))
        offset += size
    return windows


@dataclass
class ListingResult:
    items: list[ResolvedInstance]
    total_count: int
    failures: list[PartialListingFailure] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures


class PaginatedLister:
    """Lists every resource of one product in one region."""

    def __init__(self, client: CloudAPIClient, product: ProductSpec) -> None:
        self._client = client
        self._product = product

    async def fetch_page(self, region: str, offset: int, limit: int) -> ListingPage:
        product = self._product
        response = await self._client.call(
            product.listing_service,
            product.listing_action,
            region=region,
            payload=product.page_params(offset, limit),
        )
        check_response(response, product.generation, product.name)
        items = [ResolvedInstance(dict(item)) for item in response.get(product.items_key) or []]
        return ListingPage(
            items=items,
            total_count=int(response.get(product.total_key) or 0),
            offset=offset,
            limit=limit,
        )

    async def fetch_all(self, region: str, page_size: int = MAX_PAGE_SIZE) -> ListingResult:
        first = await self.fetch_page(region, 0, self._product.first_page_size)
        result = ListingResult(items=list(first.items), total_count=first.total_count)
        if len(first.items) >= first.total_count:
            return result

        windows = page_windows(first.total_count, page_size, start=len(first.items))
        pages = await asyncio.gather(
            *(self.fetch_page(region, offset, limit) for offset, limit in windows),
            return_exceptions=True,
        )
        for (offset, limit), page in zip(windows, pages):
            if isinstance(page, Exception):
                failure = PartialListingFailure(offset, limit, page)
                logger.warning(
                    "listing_page_failed",
                    product=self._product.name,
                    region=region,
                    offset=offset,
                    limit=limit,
                    error=str(page),
                )
                result.failures.append(failure)
                continue
            if isinstance(page, BaseException):
                raise page
            result.items.extend(page.items)
        return result

    async def list_all(self, region: str, page_size: int = MAX_PAGE_SIZE) -> list[ResolvedInstance]:
        result = await self.fetch_all(region, page_size)
        return result.items
