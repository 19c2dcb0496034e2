"""
Paginated Collector - Drains a project's items page by page.

The collector is a generator of pages: ``iter_pages`` requests one page,
yields it, and only then asks for the next. ``collect`` drains the
generator into a single ProjectItems result.

A failure on any page propagates out of the generator; nothing collected
so far is returned and a new collection starts again at the first page.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from pulsegh.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from pulsegh.core.domain.entities import Owner
from pulsegh.core.exceptions import GatewayError, UsageError
from pulsegh.core.ports.query_gateway import ItemsPage, QueryGatewayPort


logger = logging.getLogger("PaginatedCollector")


@dataclass(frozen=True)
class ProjectItems:
    """All items of a project plus the summary captured on the first page."""

    id: str
    title: str
    total_count: int
    items: list[dict[str, Any]] = field(default_factory=list)
    pages: int = 0

    @property
    def complete(self) -> bool:
        """Whether the item count matches the total reported on page one."""
        return len(self.items) == self.total_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "items": {"totalCount": self.total_count, "nodes": list(self.items)},
        }


class PaginatedCollector:
    """
    Collects every item of one project.

    Args:
        gateway: Remote query gateway
        owner: Owner login and kind; selects the query variant
        page_size: Items per request (1-100)
        max_pages: Upper bound on requests, guarding against a gateway that
            never reports exhaustion; None means unbounded
    """

    def __init__(
        self,
        gateway: QueryGatewayPort,
        owner: Owner,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int | None = None,
    ):
        if not owner.login:
            raise UsageError("Workspace login is required", argument="workspace")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise UsageError(
                f"Page size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}",
                argument="page_size",
            )
        if max_pages is not None and max_pages < 1:
            raise UsageError("max_pages must be at least 1", argument="max_pages")

        self.gateway = gateway
        self.owner = owner
        self.page_size = page_size
        self.max_pages = max_pages

    def iter_pages(self, project_number: int) -> Iterator[ItemsPage]:
        """
        Yield the project's pages in order.

        Raises:
            UsageError: If the project number is missing
            GatewayError: If a page request fails, or ``max_pages`` is
                reached while the platform still reports more data
        """
        if not project_number:
            raise UsageError("Project number is required", argument="project_number")

        cursor: str | None = None
        fetched = 0

        while True:
            if self.max_pages is not None and fetched >= self.max_pages:
                raise GatewayError(
                    f"Project #{project_number} still has more items after {fetched} pages",
                    resource=f"project #{project_number}",
                )

            page = self.gateway.query_project_items(
                self.owner, project_number, self.page_size, cursor
            )
            fetched += 1
            logger.debug(
                f"Project #{project_number} page {fetched}: {len(page.items)} items, "
                f"has_more={page.has_more}"
            )
            yield page

            if not page.has_more:
                return
            if not page.next_cursor:
                raise GatewayError(
                    f"Project #{project_number} reported more items without a cursor",
                    resource=f"project #{project_number}",
                )
            cursor = page.next_cursor

    def collect(self, project_number: int) -> ProjectItems:
        """
        Fetch every page and merge them.

        Returns:
            ProjectItems with the first page's summary and all items in
            page order
        """
        summary = None
        items: list[dict[str, Any]] = []
        pages = 0

        for page in self.iter_pages(project_number):
            if summary is None:
                summary = page.summary
            items.extend(page.items)
            pages += 1

        # iter_pages always yields at least one page
        assert summary is not None

        result = ProjectItems(
            id=summary.id,
            title=summary.title,
            total_count=summary.total_count,
            items=items,
            pages=pages,
        )

        if not result.complete:
            logger.warning(
                f"Project #{project_number}: collected {len(items)} items but the first "
                f"page reported {summary.total_count}; the project changed during collection"
            )
        else:
            logger.info(f"Collected {len(items)} items from project #{project_number} in {pages} pages")

        return result
