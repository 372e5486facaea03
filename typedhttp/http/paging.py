"""Paging models and paging-header hydration."""

import math
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field, model_validator

from typedhttp.http.constants import DEFAULT_PAGING_TAKE


if TYPE_CHECKING:
    from typedhttp.http.config import HttpClientConfig


logger = structlog.get_logger()

T = TypeVar("T")


class PagingArgs(BaseModel):
    """Paging request arguments.

    Either skip/take or page/size. ``size`` is the page-mode name for
    ``take``; a page-mode instance derives its skip from page and size.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    page: int | None = Field(default=None, ge=1, description="1-based page number")
    skip: int = Field(default=0, ge=0, description="Items to skip")
    take: int = Field(default=DEFAULT_PAGING_TAKE, ge=0, description="Items to take")
    is_get_count: bool = Field(
        default=False, description="Whether the total count is requested"
    )

    @model_validator(mode="before")
    @classmethod
    def derive_skip_from_page(cls, data: Any) -> Any:
        """Derive skip from page and take whenever a page is given."""
        if not isinstance(data, dict) or data.get("page") is None:
            return data
        page = data["page"]
        take = data.get("take", DEFAULT_PAGING_TAKE)
        if isinstance(page, int) and isinstance(take, int) and page >= 1:
            data = {**data, "skip": (page - 1) * take}
        return data

    @classmethod
    def create_skip_and_take(
        cls, skip: int, take: int | None = None, is_get_count: bool = False
    ) -> "PagingArgs":
        """Create skip/take paging.

        Args:
            skip: Items to skip.
            take: Items to take; defaults to the paging default.
            is_get_count: Whether the total count is requested.

        Returns:
            PagingArgs in skip/take mode.
        """
        return cls(
            skip=skip,
            take=DEFAULT_PAGING_TAKE if take is None else take,
            is_get_count=is_get_count,
        )

    @classmethod
    def create_page_and_size(
        cls, page: int, size: int | None = None, is_get_count: bool = False
    ) -> "PagingArgs":
        """Create page/size paging.

        Args:
            page: 1-based page number; values below 1 are treated as 1.
            size: Page size; defaults to the paging default.
            is_get_count: Whether the total count is requested.

        Returns:
            PagingArgs in page/size mode.
        """
        page = max(page, 1)
        take = DEFAULT_PAGING_TAKE if size is None else size
        return cls(
            page=page,
            take=take,
            is_get_count=is_get_count,
        )

    @property
    def is_skip_take(self) -> bool:
        """Whether the paging is expressed as skip/take."""
        return self.page is None

    @property
    def size(self) -> int:
        """Page size (same as take)."""
        return self.take


class PagingResult(PagingArgs):
    """Paging arguments echoed back with the total count."""

    total_count: int | None = Field(default=None, ge=0)

    @classmethod
    def from_args(
        cls, paging: PagingArgs, total_count: int | None = None
    ) -> "PagingResult":
        """Create a result from request paging arguments."""
        return cls(**paging.model_dump(), total_count=total_count)

    @property
    def total_pages(self) -> int | None:
        """Total number of pages, when the total count is known."""
        if self.total_count is None or self.take <= 0:
            return None
        return math.ceil(self.total_count / self.take)


class CollectionResult(BaseModel, Generic[T]):
    """A collection response with optional paging metadata.

    Deserializes from a bare JSON array or from an object with ``items``.
    Paging is hydrated from response headers, not from the body.
    """

    model_config = ConfigDict(extra="ignore")

    items: list[T] = Field(default_factory=list)
    paging: PagingResult | None = None

    @model_validator(mode="before")
    @classmethod
    def wrap_bare_list(cls, data: Any) -> Any:
        """Accept a bare JSON array as the items."""
        if isinstance(data, list):
            return {"items": data}
        return data

    def __iter__(self) -> Iterator[T]:  # type: ignore[override]
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.debug("paging_header_ignored", component="http", value=value)
        return None


def paging_result_from_headers(
    headers: Mapping[str, str], config: "HttpClientConfig"
) -> PagingResult | None:
    """Build paging metadata from response headers.

    Skip/take headers win over page-number/size headers.

    Args:
        headers: Response headers (case-insensitive mapping).
        config: Client configuration holding the header names.

    Returns:
        PagingResult, or None when no paging headers are present.
    """
    skip = _parse_int(headers.get(config.paging_skip_header_name))
    page = (
        None
        if skip is not None
        else _parse_int(headers.get(config.paging_page_number_header_name))
    )

    if skip is not None:
        take = _parse_int(headers.get(config.paging_take_header_name))
        if take is not None and take < 0:
            take = None
        paging = PagingArgs.create_skip_and_take(max(skip, 0), take)
    elif page is not None:
        size = _parse_int(headers.get(config.paging_page_size_header_name))
        if size is not None and size < 0:
            size = None
        paging = PagingArgs.create_page_and_size(page, size)
    else:
        return None

    total_count = _parse_int(headers.get(config.paging_total_count_header_name))
    if total_count is not None and total_count < 0:
        total_count = None
    return PagingResult.from_args(paging, total_count)
