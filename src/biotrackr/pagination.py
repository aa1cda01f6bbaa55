"""Page window normalization and paginated response metadata."""

from collections.abc import Sequence
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field

T = TypeVar("T")

DEFAULT_PAGE_NUMBER = 1
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class PaginationRequest(BaseModel):
    """A normalized page window."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(default=DEFAULT_PAGE_NUMBER, ge=1)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @property
    def skip(self) -> int:
        """Number of items before the first item of this page."""
        return (self.page_number - 1) * self.page_size

    @property
    def take(self) -> int:
        return self.page_size


class PaginationResponse(BaseModel, Generic[T]):
    """One page of results plus the metadata a client needs to navigate."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[T] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0, alias="totalCount")
    page_number: int = Field(default=DEFAULT_PAGE_NUMBER, ge=1, alias="pageNumber")
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, alias="pageSize")

    @computed_field(alias="totalPages")  # type: ignore[prop-decorator]
    @property
    def total_pages(self) -> int:
        # Integer ceiling division; 0 items means 0 pages
        return -(-self.total_count // self.page_size)

    @computed_field(alias="hasPreviousPage")  # type: ignore[prop-decorator]
    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1

    @computed_field(alias="hasNextPage")  # type: ignore[prop-decorator]
    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.total_pages


def normalize(page_number: int | None = None, page_size: int | None = None) -> PaginationRequest:
    """Normalize caller-supplied paging parameters.

    Page numbers below 1 become 1. Missing or non-positive page sizes fall
    back to the default of 20, and sizes above 100 are capped at 100.

    Args:
        page_number: Requested 1-based page number, or None.
        page_size: Requested items per page, or None.

    Returns:
        PaginationRequest with the normalized window.
    """
    number = DEFAULT_PAGE_NUMBER if page_number is None else max(DEFAULT_PAGE_NUMBER, page_number)

    if page_size is None or page_size < 1:
        size = DEFAULT_PAGE_SIZE
    else:
        size = min(page_size, MAX_PAGE_SIZE)

    return PaginationRequest(page_number=number, page_size=size)


def build_response(
    items: Sequence[T],
    total_count: int,
    request: PaginationRequest,
) -> PaginationResponse[T]:
    """Assemble a PaginationResponse for a normalized request."""
    return PaginationResponse(
        items=list(items),
        total_count=total_count,
        page_number=request.page_number,
        page_size=request.page_size,
    )
