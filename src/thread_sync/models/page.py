"""Page cursor for backward pagination.

The messages endpoint returns a bare array with no total count, so a
page that comes back exactly ``page_size`` long is the only sign that
older messages may exist.
"""

from pydantic import BaseModel, Field

__all__ = [
    "PageCursor",
]


class PageCursor(BaseModel, frozen=True):
    """1-based page number plus a fixed page size."""

    page: int = Field(default=1, ge=1)
    page_size: int = Field(ge=1)

    def next(self) -> "PageCursor":
        """Cursor for the next (older) page."""
        return self.model_copy(update={"page": self.page + 1})

    def reset(self) -> "PageCursor":
        """Cursor back at the newest page."""
        return self.model_copy(update={"page": 1})

    def is_full(self, count: int) -> bool:
        """Check if a page of ``count`` items implies more may follow."""
        return count == self.page_size
