"""Offset pagination for dare listings.

Pages are addressed by a 1-based page number and a limit. Callers run the
count query with the same filters as the page query so ``total`` always
describes the listed rows.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

# Keeps page * limit well inside a BIGINT offset.
MAX_PAGE = 1_000_000


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results plus the totals a client needs to page through."""

    items: list[T]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.limit)


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed to show ``total`` rows ``limit`` at a time."""
    if limit <= 0:
        msg = "limit must be positive"
        raise ValueError(msg)
    return math.ceil(total / limit)


def page_offset(page: int, limit: int) -> int:
    """Row offset of the first item on ``page`` (1-based)."""
    if page < 1:
        msg = "page must be >= 1"
        raise ValueError(msg)
    return (page - 1) * limit
