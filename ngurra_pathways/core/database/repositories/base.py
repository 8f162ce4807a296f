"""
Query building and pagination utilities.

Services compose ``sqlmodel.select`` statements and hand them to these helpers
for equality filters, limit/offset pagination and total counts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

# Generic type for SQLModel entities
EntityType = TypeVar("EntityType", bound=SQLModel)


@dataclass(frozen=True)
class PageParams:
    """1-based page number and page size."""

    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def envelope(self, total: int) -> Dict[str, int]:
        """Pagination block returned alongside list payloads."""
        return {
            "page": self.page,
            "limit": self.limit,
            "total": total,
            "total_pages": math.ceil(total / self.limit) if self.limit else 0,
        }


class QueryBuilder:
    """Utility class for building SQLModel-based database queries."""

    @staticmethod
    def apply_filters(stmt, model: Type[EntityType], filters: Dict[str, Any]):
        """Apply equality filters to a select statement.

        ``None`` values and unknown attribute names are skipped.
        """
        for key, value in filters.items():
            if value is not None and hasattr(model, key):
                stmt = stmt.where(getattr(model, key) == value)
        return stmt

    @staticmethod
    def apply_pagination(stmt, limit: Optional[int], offset: Optional[int]):
        """Apply limit/offset pagination to a select statement."""
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        return stmt


async def count_rows(session: AsyncSession, stmt) -> int:
    """Count the rows a select statement would return."""
    result = await session.execute(select(func.count()).select_from(stmt.order_by(None).subquery()))
    return int(result.scalar_one())


async def paginate(session: AsyncSession, stmt, params: PageParams) -> Tuple[List[Any], int]:
    """Run ``stmt`` for one page and return ``(rows, total)``."""
    total = await count_rows(session, stmt)
    result = await session.execute(QueryBuilder.apply_pagination(stmt, params.limit, params.offset))
    rows: Sequence[Any] = result.scalars().all()
    return list(rows), total
