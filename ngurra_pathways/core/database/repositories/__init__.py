"""Query helpers shared by the service layer."""

from .base import PageParams, QueryBuilder, count_rows, paginate

__all__ = ["PageParams", "QueryBuilder", "count_rows", "paginate"]
