from __future__ import annotations

from typing import Any

from sqlalchemy import inspect


def row_to_dict(row: Any) -> dict[str, Any]:
    """Column values of a mapped row keyed by column name."""
    mapper = inspect(row).mapper
    return {attr.key: getattr(row, attr.key) for attr in mapper.column_attrs}
