"""
Row-shape mapping between live tables and their archive mirrors.

Archive classes share the live classes' column mixins, so copying a row is a
column-by-column transfer keyed on the target table's columns.
"""
from typing import Any, Dict, Type, TypeVar

from app.models.base import Base


T = TypeVar("T", bound=Base)


def column_values(row: Base) -> Dict[str, Any]:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


def archive_copy(row: Base, target: Type[T], **overrides: Any) -> T:
    """
    Build an instance of ``target`` holding the values of ``row``.

    Columns only present on the target (``migrated_at``) come from ``overrides``.

    Raises:
        ValueError: if ``row`` has a column the target cannot hold
    """
    target_columns = {column.key for column in target.__table__.columns}
    values = column_values(row)
    missing = set(values) - target_columns
    if missing:
        raise ValueError(
            f"{target.__tablename__} has no column for {', '.join(sorted(missing))} of {row.__tablename__}"
        )
    values.update(overrides)
    return target(**values)
