"""
Bulk write helpers

Dialect-aware insert-or-ignore and upsert in fixed-size batches.
PostgreSQL and SQLite both support ON CONFLICT, so the same call works in
production and in tests.
"""

import logging
from typing import Any, Dict, Iterator, List, Sequence

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500


def chunked(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    """Yield consecutive slices of at most `size` items."""
    if size < 1:
        raise ValueError("Batch size must be positive")
    for i in range(0, len(items), size):
        yield items[i:i + size]


def dialect_insert(db: Session, model):
    """Build an INSERT for `model` that supports ON CONFLICT clauses."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"ON CONFLICT inserts are not supported for dialect '{dialect}'")


def insert_ignore(
    db: Session,
    model,
    rows: List[Dict[str, Any]],
    conflict_columns: List[str],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> List[int]:
    """
    Insert rows, silently skipping any that hit the unique constraint.

    A conflict means the row already exists (possibly created by a
    concurrent writer); it is not an error.

    Returns:
        IDs of the rows actually inserted by this call
    """
    inserted: List[int] = []
    for batch in chunked(rows, batch_size):
        stmt = (
            dialect_insert(db, model)
            .values(list(batch))
            .on_conflict_do_nothing(index_elements=conflict_columns)
            .returning(model.id)
        )
        inserted.extend(db.execute(stmt).scalars().all())
    return inserted


def upsert(
    db: Session,
    model,
    rows: List[Dict[str, Any]],
    conflict_columns: List[str],
    update_columns: List[str],
    extra_updates: Dict[str, Any] = None,
):
    """
    Insert one batch of rows, updating `update_columns` on conflict.

    Rows must not repeat a conflict key within the batch (PostgreSQL
    rejects updating the same row twice in one statement).
    """
    stmt = dialect_insert(db, model).values(rows)
    set_ = {col: stmt.excluded[col] for col in update_columns}
    if extra_updates:
        set_.update(extra_updates)
    stmt = stmt.on_conflict_do_update(index_elements=conflict_columns, set_=set_)
    return db.execute(stmt)
