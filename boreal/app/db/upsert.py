"""
Dialect-aware INSERT ... ON CONFLICT DO NOTHING.

Job locks and idempotency keys are both claimed by inserting a row and
checking whether the database kept it.
"""

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def insert_or_ignore(db: AsyncSession, model, index_elements: list, **values):
    """
    Build an INSERT for `model` that silently skips on a key conflict.

    Args:
        db: Session whose bind decides the SQL dialect
        model: Mapped class to insert into
        index_elements: Columns of the unique key the conflict is checked on
        **values: Column values for the new row

    Returns:
        Insert statement; execute it and check the RETURNING row
        (None means the key already existed)
    """
    dialect_name = db.get_bind().dialect.name

    if dialect_name == "postgresql":
        stmt = postgresql.insert(model)
    elif dialect_name == "sqlite":
        stmt = sqlite.insert(model)
    else:
        raise NotImplementedError(f"insert_or_ignore is not supported on {dialect_name}")

    return stmt.values(**values).on_conflict_do_nothing(index_elements=index_elements)
