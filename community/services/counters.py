"""Atomic adjustments of denormalized counters.

Counters are changed with SQL expressions evaluated by the database, never by
reading the value into Python and writing it back, so concurrent writers cannot
lose an update. Decrements are floored at zero.
"""
from sqlalchemy import case, update
from sqlalchemy.ext.asyncio import AsyncSession


def increment(column, amount: int = 1):
    return column + amount


def decrement(column, amount: int = 1):
    """``column - amount`` floored at zero."""
    return case((column > amount, column - amount), else_=0)


async def adjust_counter(db: AsyncSession, model, row_id: int, field: str, delta: int) -> None:
    """Add ``delta`` to ``model.<field>`` on one row.

    In-memory instances are left as they are; callers that return the row
    refresh the attribute afterwards.
    """
    if delta == 0:
        return
    column = getattr(model, field)
    value = increment(column, delta) if delta > 0 else decrement(column, -delta)
    await db.execute(
        update(model)
        .where(model.id == row_id)
        .values({field: value})
        .execution_options(synchronize_session=False)
    )
