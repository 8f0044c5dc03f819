# Overview: Atomic counters backing human-readable order numbers.

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import OrderSequence
from .concurrency import run_with_retry

ORDER_SEQUENCE = "orders"


def _allocate(name: str) -> int:
    """
    Reserve the next value of `name` inside the current transaction.

    The increment is a single UPDATE, so two transactions can never read
    the same value. The first call for a name inserts the row.
    """
    stmt = (
        update(OrderSequence)
        .where(OrderSequence.name == name)
        .values(next_number=OrderSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )

    result = db.session.execute(stmt)
    if not result.rowcount:
        seq = OrderSequence(name=name, next_number=2)
        try:
            with db.session.begin_nested():
                db.session.add(seq)
            return 1
        except IntegrityError:
            # Another transaction created the row first
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise

    current = (
        db.session.query(OrderSequence.next_number)
        .filter(OrderSequence.name == name)
        .scalar()
    )
    return current - 1


def next_order_number(*, prefix: str = "HLF", pad: int = 4) -> str:
    """HLF-0001, HLF-0002, ... Wider than `pad` digits once it overflows."""
    number = run_with_retry(lambda: _allocate(ORDER_SEQUENCE))
    return f"{prefix}-{number:0{pad}d}"
