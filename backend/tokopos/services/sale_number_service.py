# Overview: Service-layer operations for sale numbers; date-scoped, collision-free identifiers.

from __future__ import annotations

import re
from datetime import datetime

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import SaleNumberSequence
from ..time_utils import store_today


SALE_NUMBER_RE = re.compile(r"^(?P<prefix>[A-Z]+)-(?P<day>\d{8})-(?P<sequence>\d{4,})$")


class SaleNumberError(Exception):
    """Raised when a sale number cannot be allocated or parsed."""
    pass


def format_sale_number(prefix: str, day: str, sequence: int) -> str:
    # 4 digits, widening to 5+ past 9999 instead of wrapping
    return f"{prefix}-{day}-{sequence:04d}"


def parse_sale_number(sale_number: str) -> tuple[str, int]:
    """Split "SALE-20261019-0042" into ("20261019", 42)."""
    match = SALE_NUMBER_RE.match(sale_number or "")
    if not match:
        raise SaleNumberError(f"Malformed sale number: {sale_number!r}")
    return match.group("day"), int(match.group("sequence"))


def _allocate_sequence(day: str) -> int:
    """
    Atomically take the next sequence for `day` inside the caller's transaction.

    The UPDATE holds the counter row lock until the sale commits, so two
    checkouts on the same day cannot read the same value. The first sale of a
    day inserts the row; if a concurrent request inserted it first, the unique
    constraint fires and we fall back to the UPDATE.
    """
    stmt = (
        update(SaleNumberSequence)
        .where(SaleNumberSequence.day == day)
        .values(next_number=SaleNumberSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        current = (
            db.session.query(SaleNumberSequence.next_number)
            .filter_by(day=day)
            .scalar()
        )
        return current - 1

    try:
        with db.session.begin_nested():
            db.session.add(SaleNumberSequence(day=day, next_number=2))
        return 1
    except IntegrityError:
        result = db.session.execute(stmt)
        if not result.rowcount:
            raise SaleNumberError(f"Could not allocate a sale number for {day}")
        current = (
            db.session.query(SaleNumberSequence.next_number)
            .filter_by(day=day)
            .scalar()
        )
        return current - 1


def next_sale_number(now: datetime | None = None) -> str:
    """
    Allocate the next sale number, SALE-YYYYMMDD-NNNN.

    The day is the store-local calendar date (STORE_TIMEZONE), so numbering
    restarts at local midnight. Must be called inside the transaction that
    inserts the Sale row; the allocation is rolled back with it.
    """
    day = store_today(now).strftime("%Y%m%d")
    sequence = _allocate_sequence(day)
    prefix = current_app.config.get("SALE_NUMBER_PREFIX", "SALE")
    return format_sale_number(prefix, day, sequence)
