# Overview: Service-layer operations for numbered identifiers (invoices, member codes).

"""
Sequence allocation.

WHY: Reading the latest invoice and adding one hands the same number to two
concurrent payments. Every allocation here is a single atomic
UPDATE ... SET next_number = next_number + 1 on a per-name counter row,
executed inside the caller's transaction so the number is only consumed
when the caller commits.

DESIGN:
- ensure_sequence() creates the counter row in its own short transaction
  before the caller's write starts; a concurrent creator loses on the
  unique name constraint and simply reuses the row.
- allocate() must run inside the caller's transaction; callers wrap the
  whole write in run_with_retry(..., retry_on=UNIQUE_CONFLICT_ERRORS).
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Sequence
from gymdesk.time_utils import utcnow


INVOICE_PREFIX = "INV"
INVOICE_PAD = 4
MEMBER_CODE_PAD = 3
MEMBER_SEQUENCE = "MEMBER"


class SequenceError(Exception):
    """Raised when a counter cannot be allocated."""
    pass


def invoice_sequence_name(year: int) -> str:
    return f"INVOICE-{year}"


def ensure_sequence(name: str) -> None:
    """Create the counter row for name if it does not exist yet (commits)."""
    exists = db.session.query(Sequence.id).filter_by(name=name).first()
    if exists:
        return
    db.session.add(Sequence(name=name, next_number=1))
    try:
        db.session.commit()
    except IntegrityError:
        # Another writer created it first
        db.session.rollback()


def allocate(name: str) -> int:
    """
    Atomically take the next number from counter `name`.

    Does not commit. The counter row must exist (see ensure_sequence).
    """
    stmt = (
        update(Sequence)
        .where(Sequence.name == name)
        .values(next_number=Sequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        raise SequenceError(f"Sequence {name} is not initialized")

    current = (
        db.session.query(Sequence.next_number)
        .filter_by(name=name)
        .scalar()
    )
    return current - 1


def format_invoice_number(year: int, number: int) -> str:
    return f"{INVOICE_PREFIX}-{year}-{number:0{INVOICE_PAD}d}"


def next_invoice_number(year: int | None = None) -> str:
    """
    Allocate INV-<year>-NNNN inside the current transaction.

    Each calendar year has its own counter, so numbering restarts at 0001
    on January 1st. Padding grows naturally past 9999.
    """
    year = year or utcnow().year
    name = invoice_sequence_name(year)
    ensure_sequence_in_transaction(name)
    return format_invoice_number(year, allocate(name))


def next_member_code() -> str:
    """Allocate <MEMBER_ID_PREFIX>-NNN inside the current transaction."""
    prefix = current_app.config.get("MEMBER_ID_PREFIX", "NAZ")
    ensure_sequence_in_transaction(MEMBER_SEQUENCE)
    return f"{prefix}-{allocate(MEMBER_SEQUENCE):0{MEMBER_CODE_PAD}d}"


def ensure_sequence_in_transaction(name: str) -> None:
    """
    Add the counter row to the current transaction when it is missing.

    Callers normally run ensure_sequence() up front; this covers the first
    allocation of a new year that begins mid-transaction. A duplicate
    insert race surfaces as IntegrityError on flush and is retried by the
    caller's run_with_retry.
    """
    exists = db.session.query(Sequence.id).filter_by(name=name).first()
    if exists:
        return
    db.session.add(Sequence(name=name, next_number=1))
    db.session.flush()
