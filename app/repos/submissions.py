from __future__ import annotations
import logging
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, MultipleResultsFound, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import Conflict, ConflictField, NotFound, StoreError
from ..models import Submission

log = logging.getLogger(__name__)

_CONSTRAINT_FIELDS = {
    "uq_submissions_email": ConflictField.email,
    "uq_submissions_phone": ConflictField.phone,
}
# SQLite reports the column rather than the constraint name
_COLUMN_FIELDS = {
    "submissions.email": ConflictField.email,
    "submissions.phone": ConflictField.phone,
}


def _constraint_name(exc: IntegrityError) -> Optional[str]:
    orig = exc.orig
    # asyncpg (wrapped by the SQLAlchemy adapter) and psycopg expose it differently
    for source in (orig, getattr(orig, "__cause__", None), getattr(orig, "diag", None)):
        name = getattr(source, "constraint_name", None)
        if name:
            return name
    return None


def conflict_field(exc: IntegrityError) -> Optional[ConflictField]:
    """Map a unique violation to the field it protects, or None if it is something else."""
    name = _constraint_name(exc)
    if name in _CONSTRAINT_FIELDS:
        return _CONSTRAINT_FIELDS[name]
    detail = str(exc.orig)
    if "unique" not in detail.lower():
        return None
    for needle, field in {**_CONSTRAINT_FIELDS, **_COLUMN_FIELDS}.items():
        if needle in detail:
            return field
    return None


def _store_error(exc: SQLAlchemyError) -> StoreError:
    orig = getattr(exc, "orig", None)
    return StoreError(str(orig) if orig is not None else str(exc))


async def find_by_email(db: AsyncSession, email: str) -> Submission:
    try:
        res = await db.execute(select(Submission).where(Submission.email == email))
        row = res.scalar_one_or_none()
    except MultipleResultsFound as exc:
        raise StoreError("multiple submissions match this email") from exc
    except SQLAlchemyError as exc:
        raise _store_error(exc) from exc
    if row is None:
        raise NotFound(email)
    return row


async def email_exists(db: AsyncSession, email: str) -> bool:
    try:
        res = await db.execute(select(Submission.email).where(Submission.email == email).limit(1))
    except SQLAlchemyError as exc:
        raise _store_error(exc) from exc
    return res.first() is not None


async def insert(db: AsyncSession, fields: Mapping[str, Any]) -> Submission:
    row = Submission(**fields)
    db.add(row)
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        field = conflict_field(exc)
        if field is None:
            raise _store_error(exc) from exc
        # the backend reports whichever constraint it checked first; email wins when both clash
        if field is not ConflictField.email and await email_exists(db, fields.get("email")):
            field = ConflictField.email
        raise Conflict(field) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        raise _store_error(exc) from exc
    return row


async def update_by_email(
    db: AsyncSession,
    email: str,
    fields: Mapping[str, Any],
) -> list[Submission]:
    try:
        res = await db.execute(select(Submission).where(Submission.email == email))
        rows = list(res.scalars().all())
        if len(rows) > 1:
            log.warning("update_by_email matched %d rows for %s", len(rows), email)
        for row in rows:
            for key, value in fields.items():
                setattr(row, key, value)
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        field = conflict_field(exc)
        if field is None:
            raise _store_error(exc) from exc
        raise Conflict(field) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        raise _store_error(exc) from exc
    return rows


async def list_all(db: AsyncSession) -> Sequence[Submission]:
    try:
        res = await db.execute(
            select(Submission).order_by(Submission.created_at.desc(), Submission.id.desc())
        )
    except SQLAlchemyError as exc:
        raise _store_error(exc) from exc
    return list(res.scalars().all())
