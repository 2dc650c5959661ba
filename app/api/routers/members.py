from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...db import get_db
from ...domain.errors import Conflict, NotFound, StoreError
from ...domain.schemas.member import (
    PHONE_FORMAT_HINT,
    EmailIn,
    MemberUpdateIn,
    MessageOut,
    SubmissionEnvelopeOut,
    SubmissionListEnvelopeOut,
    SubmissionOut,
    SubmitFormIn,
    is_valid_phone,
)
from ...observability.metrics import SUBMISSIONS_CREATED, SUBMISSION_CONFLICTS
from ...repos import submissions as submissions_repo

router = APIRouter(tags=["members"])
log = logging.getLogger(__name__)


def _invalid_phone() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "Invalid phone format", "details": PHONE_FORMAT_HINT},
    )


@router.get("/member/{email}", response_model=SubmissionOut)
async def get_member(email: str, db: AsyncSession = Depends(get_db)):
    if not email.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email parameter is required")

    try:
        row = await submissions_repo.find_by_email(db, email)
    except NotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    except StoreError as e:
        log.error("fetch member failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch member data", "details": str(e)},
        )
    return SubmissionOut.model_validate(row)


@router.put("/update-member", response_model=SubmissionListEnvelopeOut)
async def update_member(payload: MemberUpdateIn, db: AsyncSession = Depends(get_db)):
    if not payload.email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is required")

    changes = payload.changes()
    # empty phone is treated as "not provided" for validation
    if changes.get("phone") and not is_valid_phone(changes["phone"]):
        raise _invalid_phone()

    try:
        rows = await submissions_repo.update_by_email(db, payload.email, changes)
        await db.commit()
    except (Conflict, StoreError) as e:
        log.error("update member failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Database error", "details": str(e)},
        )

    return SubmissionListEnvelopeOut(
        message="Member updated successfully",
        data=[SubmissionOut.model_validate(r) for r in rows],
    )


@router.post("/submit-form", status_code=status.HTTP_201_CREATED, response_model=SubmissionEnvelopeOut)
async def submit_form(payload: SubmitFormIn, db: AsyncSession = Depends(get_db)):
    if not is_valid_phone(payload.phone):
        raise _invalid_phone()

    try:
        row = await submissions_repo.insert(db, payload.to_columns())
        await db.commit()
    except Conflict as e:
        SUBMISSION_CONFLICTS.labels(field=e.field.value).inc()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": f"{e.field.label} already exists",
                "details": f"{e.field.label} address is already registered",
            },
        )
    except StoreError as e:
        log.error("submit form failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Database error", "details": str(e)},
        )

    SUBMISSIONS_CREATED.inc()
    return SubmissionEnvelopeOut(message="Form submitted successfully!", data=SubmissionOut.model_validate(row))


@router.get("/submissions", response_model=list[SubmissionOut])
async def list_submissions(db: AsyncSession = Depends(get_db)):
    try:
        rows = await submissions_repo.list_all(db)
    except StoreError as e:
        log.error("submissions fetch failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve submissions",
        )
    return [SubmissionOut.model_validate(r) for r in rows]


@router.post("/check-email", response_model=MessageOut)
async def check_email(payload: Optional[EmailIn] = None, db: AsyncSession = Depends(get_db)):
    payload = payload or EmailIn()
    try:
        found = bool(payload.email) and await submissions_repo.email_exists(db, payload.email)
    except StoreError as e:
        log.error("email check failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to verify email",
        )
    if not found:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "Email not found",
                "message": "This email is not registered in our database. Please join our network first.",
            },
        )
    return MessageOut(message="Email found")
