from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------- Base & naming ----------
class Base(DeclarativeBase):
    # Keep index/constraint names stable; the submissions repo keys conflicts off them
    metadata = sa.MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s",
        }
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- SUBMISSIONS (one row per registrant) ----------
class Submission(Base):
    __tablename__ = "submissions"

    # BIGINT in Postgres; SQLite only autoincrements INTEGER primary keys
    id: Mapped[int] = mapped_column(
        sa.BigInteger().with_variant(sa.Integer(), "sqlite"), primary_key=True, autoincrement=True
    )

    # Personal information
    name: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    email: Mapped[str] = mapped_column(sa.Text, nullable=False)
    phone: Mapped[str] = mapped_column(sa.Text, nullable=False)  # +91XXXXXXXXXX
    address: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    city: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    state: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)

    # 'business owner' | 'professional' | 'other' (not enforced)
    employment_type: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)

    # Business details
    business_name: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    business_category: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    business_description: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    business_website: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    business_social_media: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)

    # Professional details
    professional_website: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    professional_social_media: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    work_experience: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)

    # Services & requirements
    services_offered: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    looking_for: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)

    agree_to_rules: Mapped[Optional[bool]] = mapped_column(sa.Boolean, nullable=True)

    # python-side default keeps sub-second ordering on backends whose now() is coarse
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, server_default=sa.func.now()
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_submissions_email"),
        UniqueConstraint("phone", name="uq_submissions_phone"),
        Index("ix_submissions_created_at", "created_at"),
    )
