from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

PHONE_RE = re.compile(r"\+91[0-9]{10}")
PHONE_FORMAT_HINT = "Phone must be in +91xxxxxxxxxx format"


def is_valid_phone(value: object) -> bool:
    """True iff ``value`` is exactly ``+91`` followed by ten ASCII digits."""
    return isinstance(value, str) and PHONE_RE.fullmatch(value) is not None


class SubmitFormIn(BaseModel):
    """Registration form as posted by the web client (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None

    employment_type: Optional[str] = Field(default=None, alias="employmentType")

    business_name: Optional[str] = Field(default=None, alias="businessName")
    business_category: Optional[str] = Field(default=None, alias="businessCategory")
    business_description: Optional[str] = Field(default=None, alias="businessDescription")
    business_website: Optional[str] = Field(default=None, alias="businessWebsite")
    business_social_media: Optional[str] = Field(default=None, alias="businessSocialMedia")

    professional_website: Optional[str] = Field(default=None, alias="professionalWebsite")
    professional_social_media: Optional[str] = Field(default=None, alias="professionalSocialMedia")
    work_experience: Optional[str] = Field(default=None, alias="workExperience")

    services_offered: Optional[str] = Field(default=None, alias="servicesOffered")
    looking_for: Optional[str] = Field(default=None, alias="lookingFor")

    agree_to_rules: Optional[bool] = Field(default=None, alias="agreeToRules")

    def to_columns(self) -> dict:
        # field names are the column names
        return self.model_dump(by_alias=False)


class MemberUpdateIn(BaseModel):
    email: Optional[str] = None  # identifies the record, never written
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    business_name: Optional[str] = None
    business_category: Optional[str] = None
    business_description: Optional[str] = None
    business_website: Optional[str] = None
    business_social_media: Optional[str] = None
    services_offered: Optional[str] = None
    looking_for: Optional[str] = None

    def changes(self) -> dict:
        # only what the client actually sent
        return self.model_dump(exclude_unset=True, exclude={"email"})


class SubmissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: Optional[str] = None
    email: str
    phone: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    employment_type: Optional[str] = None
    business_name: Optional[str] = None
    business_category: Optional[str] = None
    business_description: Optional[str] = None
    business_website: Optional[str] = None
    business_social_media: Optional[str] = None
    professional_website: Optional[str] = None
    professional_social_media: Optional[str] = None
    work_experience: Optional[str] = None
    services_offered: Optional[str] = None
    looking_for: Optional[str] = None
    agree_to_rules: Optional[bool] = None
    created_at: datetime


class EmailIn(BaseModel):
    email: Optional[str] = None


class VerifyOtpIn(BaseModel):
    email: Optional[str] = None
    # left untyped so a non-string code is rejected as an invalid OTP
    otp: Any = None


class MessageOut(BaseModel):
    message: str


class SubmissionEnvelopeOut(MessageOut):
    data: SubmissionOut


class SubmissionListEnvelopeOut(MessageOut):
    data: list[SubmissionOut]
