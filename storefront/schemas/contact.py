from __future__ import annotations

from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, StringConstraints
from pydantic.alias_generators import to_camel

from storefront.core.validation import BLANK_AS_NONE, REQUIRED

PHONE_PATTERN = r"^[+]?[\d\s\-()]{7,20}$"


class ContactSubject(str, Enum):
    GENERAL = "general"
    PRODUCTS = "products"
    ORDERS = "orders"
    SUPPORT = "support"
    PARTNERSHIP = "partnership"


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    READ = "read"
    RESPONDED = "responded"
    ARCHIVED = "archived"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )


class ContactSubmission(_CamelModel):
    """Stored contact form submission (admin view)."""

    id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: Optional[str] = None
    subject: str = ""
    message: str = ""
    status: str = SubmissionStatus.PENDING.value
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class SubmissionReceipt(_CamelModel):
    """What the submitter gets back; the stored record is not echoed."""

    id: str
    submitted_at: str


# =============================================================================
# REQUEST MODELS
# =============================================================================

PersonName = Annotated[str, StringConstraints(min_length=2, max_length=50), REQUIRED]
Email = Annotated[EmailStr, AfterValidator(str.lower), REQUIRED]
Phone = Annotated[str, StringConstraints(pattern=PHONE_PATTERN)]
MessageText = Annotated[str, StringConstraints(min_length=10, max_length=2000), REQUIRED]


class ContactCreate(_CamelModel):
    """Body of ``POST /api/contact``. Unknown keys (status, id...) are dropped."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    first_name: PersonName
    last_name: PersonName
    email: Email
    phone: Annotated[Optional[Phone], BLANK_AS_NONE] = None
    subject: Annotated[ContactSubject, REQUIRED]
    message: MessageText


class StatusUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: SubmissionStatus
