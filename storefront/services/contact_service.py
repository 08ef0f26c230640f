from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from storefront.core.errors import NotFound
from storefront.core.validation import messages_for, validate
from storefront.schemas.contact import (
    ContactCreate,
    ContactSubmission,
    StatusUpdate,
    SubmissionReceipt,
    SubmissionStatus,
)
from storefront.services.storage_service import JsonArrayStorage
from storefront.utils.time_utils import parse_iso, utc_now_iso

logger = logging.getLogger(__name__)

SUBMISSION_NOT_FOUND = "Submission not found"
SORT_OLDEST = "oldest"

CONTACT_MESSAGES = {
    **messages_for("firstName", "First name must be 2-50 characters", missing="First name is required"),
    **messages_for("lastName", "Last name must be 2-50 characters", missing="Last name is required"),
    **messages_for("email", "Please provide a valid email address", missing="Email is required"),
    **messages_for("phone", "Please provide a valid phone number"),
    **messages_for("subject", "Invalid subject selected", missing="Subject is required"),
    **messages_for("message", "Message must be 10-2000 characters", missing="Message is required"),
}

STATUS_MESSAGES = messages_for("status", "Invalid status")


class ContactService:
    """Service to validate, store and administer contact submissions."""

    def __init__(self, storage: JsonArrayStorage):
        self.storage = storage

    def submit(
        self,
        payload: Mapping[str, Any],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SubmissionReceipt:
        fields = validate(ContactCreate, payload, CONTACT_MESSAGES)

        record = {
            "id": str(uuid4()),
            "firstName": fields.first_name,
            "lastName": fields.last_name,
            "email": fields.email,
            "phone": fields.phone,
            "subject": fields.subject.value,
            "message": fields.message,
            "status": SubmissionStatus.PENDING.value,
            "createdAt": utc_now_iso(),
            "ipAddress": ip_address,
            "userAgent": user_agent,
        }

        with self.storage.locked():
            records = self.storage.read(strict=True)
            records.append(record)
            self.storage.save(records)

        logger.info(
            "New contact submission id=%s name=%s %s email=%s subject=%s",
            record["id"],
            record["firstName"],
            record["lastName"],
            record["email"],
            record["subject"],
        )
        return SubmissionReceipt(id=record["id"], submitted_at=record["createdAt"])

    def list_submissions(
        self, status: Optional[str] = None, sort: Optional[str] = None
    ) -> List[ContactSubmission]:
        records = self.storage.read()
        if status:
            records = [r for r in records if r.get("status") == status]
        records = sorted(
            records,
            key=lambda r: parse_iso(r.get("createdAt")),
            reverse=sort != SORT_OLDEST,
        )
        return [ContactSubmission.model_validate(r) for r in records]

    def _index_of(self, records: List[Dict[str, Any]], submission_id: str) -> int:
        for index, record in enumerate(records):
            if record.get("id") == submission_id:
                return index
        raise NotFound(SUBMISSION_NOT_FOUND)

    def update_status(
        self, submission_id: str, payload: Mapping[str, Any]
    ) -> ContactSubmission:
        status = validate(StatusUpdate, payload, STATUS_MESSAGES).status.value

        with self.storage.locked():
            records = self.storage.read(strict=True)
            index = self._index_of(records, submission_id)
            updated = dict(records[index])
            updated["status"] = status
            updated["updatedAt"] = utc_now_iso()
            records[index] = updated
            self.storage.save(records)

        logger.info("Submission %s marked %s", submission_id, status)
        return ContactSubmission.model_validate(updated)

    def delete_submission(self, submission_id: str) -> ContactSubmission:
        with self.storage.locked():
            records = self.storage.read(strict=True)
            index = self._index_of(records, submission_id)
            removed = records.pop(index)
            self.storage.save(records)

        logger.info("Submission deleted id=%s", submission_id)
        return ContactSubmission.model_validate(removed)
