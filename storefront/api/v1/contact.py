"""
Contact form endpoints.

Public submission plus the (unauthenticated) admin views over stored
submissions.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from storefront.api.deps import get_contact_service, read_payload
from storefront.core.rate_limiter import get_client_ip
from storefront.schemas.contact import ContactSubmission, SubmissionReceipt
from storefront.schemas.envelope import ERROR_RESPONSES, Envelope
from storefront.services.contact_service import ContactService

router = APIRouter(responses=ERROR_RESPONSES)

THANK_YOU_MESSAGE = "Thank you for your message! We will get back to you soon."


@router.post(
    "",
    response_model=Envelope[SubmissionReceipt],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
    summary="Submit contact form",
)
def submit_contact(
    request: Request,
    payload: Dict[str, Any] = Depends(read_payload),
    service: ContactService = Depends(get_contact_service),
):
    """Store a contact request; only its id and timestamp are returned."""
    receipt = service.submit(
        payload,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
    return Envelope[SubmissionReceipt](
        success=True, message=THANK_YOU_MESSAGE, data=receipt
    )


@router.get(
    "/submissions",
    response_model=Envelope[List[ContactSubmission]],
    response_model_exclude_unset=True,
    summary="List contact submissions",
)
def list_submissions(
    status_filter: Optional[str] = Query(None, alias="status"),
    sort: Optional[str] = Query(None, description="'oldest' for ascending order"),
    service: ContactService = Depends(get_contact_service),
):
    submissions = service.list_submissions(status_filter, sort)
    return Envelope[List[ContactSubmission]](
        success=True, count=len(submissions), data=submissions
    )


@router.patch(
    "/submissions/{submission_id}",
    response_model=Envelope[ContactSubmission],
    response_model_exclude_unset=True,
    summary="Update submission status",
)
def update_submission_status(
    submission_id: str,
    payload: Dict[str, Any] = Depends(read_payload),
    service: ContactService = Depends(get_contact_service),
):
    submission = service.update_status(submission_id, payload)
    return Envelope[ContactSubmission](
        success=True, message="Submission updated successfully", data=submission
    )


@router.delete(
    "/submissions/{submission_id}",
    response_model=Envelope[ContactSubmission],
    response_model_exclude_unset=True,
    summary="Delete submission",
)
def delete_submission(
    submission_id: str, service: ContactService = Depends(get_contact_service)
):
    submission = service.delete_submission(submission_id)
    return Envelope[ContactSubmission](
        success=True, message="Submission deleted successfully", data=submission
    )
