"""Lease signing endpoints."""

from uuid import UUID
from fastapi import APIRouter, Depends, Request

from leasedesk.core.deps import get_signing_service, get_template_service
from leasedesk.core.exceptions import InvalidTemplate
from leasedesk.schemas.signing import (
    AuditMetadata,
    LeaseDocumentCreate,
    LeaseDocumentOut,
    SigningRecordOut,
    SigningSubmission,
    parse_signature_fields,
)
from leasedesk.services.lease_templates import LeaseTemplateService
from leasedesk.services.signing import SigningService

router = APIRouter()


def _audit_metadata(request: Request) -> AuditMetadata:
    forwarded = request.headers.get("x-forwarded-for", "")
    ip = forwarded.split(",")[0].strip() or (request.client.host if request.client else "") or "unknown"
    return AuditMetadata(ip=ip, user_agent=request.headers.get("user-agent") or "unknown")


@router.post("/leases/{lease_id}/document", response_model=LeaseDocumentOut, status_code=201)
async def open_document(
    lease_id: UUID,
    data: LeaseDocumentCreate,
    signing: SigningService = Depends(get_signing_service),
    templates: LeaseTemplateService = Depends(get_template_service),
):
    """Freeze the PDF and field layout a lease will be signed against."""
    source_pdf_url = data.source_pdf_url
    fields = data.signature_fields
    if data.lease_template_id is not None:
        template = await templates.get_template(data.lease_template_id)
        source_pdf_url = source_pdf_url or template.pdf_url
        if fields is None:
            fields = parse_signature_fields(template.signature_fields)

    if not source_pdf_url:
        raise InvalidTemplate("A lease PDF is required to start signing.", lease_id=str(lease_id))

    return await signing.open_document(lease_id, source_pdf_url, fields, data.lease_template_id)


@router.get("/leases/{lease_id}/document", response_model=LeaseDocumentOut)
async def get_document(
    lease_id: UUID,
    signing: SigningService = Depends(get_signing_service),
):
    return await signing.get_document(lease_id)


@router.post("/leases/{lease_id}/sign", response_model=SigningRecordOut)
async def sign_lease(
    lease_id: UUID,
    submission: SigningSubmission,
    request: Request,
    signing: SigningService = Depends(get_signing_service),
):
    """Finalize the signer's session: overlay, hash, upload and record."""
    return await signing.submit(lease_id, submission, _audit_metadata(request))


@router.get("/leases/{lease_id}/signing-records", response_model=list[SigningRecordOut])
async def list_signing_records(
    lease_id: UUID,
    signing: SigningService = Depends(get_signing_service),
):
    return await signing.list_records(lease_id)
