"""Lease signing: session checks, overlay, hashing, upload and bookkeeping.

Each signing pass works on the document's current PDF. Tenant and landlord
passes are serialized by `LeaseDocument.signing_round`: a submission that
started from an older round is rejected instead of overwriting the other
party's signature.
"""

import hashlib
import io
import json
import logging
from dataclasses import dataclass, field as dc_field
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID, uuid4

import httpx
from pypdf import PdfReader
from pypdf.errors import PdfReadError
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.core.config import SigningConfig
from leasedesk.core.exceptions import (
    DocumentFetchFailure,
    DocumentFetchTimeout,
    DocumentNotFound,
    LeaseDeskError,
    PdfRenderFailure,
    SigningIncomplete,
    StaleSigningRound,
)
from leasedesk.models.signing import LeaseDocument, SigningRecord, SigningRole
from leasedesk.repositories.signing import SigningRecordRepository
from leasedesk.schemas.signing import (
    AuditMetadata,
    DateField,
    SignatureField,
    SignedDocument,
    SigningData,
    SigningSubmission,
    dump_signature_fields,
    parse_signature_fields,
)
from leasedesk.services import pdf_overlay
from leasedesk.services.blob_storage import JSON_CONTENT_TYPE, PDF_CONTENT_TYPE, ObjectStore
from leasedesk.utils.timeutils import as_utc, to_db, utc_now

logger = logging.getLogger(__name__)

FIELD_PENDING = "pending"
FIELD_COMPLETED = "completed"


def default_signature_fields(page: int = 1) -> list:
    """Signature and date boxes near the bottom of `page` for both roles.

    Used for uploaded PDFs whose template never had fields laid out.
    """
    fields = []
    for role, top in ((SigningRole.TENANT, 78.0), (SigningRole.LANDLORD, 88.0)):
        fields.append(SignatureField(
            id=f"default_{role.value}_sig", role=role, page=page,
            x=12.0, y=top, width=32.0, height=6.0, label=f"{role.value.capitalize()} Signature",
        ))
        fields.append(DateField(
            id=f"default_{role.value}_date", role=role, page=page,
            x=56.0, y=top + 2.0, width=16.0, height=4.0, label="Date",
        ))
    return fields


@dataclass
class SigningSession:
    """Server-side mirror of the client's signing state for one role."""
    role: SigningRole
    fields: list
    completed_field_ids: set[str] = dc_field(default_factory=set)
    consent: bool = False

    @property
    def role_fields(self) -> list:
        return [f for f in self.fields if f.role == self.role]

    def status(self, field_id: str) -> str:
        return FIELD_COMPLETED if field_id in self.completed_field_ids else FIELD_PENDING

    def complete(self, field_id: str) -> None:
        if field_id not in {f.id for f in self.role_fields}:
            raise KeyError(field_id)
        self.completed_field_ids.add(field_id)

    def missing_required(self) -> list[str]:
        return [f.id for f in self.role_fields if f.required and f.id not in self.completed_field_ids]

    @property
    def can_submit(self) -> bool:
        return self.consent and not self.missing_required()


class SigningService:

    def __init__(
        self,
        db: AsyncSession,
        store: ObjectStore,
        config: SigningConfig = SigningConfig(),
        http_client: Optional[httpx.AsyncClient] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.store = store
        self.config = config
        self.http_client = http_client
        self.now = now
        self.records = SigningRecordRepository(db)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def open_document(
        self,
        lease_id: UUID,
        source_pdf_url: str,
        signature_fields: Optional[list] = None,
        lease_template_id: Optional[UUID] = None,
    ) -> LeaseDocument:
        """Start signing for a lease. The field layout is frozen from here on."""
        existing = await self.records.get_document(lease_id)
        if existing is not None:
            return existing

        document = LeaseDocument(
            lease_id=lease_id,
            lease_template_id=lease_template_id,
            source_pdf_url=source_pdf_url,
            current_pdf_url=source_pdf_url,
            signature_fields=dump_signature_fields(signature_fields) if signature_fields else None,
            signing_round=0,
        )
        await self.records.add_document(document)
        await self.db.commit()
        logger.info("Opened lease %s for signing (template %s)", lease_id, lease_template_id)
        return document

    async def get_document(self, lease_id: UUID) -> LeaseDocument:
        document = await self.records.get_document(lease_id)
        if document is None:
            raise DocumentNotFound(lease_id=str(lease_id))
        return document

    async def list_records(self, lease_id: UUID) -> list[SigningRecord]:
        return await self.records.list_records(lease_id)

    async def fetch_document(self, url: str) -> bytes:
        timeout = self.config.fetch_timeout_seconds
        try:
            if self.http_client is not None:
                response = await self.http_client.get(url, timeout=timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(url, timeout=timeout)
            response.raise_for_status()
            return response.content
        except httpx.TimeoutException as e:
            logger.error("Timed out fetching lease document %s", url)
            raise DocumentFetchTimeout(url=url) from e
        except httpx.HTTPError as e:
            logger.error("Failed to fetch lease document %s: %s", url, e)
            raise DocumentFetchFailure(url=url) from e

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    async def apply_signatures_to_pdf(
        self,
        pdf_bytes: bytes,
        fields: list,
        signing_data: SigningData,
        role: SigningRole,
        audit: AuditMetadata,
        lease_id: UUID,
        signed_at: Optional[datetime] = None,
    ) -> SignedDocument:
        """Overlay `role`'s fields, hash the result and upload PDF plus audit JSON."""
        signed_at = as_utc(signed_at or self.now())
        signed_pdf = pdf_overlay.apply_signatures_to_pdf(
            pdf_bytes,
            fields,
            signing_data,
            role,
            audit,
            signed_at,
            max_image_bytes=self.config.max_signature_bytes,
        )
        # Hash once so upload retries of these bytes keep the same digest
        document_hash = hashlib.sha256(signed_pdf).hexdigest()

        base_key = f"leases/{lease_id}/{role.value}-{signed_at.strftime('%Y%m%dT%H%M%SZ')}-{uuid4().hex}"
        signed_pdf_url = await self.store.upload(f"{base_key}.pdf", signed_pdf, PDF_CONTENT_TYPE)

        audit_log = {
            "lease_id": str(lease_id),
            "role": role.value,
            "signer_name": signing_data.signer_name,
            "signer_email": signing_data.signer_email,
            "signed_at": signed_at.isoformat(),
            "ip": audit.ip,
            "user_agent": audit.user_agent,
            "document_hash": document_hash,
            "signed_pdf_url": signed_pdf_url,
            "consent_statement": pdf_overlay.LEGAL_STATEMENT,
        }
        audit_log_url = await self.store.upload(
            f"{base_key}.json",
            json.dumps(audit_log, indent=2).encode("utf-8"),
            JSON_CONTENT_TYPE,
        )

        logger.info("Lease %s signed by %s, hash %s", lease_id, role.value, document_hash)
        return SignedDocument(signed_pdf_url=signed_pdf_url, audit_log_url=audit_log_url, document_hash=document_hash)

    async def submit(self, lease_id: UUID, submission: SigningSubmission, audit: AuditMetadata) -> SigningRecord:
        """Finalize one role's signing pass.

        Nothing is recorded unless every step succeeds, so the client can
        resubmit the same completed fields after a failure.
        """
        try:
            return await self._submit(lease_id, submission, audit)
        except LeaseDeskError:
            await self.db.rollback()
            raise

    async def _submit(self, lease_id: UUID, submission: SigningSubmission, audit: AuditMetadata) -> SigningRecord:
        document = await self.records.get_document(lease_id, for_update=True)
        if document is None:
            raise DocumentNotFound(lease_id=str(lease_id))

        configured = parse_signature_fields(document.signature_fields)
        session = SigningSession(
            role=submission.role,
            fields=configured or default_signature_fields(),
            completed_field_ids=set(submission.completed_field_ids),
            consent=submission.consent,
        )
        if not session.can_submit:
            raise SigningIncomplete(
                missing_field_ids=session.missing_required(),
                consent_missing=not session.consent,
            )

        # Reject bad images before any network work
        pdf_overlay.decode_png_data_url(submission.signature_data_url, self.config.max_signature_bytes)
        if submission.initials_data_url:
            pdf_overlay.decode_png_data_url(submission.initials_data_url, self.config.max_signature_bytes)

        if document.signing_round != submission.base_round:
            logger.info(
                "Stale signing round for lease %s: document at %d, submission from %d",
                lease_id, document.signing_round, submission.base_round,
            )
            raise StaleSigningRound(lease_id=str(lease_id))

        pdf_bytes = await self.fetch_document(document.current_pdf_url)
        # each completed pass appended one audit page after the lease pages
        lease_pages = max(self._page_count(pdf_bytes) - document.signing_round, 1)
        fields = configured or default_signature_fields(page=lease_pages)

        signing_data = SigningData(
            signer_name=submission.signer_name,
            signer_email=submission.signer_email,
            signature_data_url=submission.signature_data_url,
            initials_data_url=submission.initials_data_url,
        )
        signed_at = as_utc(self.now())
        signed = await self.apply_signatures_to_pdf(
            pdf_bytes, fields, signing_data, submission.role, audit, lease_id, signed_at=signed_at,
        )

        record = SigningRecord(
            lease_document_id=document.id,
            lease_id=lease_id,
            role=submission.role,
            signing_round=document.signing_round,
            signer_name=submission.signer_name,
            signer_email=submission.signer_email,
            signer_ip=audit.ip,
            signer_user_agent=audit.user_agent,
            signed_at=to_db(signed_at),
            signed_pdf_url=signed.signed_pdf_url,
            audit_log_url=signed.audit_log_url,
            document_hash=signed.document_hash,
        )
        self.records.add_record(record)
        document.signing_round += 1
        document.current_pdf_url = signed.signed_pdf_url
        await self.db.commit()
        await self.db.refresh(record)
        return record

    @staticmethod
    def _page_count(pdf_bytes: bytes) -> int:
        try:
            return len(PdfReader(io.BytesIO(pdf_bytes)).pages) or 1
        except PdfReadError as e:
            raise PdfRenderFailure() from e
