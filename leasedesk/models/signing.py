"""Lease document and signing record models.

LeaseDocument tracks the current state of a lease PDF across signing passes.
Each signing pass layers one role's marks on top of `current_pdf_url` and
bumps `signing_round`; a pass started against an older round is rejected.
"""

from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
import uuid
from datetime import datetime
import enum
from leasedesk.core.database import Base


class SigningRole(str, enum.Enum):
    TENANT = "tenant"
    LANDLORD = "landlord"


class LeaseDocument(Base):
    __tablename__ = "lease_documents"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    lease_id = Column(UUID(as_uuid=True), unique=True, index=True, nullable=False)
    lease_template_id = Column(UUID(as_uuid=True), nullable=True)

    source_pdf_url = Column(String, nullable=False)
    current_pdf_url = Column(String, nullable=False)
    signature_fields = Column(JSON, nullable=True)  # snapshot taken when signing starts
    signing_round = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class SigningRecord(Base):
    __tablename__ = "signing_records"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    lease_document_id = Column(
        UUID(as_uuid=True),
        ForeignKey("lease_documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lease_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    role = Column(SQLEnum(SigningRole, name="signing_role"), nullable=False)
    signing_round = Column(Integer, nullable=False)

    signer_name = Column(String, nullable=False)
    signer_email = Column(String, nullable=False)
    signer_ip = Column(String, nullable=True)
    signer_user_agent = Column(String, nullable=True)
    signed_at = Column(DateTime, nullable=False)

    signed_pdf_url = Column(String, nullable=False)
    audit_log_url = Column(String, nullable=False)
    document_hash = Column(String(64), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
