"""Lease template models.

A landlord owns many templates; at most one of them is the default. A
property is assigned at most one template through property_lease_templates.
"""

from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Index, Enum as SQLEnum, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from leasedesk.core.database import Base


class TemplateType(str, enum.Enum):
    BUILDER = "builder"
    UPLOADED_PDF = "uploaded_pdf"


class LeaseTemplate(Base):
    __tablename__ = "lease_templates"
    __table_args__ = (
        # Backstop for the clear-then-set default write
        Index(
            "uq_lease_templates_landlord_default",
            "landlord_id",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default = 1"),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    landlord_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(SQLEnum(TemplateType, name="lease_template_type"), nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)

    builder_config = Column(JSON, nullable=True)  # builder templates only
    pdf_url = Column(String, nullable=True)  # uploaded_pdf templates only
    signature_fields = Column(JSON, nullable=True)  # [{"id": ..., "type": "signature", "page": 1, ...}]
    merge_fields = Column(JSON, nullable=True)  # [{"field_name": ..., "source": "tenant", ...}]

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Read-only; assignments are written through LeaseTemplateRepository
    assignments = relationship("PropertyLeaseTemplate", viewonly=True, lazy="selectin")

    @property
    def property_ids(self) -> list[uuid.UUID]:
        return [a.property_id for a in self.assignments]


class PropertyLeaseTemplate(Base):
    __tablename__ = "property_lease_templates"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    property_id = Column(UUID(as_uuid=True), unique=True, index=True, nullable=False)
    lease_template_id = Column(
        UUID(as_uuid=True),
        ForeignKey("lease_templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow)
