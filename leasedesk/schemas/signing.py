"""Pydantic schemas for signature fields and signing submissions.

Signature fields are a tagged union on `type`. Coordinates are percentages
of the page (0-100) measured from the top-left corner, as authored in the
field editor UI.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from uuid import UUID
from pydantic import BaseModel, Field, TypeAdapter, field_validator
from leasedesk.models.signing import SigningRole
from leasedesk.utils.timeutils import as_utc


class _FieldBase(BaseModel):
    id: str
    role: SigningRole
    page: int = Field(ge=1)
    x: float = Field(ge=0, le=100)
    y: float = Field(ge=0, le=100)
    width: float = Field(gt=0, le=100)
    height: float = Field(gt=0, le=100)
    required: bool = True
    label: Optional[str] = None
    section_context: Optional[str] = None


class SignatureField(_FieldBase):
    type: Literal["signature"] = "signature"


class InitialField(_FieldBase):
    type: Literal["initial"] = "initial"


class DateField(_FieldBase):
    type: Literal["date"] = "date"


class NameField(_FieldBase):
    type: Literal["name"] = "name"


class TextField(_FieldBase):
    type: Literal["text"] = "text"
    value: Optional[str] = None


SignatureFieldPosition = Annotated[
    Union[SignatureField, InitialField, DateField, NameField, TextField],
    Field(discriminator="type"),
]

FIELD_VARIANTS = (SignatureField, InitialField, DateField, NameField, TextField)

_fields_adapter = TypeAdapter(list[SignatureFieldPosition])


def parse_signature_fields(raw: Optional[list]) -> list:
    """Validate stored JSON field positions into their typed variants."""
    return _fields_adapter.validate_python(raw or [])


def dump_signature_fields(fields: list) -> list[dict]:
    return _fields_adapter.dump_python(fields, mode="json")


class SigningData(BaseModel):
    """What the signer supplied during the session."""
    signer_name: str = Field(min_length=1)
    signer_email: str = Field(min_length=3)
    signature_data_url: str
    initials_data_url: Optional[str] = None


class AuditMetadata(BaseModel):
    """Captured by the HTTP layer, never computed by the overlay."""
    ip: str = "unknown"
    user_agent: str = "unknown"


class SigningSubmission(BaseModel):
    """Final submission of a client-held signing session."""
    role: SigningRole
    signer_name: str
    signer_email: str
    signature_data_url: str
    initials_data_url: Optional[str] = None
    completed_field_ids: list[str] = Field(default_factory=list)
    consent: bool = False
    base_round: int = Field(default=0, ge=0)


class SignedDocument(BaseModel):
    signed_pdf_url: str
    audit_log_url: str
    document_hash: str


class SigningRecordOut(SignedDocument):
    lease_id: UUID
    role: SigningRole
    signing_round: int
    signer_name: str
    signer_email: str
    signed_at: datetime

    @field_validator("signed_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    class Config:
        from_attributes = True


class LeaseDocumentCreate(BaseModel):
    """Opens a lease for signing. Fields are snapshotted from the template when omitted."""
    source_pdf_url: Optional[str] = None
    lease_template_id: Optional[UUID] = None
    signature_fields: Optional[list[SignatureFieldPosition]] = None


class LeaseDocumentOut(BaseModel):
    lease_id: UUID
    lease_template_id: Optional[UUID] = None
    source_pdf_url: str
    current_pdf_url: str
    signature_fields: Optional[list[SignatureFieldPosition]] = None
    signing_round: int

    class Config:
        from_attributes = True
