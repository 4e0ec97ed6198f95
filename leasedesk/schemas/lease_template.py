"""Pydantic schemas for lease templates."""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID
from pydantic import BaseModel, Field, model_validator
from leasedesk.models.lease_template import TemplateType
from leasedesk.schemas.signing import SignatureFieldPosition


class LeaseBuilderConfig(BaseModel):
    """Structured lease terms for builder-type templates."""
    default_lease_duration: int = 12  # months
    auto_renewal: bool = False
    renewal_notice_days: int = 30
    rent_due_day: int = Field(default=1, ge=1, le=28)
    grace_period_days: int = 5
    late_fee_percent: float = 5.0
    security_deposit_months: float = 1.0
    pet_deposit: Optional[float] = None
    pet_rent: Optional[float] = None
    cleaning_fee: Optional[float] = None
    tenant_pays_utilities: list[str] = Field(default_factory=list)
    landlord_pays_utilities: list[str] = Field(default_factory=list)
    pets_allowed: bool = False
    pet_restrictions: Optional[str] = None
    smoking_allowed: bool = False
    quiet_hours_start: str = "22:00"
    quiet_hours_end: str = "07:00"
    lead_paint_disclosure: bool = False
    mold_disclosure: bool = False
    bed_bug_disclosure: bool = False
    additional_terms: Optional[str] = None


class MergeFieldConfig(BaseModel):
    """Binds a template placeholder to a value on a related record."""
    field_name: str
    source: Literal["tenant", "property", "unit", "application", "custom"]
    source_field: str


class LeaseTemplateCreate(BaseModel):
    landlord_id: UUID
    name: str
    type: TemplateType
    is_default: bool = False
    builder_config: Optional[LeaseBuilderConfig] = None
    pdf_url: Optional[str] = None
    signature_fields: Optional[list[SignatureFieldPosition]] = None
    merge_fields: Optional[list[MergeFieldConfig]] = None
    property_ids: list[UUID] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_type_payload(self):
        if self.type == TemplateType.BUILDER:
            if self.builder_config is None:
                raise ValueError("builder templates require builder_config")
            if self.pdf_url:
                raise ValueError("builder templates cannot carry a pdf_url")
        elif not self.pdf_url:
            raise ValueError("uploaded_pdf templates require pdf_url")
        return self


class LeaseTemplateUpdate(BaseModel):
    """Partial update. `property_ids`, when given, replaces the assignments."""
    name: Optional[str] = None
    is_default: Optional[bool] = None
    builder_config: Optional[LeaseBuilderConfig] = None
    pdf_url: Optional[str] = None
    signature_fields: Optional[list[SignatureFieldPosition]] = None
    merge_fields: Optional[list[MergeFieldConfig]] = None
    property_ids: Optional[list[UUID]] = None


class PropertyAssignment(BaseModel):
    property_ids: list[UUID]


class LeaseTemplateOut(BaseModel):
    id: UUID
    landlord_id: UUID
    name: str
    type: TemplateType
    is_default: bool
    builder_config: Optional[LeaseBuilderConfig] = None
    pdf_url: Optional[str] = None
    signature_fields: Optional[list[SignatureFieldPosition]] = None
    merge_fields: Optional[list[MergeFieldConfig]] = None
    property_ids: list[UUID] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
