"""Lease template endpoints."""

from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Response

from leasedesk.core.deps import get_template_service
from leasedesk.schemas.lease_template import (
    LeaseTemplateCreate,
    LeaseTemplateOut,
    LeaseTemplateUpdate,
    PropertyAssignment,
)
from leasedesk.services.lease_templates import LeaseTemplateService

router = APIRouter()


@router.post("/lease-templates", response_model=LeaseTemplateOut, status_code=201)
async def create_template(
    data: LeaseTemplateCreate,
    service: LeaseTemplateService = Depends(get_template_service),
):
    return await service.create_template(data)


@router.get("/lease-templates", response_model=list[LeaseTemplateOut])
async def list_templates(
    landlord_id: UUID,
    property_id: Optional[UUID] = None,
    service: LeaseTemplateService = Depends(get_template_service),
):
    """Landlord's templates, default first. With `property_id`, only the assigned one."""
    return await service.list_templates(landlord_id, property_id)


@router.get("/lease-templates/{template_id}", response_model=LeaseTemplateOut)
async def get_template(
    template_id: UUID,
    service: LeaseTemplateService = Depends(get_template_service),
):
    return await service.get_template(template_id)


@router.patch("/lease-templates/{template_id}", response_model=LeaseTemplateOut)
async def update_template(
    template_id: UUID,
    data: LeaseTemplateUpdate,
    service: LeaseTemplateService = Depends(get_template_service),
):
    return await service.update_template(template_id, data)


@router.delete("/lease-templates/{template_id}", status_code=204)
async def delete_template(
    template_id: UUID,
    service: LeaseTemplateService = Depends(get_template_service),
):
    await service.delete_template(template_id)
    return Response(status_code=204)


@router.put("/lease-templates/{template_id}/properties", response_model=LeaseTemplateOut)
async def assign_properties(
    template_id: UUID,
    data: PropertyAssignment,
    service: LeaseTemplateService = Depends(get_template_service),
):
    return await service.assign_template_to_properties(template_id, data.property_ids)


@router.post("/lease-templates/{template_id}/default", response_model=LeaseTemplateOut)
async def set_default_template(
    template_id: UUID,
    landlord_id: UUID,
    service: LeaseTemplateService = Depends(get_template_service),
):
    return await service.set_default_template(template_id, landlord_id)


@router.get("/properties/{property_id}/lease-template", response_model=Optional[LeaseTemplateOut])
async def resolve_template(
    property_id: UUID,
    landlord_id: UUID,
    service: LeaseTemplateService = Depends(get_template_service),
):
    """Template that applies to the property, or null when none does."""
    return await service.resolve_template_for_property(property_id, landlord_id)


@router.delete("/properties/{property_id}/lease-template", status_code=204)
async def remove_template_from_property(
    property_id: UUID,
    service: LeaseTemplateService = Depends(get_template_service),
):
    await service.remove_template_from_property(property_id)
    return Response(status_code=204)
