"""Lease template CRUD and per-property template resolution.

Resolution order for a property: its explicit assignment, then the
landlord's default template, then nothing. Uploaded PDFs are only used for
a property when assigned to it or marked as the default.
"""

import logging
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.core.exceptions import InvalidTemplate, TemplateNotFound
from leasedesk.models.lease_template import LeaseTemplate, TemplateType
from leasedesk.repositories.lease_templates import LeaseTemplateRepository
from leasedesk.schemas.lease_template import LeaseTemplateCreate, LeaseTemplateUpdate
from leasedesk.schemas.signing import dump_signature_fields

logger = logging.getLogger(__name__)


def _dump_list(items) -> Optional[list]:
    if items is None:
        return None
    return [item.model_dump(mode="json") for item in items]


class LeaseTemplateService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.templates = LeaseTemplateRepository(db)

    async def resolve_template_for_property(self, property_id: UUID, landlord_id: UUID) -> Optional[LeaseTemplate]:
        assigned = await self.templates.get_assigned(property_id)
        if assigned is not None:
            return assigned
        return await self.templates.get_default(landlord_id)

    async def get_template(self, template_id: UUID) -> LeaseTemplate:
        template = await self.templates.get(template_id)
        if template is None:
            raise TemplateNotFound(template_id=str(template_id))
        return template

    async def list_templates(self, landlord_id: UUID, property_id: Optional[UUID] = None) -> list[LeaseTemplate]:
        """All of a landlord's templates, or only the one assigned to `property_id`."""
        if property_id is not None:
            assigned = await self.templates.get_assigned(property_id)
            return [assigned] if assigned is not None else []
        return await self.templates.list_for_landlord(landlord_id)

    async def create_template(self, data: LeaseTemplateCreate) -> LeaseTemplate:
        if data.is_default:
            await self.templates.clear_defaults(data.landlord_id)

        template = LeaseTemplate(
            landlord_id=data.landlord_id,
            name=data.name,
            type=data.type,
            is_default=data.is_default,
            builder_config=data.builder_config.model_dump(mode="json") if data.builder_config else None,
            pdf_url=data.pdf_url,
            signature_fields=dump_signature_fields(data.signature_fields) if data.signature_fields is not None else None,
            merge_fields=_dump_list(data.merge_fields),
        )
        await self.templates.add(template)
        await self.templates.replace_assignments(template.id, data.property_ids)
        await self.db.commit()

        logger.info("Lease template %s created for landlord %s", template.id, data.landlord_id)
        return await self.templates.reload(template)

    async def update_template(self, template_id: UUID, data: LeaseTemplateUpdate) -> LeaseTemplate:
        template = await self.get_template(template_id)
        changes = data.model_dump(exclude_unset=True)

        builder_config = template.builder_config
        if "builder_config" in changes:
            builder_config = data.builder_config.model_dump(mode="json") if data.builder_config else None
        pdf_url = data.pdf_url if "pdf_url" in changes else template.pdf_url
        self._check_type_payload(template, builder_config, pdf_url)

        # Clear before touching the row so autoflush never sees two defaults
        if changes.get("is_default"):
            await self.templates.clear_defaults(template.landlord_id, exclude_id=template.id)

        if "name" in changes:
            template.name = data.name
        if "is_default" in changes:
            template.is_default = bool(data.is_default)
        template.builder_config = builder_config
        template.pdf_url = pdf_url
        if "signature_fields" in changes:
            template.signature_fields = (
                dump_signature_fields(data.signature_fields) if data.signature_fields is not None else None
            )
        if "merge_fields" in changes:
            template.merge_fields = _dump_list(data.merge_fields)

        if data.property_ids is not None:
            await self.templates.replace_assignments(template.id, data.property_ids)

        await self.db.commit()
        return await self.templates.reload(template)

    @staticmethod
    def _check_type_payload(template: LeaseTemplate, builder_config: Optional[dict], pdf_url: Optional[str]) -> None:
        if template.type == TemplateType.BUILDER:
            if not builder_config:
                raise InvalidTemplate("Builder templates require lease terms.", template_id=str(template.id))
            if pdf_url:
                raise InvalidTemplate("Builder templates cannot reference a PDF.", template_id=str(template.id))
        elif not pdf_url:
            raise InvalidTemplate("Uploaded templates require a PDF.", template_id=str(template.id))

    async def assign_template_to_properties(self, template_id: UUID, property_ids: list[UUID]) -> LeaseTemplate:
        """Point every listed property at this template, replacing earlier assignments."""
        template = await self.get_template(template_id)
        await self.templates.replace_assignments(template.id, property_ids)
        await self.db.commit()
        return await self.templates.reload(template)

    async def remove_template_from_property(self, property_id: UUID) -> bool:
        removed = await self.templates.remove_assignment(property_id)
        await self.db.commit()
        return removed

    async def set_default_template(self, template_id: UUID, landlord_id: UUID) -> LeaseTemplate:
        template = await self.get_template(template_id)
        if template.landlord_id != landlord_id:
            raise TemplateNotFound(template_id=str(template_id))

        await self.templates.clear_defaults(landlord_id, exclude_id=template.id)
        template.is_default = True
        await self.db.commit()
        return await self.templates.reload(template)

    async def delete_template(self, template_id: UUID) -> None:
        template = await self.get_template(template_id)
        await self.templates.remove_assignments_for_template(template.id)
        await self.templates.delete(template.id)
        await self.db.commit()
        logger.info("Lease template %s deleted", template_id)
