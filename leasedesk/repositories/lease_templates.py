"""Repository for lease templates and their property assignments."""

from typing import Optional
from uuid import UUID
from sqlalchemy import select, update, delete, and_
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.models.lease_template import LeaseTemplate, PropertyLeaseTemplate


class LeaseTemplateRepository:
    """Database operations for LeaseTemplate / PropertyLeaseTemplate."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, template_id: UUID) -> Optional[LeaseTemplate]:
        result = await self.db.execute(select(LeaseTemplate).where(LeaseTemplate.id == template_id))
        return result.scalar_one_or_none()

    async def list_for_landlord(self, landlord_id: UUID) -> list[LeaseTemplate]:
        """Default first, then newest."""
        result = await self.db.execute(
            select(LeaseTemplate)
            .where(LeaseTemplate.landlord_id == landlord_id)
            .order_by(LeaseTemplate.is_default.desc(), LeaseTemplate.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_assigned(self, property_id: UUID) -> Optional[LeaseTemplate]:
        result = await self.db.execute(
            select(LeaseTemplate)
            .join(PropertyLeaseTemplate, PropertyLeaseTemplate.lease_template_id == LeaseTemplate.id)
            .where(PropertyLeaseTemplate.property_id == property_id)
        )
        return result.scalar_one_or_none()

    async def get_default(self, landlord_id: UUID) -> Optional[LeaseTemplate]:
        result = await self.db.execute(
            select(LeaseTemplate).where(
                and_(LeaseTemplate.landlord_id == landlord_id, LeaseTemplate.is_default.is_(True))
            )
        )
        return result.scalars().first()

    async def clear_defaults(self, landlord_id: UUID, exclude_id: Optional[UUID] = None) -> None:
        conditions = [LeaseTemplate.landlord_id == landlord_id, LeaseTemplate.is_default.is_(True)]
        if exclude_id is not None:
            conditions.append(LeaseTemplate.id != exclude_id)
        await self.db.execute(
            update(LeaseTemplate)
            .where(and_(*conditions))
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )

    async def add(self, template: LeaseTemplate) -> LeaseTemplate:
        self.db.add(template)
        await self.db.flush()
        return template

    async def replace_assignments(self, template_id: UUID, property_ids: list[UUID]) -> None:
        """Point each property at `template_id`, dropping its previous assignment."""
        if not property_ids:
            return
        await self.db.execute(
            delete(PropertyLeaseTemplate).where(PropertyLeaseTemplate.property_id.in_(property_ids))
        )
        self.db.add_all(
            [PropertyLeaseTemplate(property_id=pid, lease_template_id=template_id) for pid in dict.fromkeys(property_ids)]
        )
        await self.db.flush()

    async def remove_assignments_for_template(self, template_id: UUID) -> None:
        await self.db.execute(
            delete(PropertyLeaseTemplate).where(PropertyLeaseTemplate.lease_template_id == template_id)
        )

    async def remove_assignment(self, property_id: UUID) -> bool:
        result = await self.db.execute(
            delete(PropertyLeaseTemplate).where(PropertyLeaseTemplate.property_id == property_id)
        )
        return result.rowcount > 0

    async def delete(self, template_id: UUID) -> None:
        await self.db.execute(delete(LeaseTemplate).where(LeaseTemplate.id == template_id))

    async def reload(self, template: LeaseTemplate) -> LeaseTemplate:
        await self.db.refresh(template)
        await self.db.refresh(template, attribute_names=["assignments"])
        return template
