"""Repository for lease documents and signing records."""

from typing import Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.models.signing import LeaseDocument, SigningRecord


class SigningRecordRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_document(self, lease_id: UUID, for_update: bool = False) -> Optional[LeaseDocument]:
        query = select(LeaseDocument).where(LeaseDocument.lease_id == lease_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def add_document(self, document: LeaseDocument) -> LeaseDocument:
        self.db.add(document)
        await self.db.flush()
        return document

    def add_record(self, record: SigningRecord) -> None:
        self.db.add(record)

    async def list_records(self, lease_id: UUID) -> list[SigningRecord]:
        result = await self.db.execute(
            select(SigningRecord)
            .where(SigningRecord.lease_id == lease_id)
            .order_by(SigningRecord.signing_round)
        )
        return list(result.scalars().all())
