"""Tests for lease template CRUD and resolution."""

import uuid

import pytest
from sqlalchemy import select

from leasedesk.core.exceptions import InvalidTemplate, TemplateNotFound
from leasedesk.models.lease_template import LeaseTemplate, PropertyLeaseTemplate, TemplateType
from leasedesk.schemas.lease_template import LeaseBuilderConfig, LeaseTemplateCreate, LeaseTemplateUpdate
from leasedesk.services.lease_templates import LeaseTemplateService

LANDLORD = uuid.UUID("deadbeef-3333-4333-a333-3333333333aa")


def builder(name: str, **kwargs) -> LeaseTemplateCreate:
    return LeaseTemplateCreate(
        landlord_id=kwargs.pop("landlord_id", LANDLORD),
        name=name,
        type=TemplateType.BUILDER,
        builder_config=LeaseBuilderConfig(pets_allowed=True),
        **kwargs,
    )


def uploaded(name: str, **kwargs) -> LeaseTemplateCreate:
    return LeaseTemplateCreate(
        landlord_id=LANDLORD,
        name=name,
        type=TemplateType.UPLOADED_PDF,
        pdf_url="https://files.test/lease.pdf",
        **kwargs,
    )


@pytest.fixture
def service(db):
    return LeaseTemplateService(db)


async def default_ids(db, landlord_id=LANDLORD) -> list[uuid.UUID]:
    result = await db.execute(
        select(LeaseTemplate.id).where(LeaseTemplate.landlord_id == landlord_id, LeaseTemplate.is_default.is_(True))
    )
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_create_builder_template(service):
    template = await service.create_template(builder("Standard 12 month", is_default=True))

    assert template.type == TemplateType.BUILDER
    assert template.is_default is True
    assert template.builder_config["pets_allowed"] is True
    assert template.builder_config["rent_due_day"] == 1
    assert template.property_ids == []


@pytest.mark.asyncio
async def test_create_with_properties_assigns_them(service):
    properties = [uuid.uuid4(), uuid.uuid4()]
    template = await service.create_template(uploaded("Condo addendum", property_ids=properties))

    assert sorted(template.property_ids) == sorted(properties)


@pytest.mark.asyncio
async def test_only_one_default_per_landlord(service, db):
    first = await service.create_template(builder("A", is_default=True))
    second = await service.create_template(builder("B", is_default=True))
    assert await default_ids(db) == [second.id]

    await service.update_template(first.id, LeaseTemplateUpdate(is_default=True))
    assert await default_ids(db) == [first.id]

    third = await service.create_template(uploaded("C"))
    await service.set_default_template(third.id, LANDLORD)
    assert await default_ids(db) == [third.id]

    await service.update_template(third.id, LeaseTemplateUpdate(is_default=False))
    assert await default_ids(db) == []


@pytest.mark.asyncio
async def test_defaults_are_per_landlord(service, db):
    other_landlord = uuid.uuid4()
    mine = await service.create_template(builder("Mine", is_default=True))
    theirs = await service.create_template(builder("Theirs", is_default=True, landlord_id=other_landlord))

    assert await default_ids(db) == [mine.id]
    assert await default_ids(db, other_landlord) == [theirs.id]


@pytest.mark.asyncio
async def test_assignment_takes_precedence_over_default(service):
    property_id = uuid.uuid4()
    assigned = await service.create_template(uploaded("Assigned", property_ids=[property_id]))
    await service.create_template(builder("Default", is_default=True))

    resolved = await service.resolve_template_for_property(property_id, LANDLORD)
    assert resolved.id == assigned.id


@pytest.mark.asyncio
async def test_resolution_falls_back_to_default_then_none(service):
    property_id = uuid.uuid4()
    assert await service.resolve_template_for_property(property_id, LANDLORD) is None

    default = await service.create_template(builder("A", is_default=True))
    other = await service.create_template(builder("B"))

    resolved = await service.resolve_template_for_property(property_id, LANDLORD)
    assert resolved.id == default.id

    await service.assign_template_to_properties(other.id, [property_id])
    resolved = await service.resolve_template_for_property(property_id, LANDLORD)
    assert resolved.id == other.id


@pytest.mark.asyncio
async def test_assigning_moves_property_between_templates(service):
    property_id = uuid.uuid4()
    first = await service.create_template(uploaded("First", property_ids=[property_id]))
    second = await service.create_template(uploaded("Second"))

    second = await service.assign_template_to_properties(second.id, [property_id, property_id])
    first = await service.get_template(first.id)
    first = await service.templates.reload(first)

    assert second.property_ids == [property_id]
    assert first.property_ids == []


@pytest.mark.asyncio
async def test_update_replaces_assignments_only_when_given(service):
    kept, moved = uuid.uuid4(), uuid.uuid4()
    template = await service.create_template(uploaded("Lease", property_ids=[kept]))

    renamed = await service.update_template(template.id, LeaseTemplateUpdate(name="Renamed"))
    assert renamed.name == "Renamed"
    assert renamed.property_ids == [kept]

    updated = await service.update_template(template.id, LeaseTemplateUpdate(property_ids=[moved]))
    assert sorted(updated.property_ids) == sorted([kept, moved])


@pytest.mark.asyncio
async def test_update_signature_fields_are_stored_typed(service):
    template = await service.create_template(uploaded("Lease"))
    updated = await service.update_template(template.id, LeaseTemplateUpdate(signature_fields=[
        {"id": "t-sig", "type": "signature", "role": "tenant", "page": 1, "x": 10, "y": 80, "width": 30, "height": 6},
        {"id": "note", "type": "text", "role": "landlord", "page": 2, "x": 10, "y": 20, "width": 40, "height": 4, "value": "Unit 4B"},
    ]))

    assert updated.signature_fields[0]["type"] == "signature"
    assert updated.signature_fields[0]["required"] is True
    assert updated.signature_fields[1]["value"] == "Unit 4B"


@pytest.mark.asyncio
async def test_update_missing_template_raises(service):
    with pytest.raises(TemplateNotFound):
        await service.update_template(uuid.uuid4(), LeaseTemplateUpdate(name="Nope"))


@pytest.mark.asyncio
async def test_update_cannot_break_type_payload(service):
    template = await service.create_template(builder("Builder"))
    with pytest.raises(InvalidTemplate):
        await service.update_template(template.id, LeaseTemplateUpdate(pdf_url="https://files.test/x.pdf"))


@pytest.mark.asyncio
async def test_rejected_update_leaves_default_untouched(service, db):
    current = await service.create_template(builder("Current", is_default=True))
    other = await service.create_template(builder("Other"))
    current_id, other_id = current.id, other.id

    with pytest.raises(InvalidTemplate):
        await service.update_template(
            other_id, LeaseTemplateUpdate(is_default=True, pdf_url="https://files.test/x.pdf")
        )
    await service.update_template(current_id, LeaseTemplateUpdate(name="Current v2"))

    assert await default_ids(db) == [current_id]
    result = await db.execute(select(LeaseTemplate.pdf_url).where(LeaseTemplate.id == other_id))
    assert result.scalar_one() is None


@pytest.mark.asyncio
async def test_delete_removes_assignments(service, db):
    property_id = uuid.uuid4()
    template = await service.create_template(uploaded("Lease", property_ids=[property_id]))

    await service.delete_template(template.id)

    result = await db.execute(select(PropertyLeaseTemplate).where(PropertyLeaseTemplate.property_id == property_id))
    assert result.scalar_one_or_none() is None
    with pytest.raises(TemplateNotFound):
        await service.get_template(template.id)


@pytest.mark.asyncio
async def test_remove_template_from_property(service):
    property_id = uuid.uuid4()
    await service.create_template(uploaded("Lease", property_ids=[property_id]))

    assert await service.remove_template_from_property(property_id) is True
    assert await service.remove_template_from_property(property_id) is False
    assert await service.resolve_template_for_property(property_id, LANDLORD) is None


@pytest.mark.asyncio
async def test_list_templates_orders_default_first(service):
    property_id = uuid.uuid4()
    older = await service.create_template(builder("Older"))
    default = await service.create_template(builder("Default", is_default=True))
    assigned = await service.create_template(uploaded("Assigned", property_ids=[property_id]))

    listed = await service.list_templates(LANDLORD)
    assert listed[0].id == default.id
    assert {t.id for t in listed} == {older.id, default.id, assigned.id}

    only_assigned = await service.list_templates(LANDLORD, property_id)
    assert [t.id for t in only_assigned] == [assigned.id]
    assert await service.list_templates(LANDLORD, uuid.uuid4()) == []


@pytest.mark.asyncio
async def test_set_default_rejects_other_landlord(service):
    template = await service.create_template(builder("Mine"))
    with pytest.raises(TemplateNotFound):
        await service.set_default_template(template.id, uuid.uuid4())


def test_create_validates_type_payload():
    with pytest.raises(ValueError):
        LeaseTemplateCreate(landlord_id=LANDLORD, name="x", type=TemplateType.BUILDER)
    with pytest.raises(ValueError):
        LeaseTemplateCreate(landlord_id=LANDLORD, name="x", type=TemplateType.UPLOADED_PDF)
    with pytest.raises(ValueError):
        LeaseTemplateCreate(
            landlord_id=LANDLORD, name="x", type=TemplateType.BUILDER,
            builder_config=LeaseBuilderConfig(), pdf_url="https://files.test/x.pdf",
        )


# ============================================================================
# HTTP
# ============================================================================

@pytest.mark.asyncio
async def test_template_endpoints(client):
    landlord = str(LANDLORD)
    property_id = str(uuid.uuid4())

    resp = await client.post("/api/v1/lease-templates", json={
        "landlord_id": landlord,
        "name": "Standard",
        "type": "builder",
        "is_default": True,
        "builder_config": {"default_lease_duration": 12, "pets_allowed": False},
    })
    assert resp.status_code == 201
    default_id = resp.json()["id"]

    resp = await client.post("/api/v1/lease-templates", json={
        "landlord_id": landlord,
        "name": "Downtown lofts",
        "type": "uploaded_pdf",
        "pdf_url": "https://files.test/lofts.pdf",
    })
    assert resp.status_code == 201
    loft_id = resp.json()["id"]

    resp = await client.get(f"/api/v1/properties/{property_id}/lease-template", params={"landlord_id": landlord})
    assert resp.json()["id"] == default_id

    resp = await client.put(f"/api/v1/lease-templates/{loft_id}/properties", json={"property_ids": [property_id]})
    assert resp.status_code == 200
    assert resp.json()["property_ids"] == [property_id]

    resp = await client.get(f"/api/v1/properties/{property_id}/lease-template", params={"landlord_id": landlord})
    assert resp.json()["id"] == loft_id

    resp = await client.get("/api/v1/lease-templates", params={"landlord_id": landlord})
    assert [t["id"] for t in resp.json()][0] == default_id

    resp = await client.delete(f"/api/v1/lease-templates/{loft_id}")
    assert resp.status_code == 204

    resp = await client.get(f"/api/v1/lease-templates/{loft_id}")
    assert resp.status_code == 404
    assert resp.json()["error"] == "template_not_found"


@pytest.mark.asyncio
async def test_invalid_template_payload_rejected(client):
    resp = await client.post("/api/v1/lease-templates", json={
        "landlord_id": str(LANDLORD),
        "name": "Broken",
        "type": "uploaded_pdf",
    })
    assert resp.status_code == 422
