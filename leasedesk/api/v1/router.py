from fastapi import APIRouter
from leasedesk.api.v1.endpoints import scheduling, lease_templates, signing

api_router = APIRouter()
api_router.include_router(scheduling.router, tags=["scheduling"])
api_router.include_router(lease_templates.router, tags=["lease-templates"])
api_router.include_router(signing.router, tags=["signing"])
