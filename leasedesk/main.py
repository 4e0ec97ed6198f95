import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from leasedesk.api.v1.router import api_router
from leasedesk.core.exceptions import LeaseDeskError

logger = logging.getLogger(__name__)

app = FastAPI(
    title="LeaseDesk API",
    description="Contractor scheduling and lease signing for property managers",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(LeaseDeskError)
async def leasedesk_error_handler(request: Request, exc: LeaseDeskError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s %s", request.method, request.url.path, exc.code, exc.context)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=LeaseDeskError().to_dict())


@app.get("/health")
async def health():
    return {"status": "ok", "service": "leasedesk-api", "version": "0.1.0"}
