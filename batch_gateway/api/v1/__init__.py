from fastapi import APIRouter

from batch_gateway.api.v1 import batch

router = APIRouter()

router.include_router(batch.router, prefix="/batch", tags=["Batch"])
