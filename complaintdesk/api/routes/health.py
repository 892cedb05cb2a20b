from fastapi import APIRouter

from complaintdesk.core.config import settings

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok", "env": settings.env}
