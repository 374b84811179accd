from fastapi import APIRouter, Request

from app.db.mongodb import db

router = APIRouter()


@router.get("/", summary="Access gate readiness")
async def health(request: Request):
    pipeline_ready = getattr(request.app.state, "access_pipeline", None) is not None
    return {
        "ok": True,
        "registry_connected": db.database is not None,
        "pipeline_ready": pipeline_ready,
    }
