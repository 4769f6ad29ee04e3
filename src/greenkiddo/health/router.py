"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends

from greenkiddo.config import get_settings
from greenkiddo.dependencies import get_store
from greenkiddo.storage.base import RecordStore

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(store: RecordStore = Depends(get_store)) -> dict[str, object]:  # noqa: B008
    """Readiness probe: checks the record store backend."""
    checks: dict[str, object] = {}
    try:
        checks["store"] = "ok" if await store.ping() else "error: ping failed"
    except Exception as exc:
        checks["store"] = f"error: {exc}"

    all_ok = all(v == "ok" for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
        "store_backend": settings.store_backend,
    }
