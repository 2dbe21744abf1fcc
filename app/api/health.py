from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_coordinator
from app.core.errors import StorageError
from app.utils.time_utils import utc_now
from app.websockets.connection_manager import ChatCoordinator

router = APIRouter(tags=["Health"])


async def check_database_health(coordinator: ChatCoordinator) -> bool:
    try:
        return await coordinator.persistence.ping()
    except StorageError:
        return False


@router.get("/health")
async def health_check(coordinator: ChatCoordinator = Depends(get_coordinator)):
    """Application health check endpoint"""
    db_ok = await check_database_health(coordinator)

    return {
        "status": "healthy" if db_ok else "unhealthy",
        "timestamp": utc_now(),
        "database": "connected" if db_ok else "disconnected",
        "realtime": coordinator.stats(),
        "service": "realtime-chat"
    }


@router.get("/health/ready")
async def readiness_check(coordinator: ChatCoordinator = Depends(get_coordinator)):
    """Kubernetes readiness probe endpoint"""
    if not await check_database_health(coordinator):
        raise HTTPException(
            status_code=503,
            detail="Service not ready - database connection failed"
        )

    return {"status": "ready"}


@router.get("/health/live")
async def liveness_check():
    """Kubernetes liveness probe endpoint"""
    return {"status": "alive", "timestamp": utc_now()}
