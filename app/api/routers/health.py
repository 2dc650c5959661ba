from fastapi import APIRouter
from ...db import db_health
from ...redis_client import redis_health

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health():
    db_ok, redis_ok = await db_health(), await redis_health()
    healthy = db_ok and redis_ok is not False
    deps = {"postgres": db_ok}
    if redis_ok is not None:
        deps["redis"] = redis_ok
    return {"status": "ok" if healthy else "degraded", "dependencies": deps}

@router.get("/readiness")
async def readiness():
    db_ok, redis_ok = await db_health(), await redis_health()
    return {"ready": bool(db_ok and redis_ok is not False), "postgres": db_ok, "redis": redis_ok}

@router.get("/liveness")
async def liveness():
    return {"alive": True}
