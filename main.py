# main.py
"""
FastAPI entry point for the NutriPlan nutrition and meal-planning service.
Startup storage health check, request-id middleware with request logging,
and clean shutdown of the storage backend.
"""
import asyncio
import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nutriplan.api.dashboard import router as dashboard_router
from nutriplan.api.deps import get_container
from nutriplan.api.food_log import router as food_log_router
from nutriplan.api.meal_plans import router as meal_plans_router
from nutriplan.api.profile import router as profile_router
from nutriplan.config.settings import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("uvicorn.error")

HEALTH_CHECK_TIMEOUT = float(os.getenv("HEALTH_CHECK_TIMEOUT", "5.0"))


async def _run_sync_in_executor(fn, *args, timeout: float = HEALTH_CHECK_TIMEOUT):
    """
    Run a blocking function in the default threadpool with a timeout.
    Returns the function's result or raises TimeoutError.
    """
    loop = asyncio.get_running_loop()
    return await asyncio.wait_for(loop.run_in_executor(None, fn, *args), timeout=timeout)


async def _storage_healthy(timeout: float = HEALTH_CHECK_TIMEOUT) -> bool:
    try:
        return bool(await _run_sync_in_executor(get_container().kv.health_check, timeout=timeout))
    except asyncio.TimeoutError:
        logger.warning("⚠️ storage health_check timed out after %.1fs", timeout)
        return False
    except Exception as exc:
        logger.exception("❌ storage health_check raised: %s", exc)
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting NutriPlan...")
    app.state.storage_healthy = await _storage_healthy()
    logger.info(
        "Storage health: %s (%s)", app.state.storage_healthy, get_container().kv.diagnostics()
    )
    try:
        yield
    finally:
        logger.info("Shutting down NutriPlan...")
        try:
            get_container().kv.close()
        except Exception:
            logger.exception("Error while closing storage during shutdown")


app = FastAPI(
    title="NutriPlan",
    description="Nutrition tracking and AI-assisted weekly meal planning",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id_and_log(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    request.state.request_id = request_id
    logger.info("→ Incoming request %s %s id=%s", request.method, request.url.path, request_id)
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        logger.exception("Handler error for request id=%s: %s", request_id, exc)
        return JSONResponse(
            {"ok": False, "status": 500, "message": "Internal server error", "diagnostics": {"error": str(exc)}},
            status_code=500,
        )
    logger.info("← Completed request id=%s status=%s", request_id, getattr(response, "status_code", None))
    response.headers["X-Request-Id"] = request_id
    return response


app.include_router(profile_router, prefix="/api/users", tags=["profile"])
app.include_router(food_log_router, prefix="/api/users", tags=["food-log"])
app.include_router(meal_plans_router, prefix="/api/users", tags=["meal-plans"])
app.include_router(dashboard_router, prefix="/api/users", tags=["dashboard"])


@app.get("/")
async def root() -> Dict[str, str]:
    return {"message": "NutriPlan is running!", "status": "healthy"}


@app.get("/health")
async def health_check():
    """Liveness: process is up; reports degraded when storage is unreachable."""
    ok = await _storage_healthy()
    return JSONResponse(
        {
            "status": "healthy" if ok else "degraded",
            "service": "nutriplan",
            "storage": "connected" if ok else "disconnected",
        },
        status_code=200 if ok else 503,
    )


@app.get("/ready")
async def readiness_check():
    """Readiness from the startup check; runs one bounded check if startup never ran."""
    state: Optional[bool] = getattr(app.state, "storage_healthy", None)
    if state is None:
        state = await _storage_healthy(timeout=2.0)
    if state:
        return JSONResponse({"ready": True, "storage": "connected"}, status_code=200)
    return JSONResponse({"ready": False, "storage": "disconnected"}, status_code=503)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", 8000)), reload=True)
