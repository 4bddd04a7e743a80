import asyncio
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from otpvault import __version__
from otpvault.api.deps import get_blob_store
from otpvault.api.routes.auth import router as auth_router
from otpvault.api.routes.files import router as files_router
from otpvault.core.config import settings
from otpvault.core.errors import VaultError
from otpvault.core.logging_config import logger, setup_logging
from otpvault.crypto.selftest import run_selftest
from otpvault.db.init_db import init_db
from otpvault.db.session import SessionLocal
from otpvault.services.maintenance import run_cleanup


app = FastAPI(title="OTP Vault", version=__version__)

app.include_router(auth_router)
app.include_router(files_router)


def _cleanup_once() -> dict:
    db = SessionLocal()
    try:
        return run_cleanup(db, get_blob_store())
    finally:
        db.close()


async def periodic_cleanup(interval: int) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            # Run cleanup in a thread to avoid blocking event loop
            await asyncio.to_thread(_cleanup_once)
        except Exception as e:
            logger.error(f"Cleanup task failed: {e}")


@app.on_event("startup")
async def _startup() -> None:
    setup_logging(settings.LOG_LEVEL)
    init_db()
    run_selftest()
    await asyncio.to_thread(_cleanup_once)
    if settings.CLEANUP_INTERVAL_SECONDS > 0:
        app.state.cleanup_task = asyncio.create_task(periodic_cleanup(settings.CLEANUP_INTERVAL_SECONDS))
    logger.info(f"{settings.app_name} started env={settings.app_env}")


@app.on_event("shutdown")
async def _shutdown() -> None:
    task = getattr(app.state, "cleanup_task", None)
    if task:
        task.cancel()


@app.exception_handler(VaultError)
async def vault_exception_handler(request: Request, exc: VaultError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.detail} at {request.method} {request.url.path}")
    else:
        logger.warning(f"{type(exc).__name__}: {exc.detail} at {request.method} {request.url.path}")
    # 5xx details are fixed strings; internal messages stay in the log
    detail = exc.public_detail if exc.status_code >= 500 else exc.detail
    return JSONResponse(status_code=exc.status_code, content={"detail": detail})


@app.exception_handler(Exception)
async def internal_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception at {request.method} {request.url.path}")
    logger.error("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error"},
    )


@app.get("/health")
def health():
    return {"status": "ok"}
