import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voice_audit.api import router
from voice_audit.core.config import AUDIT_WEBHOOK_URL, QA_MODE
from voice_audit.engine import AuditEngine, build_engine

logging.basicConfig(
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger("voice_audit.main")


def _get_allowed_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if not raw:
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    return [item.strip() for item in raw.split(",") if item.strip()]


def create_app(engine: AuditEngine | None = None) -> FastAPI:
    app = FastAPI(title="AMAI Voice Audit")
    allowed_origins = _get_allowed_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=False,
    )
    app.state.engine = engine or build_engine()
    app.include_router(router)

    @app.on_event("startup")
    async def startup_banner():
        if QA_MODE:
            logger.info("[SYSTEM] QA_MODE ENABLED")
        if not AUDIT_WEBHOOK_URL:
            logger.warning("[SYSTEM] AUDIT_WEBHOOK_URL not set; submissions will fail delivery")
        logger.info("[SYSTEM] CORS allow_origins=%s", allowed_origins)

    @app.on_event("shutdown")
    async def shutdown_handler():
        await app.state.engine.orchestrator.shutdown()
        logger.info("[SYSTEM] shutdown complete")

    return app


app = create_app()
