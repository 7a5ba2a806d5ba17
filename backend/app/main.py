import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logging import configure_logging
import app.models  # noqa: F401  # force model registration

from app.api.v1.interactions import router as interactions_router
from app.api.v1.admin import router as admin_router

logger = logging.getLogger(__name__)


async def bootstrap_hq() -> None:
    from app.core.sale_recorder import ensure_hq_profile
    from app.db.session import AsyncSessionLocal

    async with AsyncSessionLocal() as session:
        hq = await ensure_hq_profile(session, created_for="startup")
        await session.commit()
        logger.info("HQ profile bootstrap complete (%s)", hq.id)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting cruise affiliate API (%s)", settings.ENVIRONMENT)

    if settings.BOOTSTRAP_HQ_ON_STARTUP:
        await bootstrap_hq()

    yield

    logger.info("Shutting down...")


def create_application() -> FastAPI:
    app = FastAPI(title="Cruise Affiliate API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            # Local development (partner portal)
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            # Production domains
            "https://cruiseguide.kr",
            "https://partner.cruiseguide.kr",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {"status": "ok", "service": "cruise-affiliate"}

    # Routers
    app.include_router(interactions_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")

    return app


app = create_application()
