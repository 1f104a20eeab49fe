import uvicorn
from fastapi import FastAPI

from app.api.routes.ambassadors import router as ambassadors_router
from app.api.routes.health import router as health_router
from app.api.routes.internal_admin import router as internal_admin_router
from app.api.routes.payments import router as payments_router
from app.api.routes.rewards import router as rewards_router
from app.api.routes.store import router as store_router
from app.core.config import get_settings
from app.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Community Rewards API",
        version="0.1.0",
        docs_url="/docs" if settings.app_env != "prod" else None,
        redoc_url="/redoc" if settings.app_env != "prod" else None,
        openapi_url="/openapi.json" if settings.app_env != "prod" else None,
    )
    app.include_router(health_router)
    app.include_router(rewards_router)
    app.include_router(store_router)
    app.include_router(ambassadors_router)
    app.include_router(payments_router)
    app.include_router(internal_admin_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
