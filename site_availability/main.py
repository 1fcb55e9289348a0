import logging

from fastapi import FastAPI

from .config import Settings
from .routes import router as api_router


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    _setup_logging(settings.log_level)

    app = FastAPI(title="Site Availability")
    app.include_router(api_router)
    return app


app = create_app()
