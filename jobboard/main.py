# jobboard/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from jobboard.api.v1.companies import router as company_router
from jobboard.api.v1.jobs import router as job_router
from jobboard.api.v1.users import router as user_router
from jobboard.core.config import Settings, get_settings
from jobboard.core.errors import register_exception_handlers
from jobboard.core.logging_config import configure_logging
from jobboard.core.security import PasswordHasher
from jobboard.db.mongo import create_mongo_client, ensure_indexes, get_database
from jobboard.services.mailer import Mailer, build_mailer
from jobboard.services.tokens import TokenService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, db=None, mailer: Optional[Mailer] = None) -> FastAPI:
    """Compose the application.

    ``settings`` defaults to the environment-backed instance. When ``db`` is
    given the app uses it as-is; otherwise a Motor client is opened on
    startup and closed on shutdown.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = None
        if app.state.db is None:
            client = create_mongo_client(settings)
            app.state.db = get_database(client, settings)
            await ensure_indexes(app.state.db)
            logger.info("Connected to MongoDB database %s", settings.MONGODB_DB)
        yield
        if client is not None:
            client.close()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db
    app.state.tokens = TokenService(settings)
    app.state.hasher = PasswordHasher(settings.PASSWORD_HASH_ROUNDS)
    app.state.mailer = mailer or build_mailer(settings)

    register_exception_handlers(app)

    app.include_router(user_router)
    app.include_router(company_router)
    app.include_router(job_router)

    @app.get("/", tags=["Root"])
    async def root():
        return {"message": "Welcome to 'Job search app'"}

    return app


app = create_app()
