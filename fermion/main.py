from fastapi import FastAPI

from .api import router as api_router
from .config import Config, configure_logging
from .database import init_db
from .middleware import global_exception_handler, log_requests


def create_app() -> FastAPI:
    Config.validate()
    configure_logging()
    # Ensure tables exist at startup (safe for SQLite)
    init_db()

    application = FastAPI(title="Fermion Extensions API", version="0.1.0")
    application.middleware("http")(log_requests)
    application.add_exception_handler(Exception, global_exception_handler)
    application.include_router(api_router)
    return application


app = create_app()
