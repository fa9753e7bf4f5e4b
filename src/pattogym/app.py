import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import settings
from .database import init_db
from .errors import (
    AuthError,
    BrainGymError,
    EmptyResultError,
    FetchError,
    InvalidTransition,
    PersistenceError,
)
from .log_handler import SQLiteHandler
from .router import router
from .services import GymServices

ERROR_STATUS = {
    FetchError: 503,
    EmptyResultError: 404,
    AuthError: 401,
    InvalidTransition: 409,
    PersistenceError: 500,
}


# --- Logging Setup ---
def setup_logging():
    logger = logging.getLogger("pattogym")
    logger.setLevel(logging.INFO)
    if logger.handlers:
        return

    if not os.path.exists(settings.LOG_DIR):
        os.makedirs(settings.LOG_DIR, exist_ok=True)
    log_path = os.path.join(settings.LOG_DIR, settings.LOG_FILE)
    file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(file_handler)
    logger.addHandler(SQLiteHandler())
    # Also configure root logger to see logs from other libraries
    logging.basicConfig(level=logging.INFO)


# --- Lifecycle ---
def make_lifespan(services: Optional[GymServices]):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db()
        app.state.services = services or GymServices.from_settings()
        yield
        app.state.services.close()

    return lifespan


async def handle_gym_error(request: Request, exc: BrainGymError):
    status_code = 400
    for error_type, code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    return JSONResponse({"error": str(exc)}, status_code=status_code)


# --- App Factory ---
def create_app(services: Optional[GymServices] = None) -> FastAPI:
    setup_logging()
    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        lifespan=make_lifespan(services),
        root_path=settings.ROOT_PATH,
    )

    app.mount("/static", StaticFiles(directory=settings.STATIC_DIR), name="static")
    app.add_exception_handler(BrainGymError, handle_gym_error)

    app.include_router(router)

    return app
