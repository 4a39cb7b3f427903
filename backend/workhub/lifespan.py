"""Application lifespan: configure logging and verify the static access
tables on startup, release connections on shutdown.

Usage:
    from workhub.lifespan import lifespan
    app = FastAPI(lifespan=lifespan, ...)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from workhub.auth.finance import check_write_within_view
from workhub.auth.modules import validate_module_rules
from workhub.auth.revocation import close_redis
from workhub.config import settings
from workhub.database import engine

logger = logging.getLogger("workhub.lifespan")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)
    # SQL echo is controlled by settings.debug, not the root level
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    validate_module_rules()
    check_write_within_view()
    logger.info("WorkHub started (environment=%s)", settings.environment)
    try:
        yield
    finally:
        await close_redis()
        await engine.dispose()
        logger.info("WorkHub stopped")
