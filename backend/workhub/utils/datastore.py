"""Translate data-store failures into DependencyFailure.

Access decisions must stay distinguishable from infrastructure faults: a
resolver that cannot reach the database raises DependencyFailure, never
AccessDeniedError, and never silently answers "no access".

Usage:
    async with data_store("load project"):
        result = await db.execute(stmt)
"""

import logging
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError

from workhub.errors import DependencyFailure

logger = logging.getLogger(__name__)


@asynccontextmanager
async def data_store(operation: str):
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(f"Data store failure during {operation}: {exc}")
        raise DependencyFailure(f"Data store unavailable ({operation})") from exc
