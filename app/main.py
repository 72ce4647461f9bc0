from __future__ import annotations

import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

if __name__ == "__main__" and __package__ is None:
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.db import Base, engine
from app.errors import AllocationConsistencyError
from app.logging_setup import configure_logging
from app.procedures import install_procedures
from app.routers.calendar import router as calendar_router
from app.routers.catalog import router as catalog_router
from app.routers.health import router as health_router
from app.routers.inventory import router as inventory_router
from app.routers.leave import router as leave_router
from app.routers.ledger import router as ledger_router
from app.routers.orders import router as orders_router
from app.routers.tax import router as tax_router

logger = logging.getLogger(__name__)


def _run_startup_tasks() -> None:
    """Create tables and, on PostgreSQL, the atomic issuance function."""
    Base.metadata.create_all(bind=engine)

    try:
        with engine.begin() as conn:
            install_procedures(conn)
    except SQLAlchemyError:
        # Issuance still works through the client-side split.
        logger.exception("could not install stored procedures")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging()
    _run_startup_tasks()
    yield


app = FastAPI(title="Back office", lifespan=lifespan)


@app.exception_handler(AllocationConsistencyError)
async def allocation_consistency_handler(request: Request, exc: AllocationConsistencyError) -> JSONResponse:
    logger.error("allocation consistency fault on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "internal stock allocation error"})


app.include_router(health_router)
app.include_router(catalog_router)
app.include_router(inventory_router)
app.include_router(orders_router)
app.include_router(ledger_router)
app.include_router(tax_router)
app.include_router(leave_router)
app.include_router(calendar_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("APP_PORT", "8000")),
        reload=os.getenv("RELOAD", "1") == "1",
    )
