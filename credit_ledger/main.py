# credit_ledger/main.py

import logging
from contextlib import asynccontextmanager
from decimal import Decimal

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from credit_ledger.api.clients import router as clients_router
from credit_ledger.api.layaways import router as layaways_router
from credit_ledger.api.payments import router as payments_router
from credit_ledger.api.sales import router as sales_router
from credit_ledger.config import (
    configure_logging,
    cors_origins,
    database_url,
    server_host,
    server_port,
)
from credit_ledger.db.engine import dispose_engines, get_engine
from credit_ledger.db.schema import create_schema
from credit_ledger.errors import LedgerError, StorageFailure

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    create_schema(get_engine())
    logger.info("Connected to database %s", database_url())
    yield
    dispose_engines()
    logger.info("Closed the database connection.")


app = FastAPI(
    title="Credit Sales & Layaway Ledger API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    if isinstance(exc, StorageFailure):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(
            {"code": exc.code, "detail": exc.message, "fields": exc.details},
            custom_encoder={Decimal: str},
        ),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(
            {
                "code": "validation_error",
                "detail": "Request validation failed.",
                "fields": {"errors": exc.errors()},
            }
        ),
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(clients_router)
app.include_router(sales_router)
app.include_router(layaways_router)
app.include_router(payments_router)


def run() -> None:
    """Console entrypoint: serve the API with uvicorn."""
    configure_logging()
    uvicorn.run("credit_ledger.main:app", host=server_host(), port=server_port())


if __name__ == "__main__":
    run()
