import logging
import sqlite3
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import get_settings
from db_models import IdentifyRequest, FinalResponse
from db_setup import init_db
from errors import ReconciliationError
from logging_config import setup_logging
from reconciler import reconcile

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)
    init_db()
    logger.info("Contact reconciliation API started, database: %s", settings.DATABASE_PATH)
    yield


app = FastAPI(
    title="Contact Reconciliation API",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(ReconciliationError)
async def reconciliation_error_handler(request: Request, exc: ReconciliationError):
    if exc.status_code >= 500:
        logger.error("Reconciliation failed: %s", exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(sqlite3.Error)
async def database_error_handler(request: Request, exc: sqlite3.Error):
    logger.error("Database error during %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Database error"})


@app.get("/")
async def root():
    return {"message": "Contact reconciliation API is up"}


@app.post("/identify", response_model=FinalResponse)
def identify(request: IdentifyRequest):
    # sync handler: sqlite calls block, so FastAPI runs this in its threadpool
    view = reconcile(request.email, request.phoneNumber)
    return FinalResponse(contact=view)


def run():
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
