import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from app.api.routes import api_router
from app.core.config import get_settings
from app.core.exceptions import StockroomError
from app.core.logging_config import LogContext, configure_logging, get_logger
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.models.stock_transaction import ImmutableLedgerError
from app.services.seed import seed_initial_data


settings = get_settings()
configure_logging(level=settings.log_level, json_output=settings.log_json)
logger = get_logger("app")


def init_database() -> None:
    retries = 20
    while retries > 0:
        try:
            Base.metadata.create_all(bind=engine)
            break
        except OperationalError:
            retries -= 1
            if retries == 0:
                raise
            logger.warning("database_unavailable", extra={"retries_left": retries})
            time.sleep(1)

    db = SessionLocal()
    try:
        seed_initial_data(db)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_database()
    logger.info("startup_complete", extra={"environment": settings.environment})
    yield


app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def bind_request_context(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    with LogContext.bind(request_id=request_id):
        response = await call_next(request)
    response.headers["x-request-id"] = request_id
    return response


@app.exception_handler(StockroomError)
async def stockroom_error_handler(request: Request, exc: StockroomError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(ImmutableLedgerError)
async def immutable_ledger_handler(request: Request, exc: ImmutableLedgerError) -> JSONResponse:
    logger.error("ledger_write_blocked", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(status_code=500, content={"detail": str(exc), "code": "IMMUTABLE_LEDGER"})


@app.get("/")
def root() -> dict:
    return {
        "name": f"{settings.app_name} API",
        "version": "0.1.0",
        "docs": "/docs",
    }


app.include_router(api_router, prefix=settings.api_v1_prefix)
