from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.errors import DomainError
from app.core.logging import configure_logging
from app.db.mongo import close_mongo_connection, connect_to_mongo, mongodb
from app.db.session import build_memory_stores, build_mongo_stores
from app.services.container import build_services
from app.services.notification_service import LoggingNotifier


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    if settings.STORE_BACKEND == "memory":
        stores = build_memory_stores()
    else:
        await connect_to_mongo()
        stores = build_mongo_stores(mongodb.db)

    app.state.services = build_services(stores, LoggingNotifier(), settings)
    yield

    await app.state.services.dispatcher.drain()
    if settings.STORE_BACKEND != "memory":
        await close_mongo_connection()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}"}

app.include_router(api_router, prefix=settings.API_V1_STR)
