from .core.logging import init_logging
init_logging()

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .api.deps import get_keycloak_client
from .api.v1 import api_router as api_v1_router
from .core.config import settings
from .core.exceptions import AccountServiceError
from .db import Base, engine

logger = logging.getLogger(__name__)

# モデルからテーブル作成（マイグレーションは別管理）
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if get_keycloak_client.cache_info().currsize:
        get_keycloak_client().close()


app = FastAPI(
    title="Account Service API",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(AccountServiceError)
async def account_service_error_handler(request: Request, exc: AccountServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": "Invalid request"})


# アップロードされたプロフィール画像を静的ファイルとして公開
os.makedirs(settings.MEDIA_ROOT, exist_ok=True)
app.mount(
    settings.MEDIA_URL,
    StaticFiles(directory=settings.MEDIA_ROOT),
    name="media",
)

app.include_router(api_v1_router, prefix="/api")


@app.get("/")
def read_root():
    return {"message": "Account Service API is running"}
