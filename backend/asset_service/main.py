import logging

import uvicorn
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from asset_service.core.config import settings
from asset_service.routers import (
    group_router,
    invitation_router,
    permission_router,
    stock_router,
    user_router,
)
from asset_service.schemas.common_schemas import error_response

# Глобальная настройка логирования
logging.basicConfig(
    level=settings.LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Инициализация приложения
app = FastAPI(
    title="Asset Service API",
    description="Учёт активов и совместное управление ими в группах",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Под-приложение с префиксом /api
api_app = FastAPI(
    title="Asset Service API",
    description="Учёт активов и совместное управление ими в группах",
    version="0.1.0",
)


@api_app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@api_app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content=error_response(422, "Invalid request", jsonable_encoder(exc.errors())),
    )


api_app.include_router(group_router.router)
api_app.include_router(invitation_router.router)
api_app.include_router(stock_router.router)
api_app.include_router(permission_router.router)
api_app.include_router(user_router.router)

# Подключаем api_app к основному app с префиксом /api
app.mount("/api", api_app)


if __name__ == "__main__":
    uvicorn.run("asset_service.main:app", host="0.0.0.0", port=8000, reload=True)
