import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nexus_ops import __version__
from nexus_ops.api.v1.router import api_router
from nexus_ops.core.config import get_settings
from nexus_ops.core.telemetry import instrument_fastapi, setup_telemetry

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """애플리케이션 라이프사이클"""
    # 시작 시: Telemetry 초기화
    setup_telemetry("nexus-backend", __version__)
    logging.getLogger(__name__).info(
        f"Backends: store={settings.store_backend}, scheduler={settings.scheduler_backend}"
    )
    yield
    # 종료 시
    if settings.store_backend == "sql":
        from nexus_ops.core.database import dispose_engine

        await dispose_engine()


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="Nexus Ops - Cross-module Command Center API",
    lifespan=lifespan,
)

# OpenTelemetry FastAPI 계측
instrument_fastapi(app)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API 라우터 등록
app.include_router(api_router)


@app.get("/health")
async def health_check() -> dict:
    """헬스 체크"""
    return {"status": "ok"}
