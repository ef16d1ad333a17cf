from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from freight_rate.core.config import settings
from freight_rate.core.logging import configure_logging
from freight_rate.api.v1 import api_v1
from freight_rate.db.session import dispose_engine


logger = configure_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    logger.info("starting %s env=%s distance_strategy=%s rate_table_mode=%s",
                settings.PROJECT_NAME, settings.ENVIRONMENT, settings.DISTANCE_STRATEGY, settings.RATE_TABLE_MODE)
    yield
    dispose_engine()


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# 从环境读取前端白名单（逗号分隔）。本地可配：
# BACKEND_CORS_ORIGINS=http://localhost:5173,https://shop.local.test:5173
origins = [o.strip() for o in settings.BACKEND_CORS_ORIGINS.split(",") if o.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# Origin 校验（仅对 POST）：没有 Origin（curl / 服务端调用）放行，有但不在白名单里才拒绝
TRUSTED = set(origins)

@app.middleware("http")
async def origin_check(request: Request, call_next):
    if request.method == "POST":
        origin = request.headers.get("origin")
        if origin and origin not in TRUSTED:
            return JSONResponse(status_code=403, content={"detail": "Bad Origin"})
    return await call_next(request)


app.include_router(api_v1, prefix=settings.API_PREFIX)

# 根路径健康探活（方便测试或 Docker 健康检查）
@app.get("/")
def root():
    return {
        "app": settings.PROJECT_NAME,
        "env": settings.ENVIRONMENT,
        "distance_strategy": settings.DISTANCE_STRATEGY,
        "ok": True,
    }
