from fastapi import APIRouter

from .routes_health import router as health_router
from .freight_rate import router as freight_rate_router
from .freight_calc import router as freight_calc_router


# 报价接口与旧系统一致，不需要登录
api_v1 = APIRouter()
api_v1.include_router(health_router)
api_v1.include_router(freight_rate_router)
api_v1.include_router(freight_calc_router)
