# 健康检查

from fastapi import APIRouter

router = APIRouter(tags=["health"])

@router.get("/health")
def health():
    # 只做进程存活探测，不连 DB
    return {"status": "ok"}
