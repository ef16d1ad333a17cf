# 导出入口：session/engine + 全部模型（Alembic 与 seed 脚本依赖 Base.metadata 完整）
# 建表请使用 `alembic upgrade head`

from .session import engine, SessionLocal, get_db, dispose_engine
from freight_rate.db.model import *  # 确保把所有模型加载进 Base.metadata
from .base import Base
