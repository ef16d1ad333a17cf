from __future__ import annotations
from decimal import Decimal
from typing import Optional, Any
from sqlalchemy import String, Integer, Numeric, DateTime, JSON, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from freight_rate.db.base import Base


# Postgres 用 JSONB，测试用的 SQLite 退回通用 JSON
_JSON = JSON().with_variant(JSONB(), "postgresql")


# 运费计算记录表（history 接口读取）
class FreightRateRecord(Base):
    __tablename__ = "freight_rate_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    origin_postal_code:      Mapped[Optional[str]] = mapped_column(String(16))
    destination_postal_code: Mapped[str]           = mapped_column(String(16), nullable=False)
    selected_warehouse_id:   Mapped[Optional[str]] = mapped_column(String(32))

    total_weight_g:    Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)   # 原始单位：克
    total_volume_mm3:  Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False)   # 原始单位：立方毫米
    density:           Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    freight_class:     Mapped[str]     = mapped_column(String(16), nullable=False)
    distance_km:       Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    final_price_cents: Mapped[int]     = mapped_column(Integer, nullable=False)

    items:             Mapped[list[dict[str, Any]]] = mapped_column(_JSON, nullable=False)
    applicable_rates:  Mapped[list[dict[str, Any]]] = mapped_column(_JSON, nullable=False)
    status:            Mapped[str] = mapped_column(String(16), nullable=False, default="calculated")

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
