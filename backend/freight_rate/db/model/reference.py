from __future__ import annotations
from decimal import Decimal
from typing import Optional
from sqlalchemy import String, Integer, Numeric, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from freight_rate.db.base import Base


'''
运费参考数据（外部维护，流水线只读）：
    - freight_classes: 密度区间 -> 货运等级（NMFC 风格）
    - distance_classes: 距离区间 -> 距离档（distance_class 模式使用）
    - warehouses: 候选发货仓
    - price_table_entries: 每 100 lbs 基础价
区间两端都是闭区间，且各行区间不应重叠（数据约定，不在库里强制）
'''


# 货运等级表
class FreightClass(Base):
    __tablename__ = "freight_classes"

    id:            Mapped[int]     = mapped_column(Integer, primary_key=True, autoincrement=True)
    freight_class: Mapped[str]     = mapped_column(String(16), nullable=False)      # 等级编码，如 "50" / "77.5"
    min_density:   Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)  # lbs / in³，含边界
    max_density:   Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)  # lbs / in³，含边界

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_freight_classes_density_range", "min_density", "max_density"),
    )


# 距离档表
class DistanceClass(Base):
    __tablename__ = "distance_classes"

    id:              Mapped[int]     = mapped_column(Integer, primary_key=True, autoincrement=True)
    code:            Mapped[str]     = mapped_column(String(32), nullable=False)
    min_distance_km: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    max_distance_km: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# 候选发货仓
class Warehouse(Base):
    __tablename__ = "warehouses"

    id:      Mapped[int]           = mapped_column(Integer, primary_key=True, autoincrement=True)
    name:    Mapped[str]           = mapped_column(String(128), nullable=False)
    zipcode: Mapped[Optional[str]] = mapped_column(String(16))    # 没有邮编的仓不参与自动选仓

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# 价格表：range 模式用 distance_min_km/distance_max_km，distance_class 模式用 distance_class_id
class PriceTableEntry(Base):
    __tablename__ = "price_table_entries"

    id:                Mapped[int]               = mapped_column(Integer, primary_key=True, autoincrement=True)
    freight_class_id:  Mapped[int]               = mapped_column(ForeignKey("freight_classes.id", ondelete="CASCADE"), nullable=False, index=True)
    distance_class_id: Mapped[Optional[int]]     = mapped_column(ForeignKey("distance_classes.id", ondelete="CASCADE"), index=True)
    distance_min_km:   Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    distance_max_km:   Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    price_per_100lbs:  Mapped[Decimal]           = mapped_column(Numeric(12, 2), nullable=False)   # 货币单位（元/美元），不是分

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
