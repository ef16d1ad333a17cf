# 运费参考数据（等级/距离档/仓库/价格表）的只读查询

from __future__ import annotations
from decimal import Decimal
from typing import List, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from freight_rate.db.model.reference import FreightClass, DistanceClass, Warehouse, PriceTableEntry


def _num(value: float | Decimal) -> Decimal:
    # Numeric 列统一用 Decimal 比较，避免 float 在边界上多出一位
    return value if isinstance(value, Decimal) else Decimal(str(value))


"""
密度落在 [min_density, max_density] 的货运等级（两端都包含）
多条命中属于数据问题，调用方取第一条；这里固定 min_density, id 排序保证结果稳定
"""
def find_freight_classes_by_density(db: Session, density: float | Decimal) -> List[FreightClass]:
    d = _num(density)
    stmt = (
        select(FreightClass)
        .where(FreightClass.min_density <= d, FreightClass.max_density >= d)
        .order_by(FreightClass.min_density.asc(), FreightClass.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def find_distance_classes_by_distance(db: Session, distance_km: float | Decimal) -> List[DistanceClass]:
    d = _num(distance_km)
    stmt = (
        select(DistanceClass)
        .where(DistanceClass.min_distance_km <= d, DistanceClass.max_distance_km >= d)
        .order_by(DistanceClass.min_distance_km.asc(), DistanceClass.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


"""
range 模式：价格表行自带 distance_min_km / distance_max_km
按 price_per_100lbs 升序返回，"取第一条" 即最低价依赖这里的排序
"""
def find_rates_by_distance_range(db: Session, freight_class_id: int, distance_km: float | Decimal) -> List[PriceTableEntry]:
    d = _num(distance_km)
    stmt = (
        select(PriceTableEntry)
        .where(
            PriceTableEntry.freight_class_id == freight_class_id,
            PriceTableEntry.distance_min_km <= d,
            PriceTableEntry.distance_max_km >= d,
        )
        .order_by(PriceTableEntry.price_per_100lbs.asc(), PriceTableEntry.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


# distance_class 模式：按 (等级, 距离档) 精确匹配
def find_rates_by_distance_class(db: Session, freight_class_id: int, distance_class_id: int) -> List[PriceTableEntry]:
    stmt = (
        select(PriceTableEntry)
        .where(
            PriceTableEntry.freight_class_id == freight_class_id,
            PriceTableEntry.distance_class_id == distance_class_id,
        )
        .order_by(PriceTableEntry.price_per_100lbs.asc(), PriceTableEntry.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def get_warehouse(db: Session, warehouse_id: Union[int, str]) -> Optional[Warehouse]:
    # 前端传过来的是字符串 id；不是数字就当作不存在
    try:
        pk = int(warehouse_id)
    except (TypeError, ValueError):
        return None
    return db.get(Warehouse, pk)


def list_warehouses(db: Session, limit: int = 1000) -> List[Warehouse]:
    stmt = select(Warehouse).order_by(Warehouse.id.asc()).limit(limit)
    return list(db.execute(stmt).scalars().all())



# ---------- 面向计算流水线的仓储对象（构造时注入 Session） ----------

class SqlFreightClassRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_density(self, density: float) -> List[FreightClass]:
        return find_freight_classes_by_density(self.db, density)


class SqlDistanceClassRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_distance(self, distance_km: float) -> List[DistanceClass]:
        return find_distance_classes_by_distance(self.db, distance_km)


class SqlRateTableRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_distance_range(self, freight_class_id: int, distance_km: float) -> List[PriceTableEntry]:
        return find_rates_by_distance_range(self.db, freight_class_id, distance_km)

    def find_by_distance_class(self, freight_class_id: int, distance_class_id: int) -> List[PriceTableEntry]:
        return find_rates_by_distance_class(self.db, freight_class_id, distance_class_id)


class SqlWarehouseRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_one(self, warehouse_id: Union[int, str]) -> Optional[Warehouse]:
        return get_warehouse(self.db, warehouse_id)

    def find_all(self, limit: int = 1000) -> List[Warehouse]:
        return list_warehouses(self.db, limit=limit)
