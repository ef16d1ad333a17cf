# 聚合导入所有模型，供 Alembic 发现

from .reference import (
    FreightClass,
    DistanceClass,
    Warehouse,
    PriceTableEntry,
)

from .freight_rate import FreightRateRecord

__all__ = [
    # reference data
    "FreightClass", "DistanceClass", "Warehouse", "PriceTableEntry",
    # history
    "FreightRateRecord",
]
