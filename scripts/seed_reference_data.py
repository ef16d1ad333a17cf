"""
写入一套最小的运费参考数据（货运等级 / 距离档 / 仓库 / 价格表），本地联调用。
在容器里运行一次：python -m scripts.seed_reference_data
（确保 PYTHONPATH 包含 backend 目录；表已存在的行会跳过，不会重复插入）
"""

from decimal import Decimal

from sqlalchemy import select

from freight_rate.core.logging import configure_logging
from freight_rate.db.session import session_scope
from freight_rate.db.model import DistanceClass, FreightClass, PriceTableEntry, Warehouse


logger = configure_logging()


# (等级, 最小密度, 最大密度)  lbs / in³
FREIGHT_CLASSES = [
    ("500", "0.00", "0.99"),
    ("300", "1.00", "1.99"),
    ("150", "2.00", "5.99"),
    ("100", "6.00", "9.99"),
    ("70",  "10.00", "14.99"),
    ("50",  "15.00", "9999.99"),
]

# (编码, 最小公里, 最大公里)；边界公里数同时落在相邻两档，按 min 升序取第一档
DISTANCE_CLASSES = [
    ("LOCAL",    "0.00",    "250.00"),
    ("REGIONAL", "250.00",  "1000.00"),
    ("NATIONAL", "1000.00", "5000.00"),
]

WAREHOUSES = [
    ("Toronto DC", "M5V 2T6"),
    ("Montreal DC", "H3B 4W8"),
    ("Vancouver DC", "V6B 1A1"),
]

# 每 100 lbs 基础价（货币单位），按等级递增、按距离档递增
BASE_PRICE = Decimal("25.00")
CLASS_STEP = Decimal("5.00")
DISTANCE_STEP = Decimal("10.00")


def main() -> None:
    with session_scope() as db:
        if db.execute(select(FreightClass.id).limit(1)).first():
            logger.info("reference data already present, skip")
            return

        fcs = [FreightClass(freight_class=c, min_density=Decimal(lo), max_density=Decimal(hi)) for c, lo, hi in FREIGHT_CLASSES]
        dcs = [DistanceClass(code=c, min_distance_km=Decimal(lo), max_distance_km=Decimal(hi)) for c, lo, hi in DISTANCE_CLASSES]
        db.add_all(fcs + dcs)
        db.add_all([Warehouse(name=n, zipcode=z) for n, z in WAREHOUSES])
        db.flush()

        # 两种价格表模式都写：同一行既有距离档也有公里区间
        rows = []
        for i, fc in enumerate(reversed(fcs)):
            for j, dc in enumerate(dcs):
                rows.append(PriceTableEntry(
                    freight_class_id=fc.id,
                    distance_class_id=dc.id,
                    distance_min_km=dc.min_distance_km,
                    distance_max_km=dc.max_distance_km,
                    price_per_100lbs=BASE_PRICE + CLASS_STEP * i + DISTANCE_STEP * j,
                ))
        db.add_all(rows)
        logger.info("seeded freight_classes=%d distance_classes=%d warehouses=%d price_rows=%d",
                    len(fcs), len(dcs), len(WAREHOUSES), len(rows))


if __name__ == "__main__":
    main()
