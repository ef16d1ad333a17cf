"""
共享夹具：
  - 内存版仓储（参考数据、仓库、价格表），模拟真实仓储的过滤 + 排序；
  - SQLite 内存库 Session（不依赖 Postgres，JSONB 在 SQLite 上自动退回 JSON）。
"""

from __future__ import annotations
from decimal import Decimal
from types import SimpleNamespace
from typing import Any, Iterator, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from freight_rate.db.base import Base
import freight_rate.db.model  # noqa: F401  注册全部模型


def _d(v: Any) -> Decimal:
    return Decimal(str(v))


class InMemoryFreightClassRepo:
    def __init__(self, rows: List[Any]) -> None:
        self.rows = rows

    def find_by_density(self, density: float) -> List[Any]:
        d = _d(density)
        return [r for r in self.rows if _d(r.min_density) <= d <= _d(r.max_density)]


class InMemoryDistanceClassRepo:
    def __init__(self, rows: List[Any]) -> None:
        self.rows = rows

    def find_by_distance(self, distance_km: float) -> List[Any]:
        d = _d(distance_km)
        return [r for r in self.rows if _d(r.min_distance_km) <= d <= _d(r.max_distance_km)]


class InMemoryRateRepo:
    """保持插入顺序返回，方便测试 first / lowest 两种选价规则。"""

    def __init__(self, rows: List[Any]) -> None:
        self.rows = rows
        self.calls: List[tuple] = []

    def find_by_distance_range(self, freight_class_id: Any, distance_km: float) -> List[Any]:
        self.calls.append(("range", freight_class_id, distance_km))
        d = _d(distance_km)
        return [
            r for r in self.rows
            if r.freight_class_id == freight_class_id
            and getattr(r, "distance_min_km", None) is not None
            and _d(r.distance_min_km) <= d <= _d(r.distance_max_km)
        ]

    def find_by_distance_class(self, freight_class_id: Any, distance_class_id: Any) -> List[Any]:
        self.calls.append(("class", freight_class_id, distance_class_id))
        return [
            r for r in self.rows
            if r.freight_class_id == freight_class_id and getattr(r, "distance_class_id", None) == distance_class_id
        ]


class InMemoryWarehouseRepo:
    def __init__(self, rows: List[Any]) -> None:
        self.rows = rows
        self.find_all_limits: List[int] = []

    def find_one(self, warehouse_id: Any) -> Optional[Any]:
        for r in self.rows:
            if str(r.id) == str(warehouse_id):
                return r
        return None

    def find_all(self, limit: int = 1000) -> List[Any]:
        self.find_all_limits.append(limit)
        return self.rows[:limit]


def freight_class(id: int, code: str, lo: str, hi: str) -> SimpleNamespace:
    return SimpleNamespace(id=id, freight_class=code, min_density=Decimal(lo), max_density=Decimal(hi))


def distance_class(id: int, code: str, lo: str, hi: str) -> SimpleNamespace:
    return SimpleNamespace(id=id, code=code, min_distance_km=Decimal(lo), max_distance_km=Decimal(hi))


def rate(id: int, fc_id: int, price: str, lo: Optional[str] = None, hi: Optional[str] = None, dc_id: Optional[int] = None) -> SimpleNamespace:
    return SimpleNamespace(
        id=id,
        freight_class_id=fc_id,
        distance_class_id=dc_id,
        distance_min_km=Decimal(lo) if lo is not None else None,
        distance_max_km=Decimal(hi) if hi is not None else None,
        price_per_100lbs=Decimal(price),
    )


def warehouse(id: int, zipcode: Optional[str], name: str = "") -> SimpleNamespace:
    return SimpleNamespace(id=id, name=name or f"WH-{id}", zipcode=zipcode)


@pytest.fixture
def fakes() -> SimpleNamespace:
    """测试里通过 fakes.xxx 拿到内存仓储和行构造函数。"""
    return SimpleNamespace(
        FreightClassRepo=InMemoryFreightClassRepo,
        DistanceClassRepo=InMemoryDistanceClassRepo,
        RateRepo=InMemoryRateRepo,
        WarehouseRepo=InMemoryWarehouseRepo,
        freight_class=freight_class,
        distance_class=distance_class,
        rate=rate,
        warehouse=warehouse,
    )


@pytest.fixture
def freight_class_rows() -> List[SimpleNamespace]:
    # 区间连续且互不重叠（两位小数）
    return [
        freight_class(1, "500", "0.00", "0.99"),
        freight_class(2, "300", "1.00", "1.99"),
        freight_class(3, "150", "2.00", "5.99"),
        freight_class(4, "50", "6.00", "9999.99"),
    ]


@pytest.fixture
def sqlite_session() -> Iterator[Session]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(engine)
        engine.dispose()
