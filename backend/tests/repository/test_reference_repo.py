from decimal import Decimal

import pytest

from freight_rate.db.model import DistanceClass, FreightClass, PriceTableEntry, Warehouse
from freight_rate.repository import reference_repo
from freight_rate.repository.reference_repo import (
    SqlDistanceClassRepository, SqlFreightClassRepository, SqlRateTableRepository, SqlWarehouseRepository,
)


@pytest.fixture
def db(sqlite_session):
    s = sqlite_session
    fcs = [
        FreightClass(freight_class="300", min_density=Decimal("1.00"), max_density=Decimal("1.99")),
        FreightClass(freight_class="500", min_density=Decimal("0.00"), max_density=Decimal("0.99")),
    ]
    dcs = [
        DistanceClass(code="LOCAL", min_distance_km=Decimal("0"), max_distance_km=Decimal("250")),
        DistanceClass(code="FAR", min_distance_km=Decimal("250.01"), max_distance_km=Decimal("5000")),
    ]
    s.add_all(fcs + dcs)
    s.add_all([Warehouse(name="A", zipcode="M5V"), Warehouse(name="B", zipcode=None), Warehouse(name="C", zipcode="V6B")])
    s.flush()
    s.add_all([
        PriceTableEntry(freight_class_id=fcs[1].id, distance_class_id=dcs[0].id, distance_min_km=Decimal("0"),
                        distance_max_km=Decimal("250"), price_per_100lbs=Decimal("60.00")),
        PriceTableEntry(freight_class_id=fcs[1].id, distance_class_id=dcs[0].id, distance_min_km=Decimal("0"),
                        distance_max_km=Decimal("300"), price_per_100lbs=Decimal("45.00")),
        PriceTableEntry(freight_class_id=fcs[1].id, distance_class_id=dcs[1].id, distance_min_km=Decimal("250.01"),
                        distance_max_km=Decimal("5000"), price_per_100lbs=Decimal("80.00")),
    ])
    s.commit()
    s.info["fc"] = {f.freight_class: f.id for f in fcs}
    s.info["dc"] = {d.code: d.id for d in dcs}
    return s


@pytest.mark.parametrize("density,code", [(0.0, "500"), (0.99, "500"), (1.0, "300"), (1.99, "300")])
def test_freight_class_bounds_inclusive(db, density, code):
    rows = SqlFreightClassRepository(db).find_by_density(density)
    assert [r.freight_class for r in rows] == [code]


def test_freight_class_no_match(db):
    assert SqlFreightClassRepository(db).find_by_density(2.5) == []


def test_freight_classes_ordered_by_min_density(db):
    db.add(FreightClass(freight_class="400", min_density=Decimal("0.50"), max_density=Decimal("1.50")))
    db.commit()
    rows = reference_repo.find_freight_classes_by_density(db, 0.75)
    assert [r.freight_class for r in rows] == ["500", "400"]


def test_distance_class_lookup(db):
    repo = SqlDistanceClassRepository(db)
    assert [r.code for r in repo.find_by_distance(250)] == ["LOCAL"]
    assert [r.code for r in repo.find_by_distance(250.01)] == ["FAR"]
    assert repo.find_by_distance(6000) == []


def test_rates_by_range_sorted_by_price(db):
    fc = db.info["fc"]["500"]
    rows = SqlRateTableRepository(db).find_by_distance_range(fc, 200)
    assert [r.price_per_100lbs for r in rows] == [Decimal("45.00"), Decimal("60.00")]
    # 280 km 同时落在 0-300 和 250.01-5000 两行
    assert [r.price_per_100lbs for r in SqlRateTableRepository(db).find_by_distance_range(fc, 280)] == [Decimal("45.00"), Decimal("80.00")]
    assert SqlRateTableRepository(db).find_by_distance_range(db.info["fc"]["300"], 200) == []


def test_rates_by_distance_class(db):
    fc = db.info["fc"]["500"]
    rows = SqlRateTableRepository(db).find_by_distance_class(fc, db.info["dc"]["FAR"])
    assert [r.price_per_100lbs for r in rows] == [Decimal("80.00")]


def test_warehouse_lookup(db):
    repo = SqlWarehouseRepository(db)
    all_rows = repo.find_all()
    assert [w.name for w in all_rows] == ["A", "B", "C"]
    assert [w.name for w in repo.find_all(limit=2)] == ["A", "B"]
    assert repo.find_one(str(all_rows[2].id)).name == "C"
    assert repo.find_one(99999) is None
    assert repo.find_one("not-a-number") is None
