# 运费计算历史记录的读写

from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict, List, TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.orm import Session

from freight_rate.db.model.freight_rate import FreightRateRecord
from freight_rate.utils.serialization import to_jsonable

if TYPE_CHECKING:
    from freight_rate.services.freight.freight_rate_service import RateCalculationResult, RateRequest


def _dec(value: Any, places: str = "0.01") -> Decimal:
    return Decimal(str(value)).quantize(Decimal(places))


"""
把一次计算的输入 + 结果写成一行 freight_rate_records
总重量 / 总体积保存原始单位（克、立方毫米），方便对账
"""
def record_calculation(db: Session, req: "RateRequest", result: "RateCalculationResult") -> FreightRateRecord:
    totals = result.totals
    row = FreightRateRecord(
        origin_postal_code=result.origin_postal_code,
        destination_postal_code=req.destination_postal_code,
        selected_warehouse_id=result.selected_warehouse_id,
        total_weight_g=_dec(totals.total_weight_g if totals else 0),
        total_volume_mm3=_dec(totals.total_volume_mm3 if totals else 0),
        density=_dec(result.density),
        freight_class=result.freight_class,
        distance_km=_dec(result.distance_km, "0.001"),
        final_price_cents=result.final_price_cents,
        items=to_jsonable([item.to_dict() for item in req.items]),
        applicable_rates=to_jsonable(result.applicable_rates),
        status="calculated",
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def to_dict(row: FreightRateRecord) -> Dict[str, Any]:
    return to_jsonable({
        "id": row.id,
        "originPostalCode": row.origin_postal_code,
        "destinationPostalCode": row.destination_postal_code,
        "selectedWarehouseId": row.selected_warehouse_id,
        "totalWeight": row.total_weight_g,
        "totalVolume": row.total_volume_mm3,
        "density": row.density,
        "freightClass": row.freight_class,
        "distance": row.distance_km,
        "selectedRate": row.final_price_cents,
        "items": row.items,
        "applicableRates": row.applicable_rates,
        "status": row.status,
        "createdAt": row.created_at,
    })


def list_history(db: Session, limit: int = 100) -> List[Dict[str, Any]]:
    """最新的在前；created_at 相同按 id 倒序。"""
    stmt = (
        select(FreightRateRecord)
        .order_by(FreightRateRecord.created_at.desc(), FreightRateRecord.id.desc())
        .limit(limit)
    )
    return [to_dict(r) for r in db.execute(stmt).scalars().all()]
