# 运费报价主流程：密度 -> 货运等级 -> 距离/起运仓 -> 价格表 -> 最终价格（分）

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Union
import logging

from freight_rate.core.errors import NoApplicableRateError, ValidationError
from freight_rate.services.freight.classifiers import FreightClassifier
from freight_rate.services.freight.distance_resolver import DistanceResolver
from freight_rate.services.freight.freight_compute import (
    DEFAULT_MARKUP, CartItem, ShipmentTotals,
    base_price_cents, compute_final_price_cents, compute_totals, rate_projection,
    select_rate, units_100lbs,
)
from freight_rate.services.freight.rate_lookup import RateLookup


logger = logging.getLogger(__name__)



@dataclass(frozen=True)
class RateRequest:
    items: Sequence[CartItem]
    destination_postal_code: str
    origin_postal_code: Optional[str] = None
    warehouse_id: Optional[Union[int, str]] = None
    distance_km: Optional[float] = None


@dataclass
class RateCalculationResult:
    density: float
    freight_class: str
    applicable_rates: List[Dict[str, Any]]
    final_price_cents: int
    distance_km: float
    origin_postal_code: Optional[str] = None
    selected_warehouse_id: Optional[str] = None
    distance_class: Optional[str] = None
    selected_rate_id: Any = None
    units_100lbs: int = 0
    totals: Optional[ShipmentTotals] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "density": self.density,
            "freightClass": self.freight_class,
            "applicableRates": self.applicable_rates,
            "finalPriceCents": self.final_price_cents,
            "distanceKm": self.distance_km,
            "selectedWarehouseId": self.selected_warehouse_id,
            "originPostalCode": self.origin_postal_code,
            "selectedRateId": self.selected_rate_id,
            "units100lbs": self.units_100lbs,
        }
        if self.distance_class is not None:
            data["distanceClass"] = self.distance_class
        if self.totals is not None:
            data["totalWeightLbs"] = round(self.totals.total_weight_lbs, 2)
            data["totalVolumeCubicInches"] = round(self.totals.total_volume_in3, 2)
        return data



class RateCalculator:
    """
    仓储 / 距离策略都由构造函数注入，不读全局状态。
    每次调用互相独立，只读参考数据，可以在多个线程里并发调用。
    """

    def __init__(
        self,
        freight_classifier: FreightClassifier,
        distance_resolver: DistanceResolver,
        rate_lookup: RateLookup,
        *,
        selection: str = "first",
        prices_in_cents: bool = False,
        markup: Union[Decimal, str] = DEFAULT_MARKUP,
    ) -> None:
        self.freight_classifier = freight_classifier
        self.distance_resolver = distance_resolver
        self.rate_lookup = rate_lookup
        self.selection = selection
        self.prices_in_cents = prices_in_cents
        self.markup = Decimal(str(markup))


    def calculate(self, req: RateRequest) -> RateCalculationResult:
        return self.calculate_rate(
            req.items,
            req.destination_postal_code,
            origin=req.origin_postal_code,
            warehouse_id=req.warehouse_id,
            distance_km=req.distance_km,
        )


    def calculate_rate(
        self,
        items: Sequence[CartItem],
        destination: str,
        origin: Optional[str] = None,
        warehouse_id: Optional[Union[int, str]] = None,
        distance_km: Optional[float] = None,
    ) -> RateCalculationResult:

        if not destination or not str(destination).strip():
            raise ValidationError("Destination postal code is required")
        if distance_km is not None and distance_km < 0:
            raise ValidationError(f"distance_km must be >= 0, got {distance_km}")

        # 1) 密度
        totals = compute_totals(items)
        logger.info("calculated density=%s total_lbs=%.2f total_in3=%.2f", totals.density, totals.total_weight_lbs, totals.total_volume_in3)

        # 2) 货运等级
        fc = self.freight_classifier.classify(totals.density)
        logger.info("mapped to freight_class=%s", fc.code)

        # 3) 距离 / 起运仓
        where = self.distance_resolver.resolve(
            destination,
            origin_postal_code=origin,
            warehouse_id=warehouse_id,
            distance_km=distance_km,
        )

        # 4) 价格表
        found = self.rate_lookup.lookup(fc.record.id, where.distance_km)
        if not found.rates:
            raise NoApplicableRateError(
                f"No rates found for freight class {fc.code} and distance {where.distance_km}km"
            )

        # 5) 最终价格
        chosen = select_rate(found.rates, self.selection, self.prices_in_cents)
        units = units_100lbs(totals.total_weight_lbs)
        final_cents = compute_final_price_cents(
            base_price_cents(chosen, self.prices_in_cents), units, self.markup
        )
        logger.info("final price cents=%s rate_id=%s units_100lbs=%s selection=%s",
                    final_cents, chosen.id, units, self.selection)

        dc = found.distance_class
        return RateCalculationResult(
            density=totals.density,
            freight_class=fc.code,
            applicable_rates=rate_projection(found.rates),
            final_price_cents=final_cents,
            distance_km=where.distance_km,
            origin_postal_code=where.origin_postal_code,
            selected_warehouse_id=where.selected_warehouse_id,
            distance_class=str(dc.code) if dc is not None else None,
            selected_rate_id=chosen.id,
            units_100lbs=units,
            totals=totals,
        )
