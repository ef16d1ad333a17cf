# 价格表查询：range 模式按公里区间，distance_class 模式先分距离档

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol
import logging

from freight_rate.services.freight.classifiers import DistanceClassifier


logger = logging.getLogger(__name__)

RATE_TABLE_MODES = ("range", "distance_class")


class RateTableRepository(Protocol):
    def find_by_distance_range(self, freight_class_id: Any, distance_km: float) -> List[Any]: ...
    def find_by_distance_class(self, freight_class_id: Any, distance_class_id: Any) -> List[Any]: ...


@dataclass(frozen=True)
class RateLookupResult:
    rates: List[Any]
    distance_class: Optional[Any] = None


class RateLookup:
    """返回所有命中的价格行（顺序由仓储决定）；空列表不算错误，由调用方判断。"""

    def __init__(
        self,
        rates: RateTableRepository,
        mode: str = "range",
        distance_classifier: Optional[DistanceClassifier] = None,
    ) -> None:
        if mode not in RATE_TABLE_MODES:
            raise ValueError(f"unknown RATE_TABLE_MODE {mode!r}")
        if mode == "distance_class" and distance_classifier is None:
            raise ValueError("RATE_TABLE_MODE=distance_class needs a DistanceClassifier")
        self.rates = rates
        self.mode = mode
        self.distance_classifier = distance_classifier

    def lookup(self, freight_class_id: Any, distance_km: float) -> RateLookupResult:
        if self.mode == "range":
            rows = self.rates.find_by_distance_range(freight_class_id, distance_km)
            logger.info("rate lookup mode=range freight_class_id=%s distance_km=%s hits=%d",
                        freight_class_id, distance_km, len(rows))
            return RateLookupResult(rates=list(rows))

        dc = self.distance_classifier.classify(distance_km)
        rows = self.rates.find_by_distance_class(freight_class_id, dc.id)
        logger.info("rate lookup mode=distance_class freight_class_id=%s distance_class=%s hits=%d",
                    freight_class_id, getattr(dc, "code", dc.id), len(rows))
        return RateLookupResult(rates=list(rows), distance_class=dc)
