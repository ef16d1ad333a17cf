# 区间分类：密度 -> 货运等级，距离 -> 距离档

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Protocol
import logging

from freight_rate.core.errors import ClassificationNotFoundError


logger = logging.getLogger(__name__)


class FreightClassRepository(Protocol):
    def find_by_density(self, density: float) -> List[Any]: ...


class DistanceClassRepository(Protocol):
    def find_by_distance(self, distance_km: float) -> List[Any]: ...


@dataclass(frozen=True)
class FreightClassMatch:
    code: str
    record: Any


class FreightClassifier:
    """密度落在 [min_density, max_density]（闭区间）的那一档；多条命中取第一条。"""

    def __init__(self, repo: FreightClassRepository) -> None:
        self.repo = repo

    def classify(self, density: float) -> FreightClassMatch:
        rows = self.repo.find_by_density(density)
        if not rows:
            raise ClassificationNotFoundError(f"No freight class found for density {density}")
        if len(rows) > 1:
            # 区间本应互斥，重叠属于参考数据问题
            logger.warning("density=%s matched %d freight classes, using first id=%s", density, len(rows), rows[0].id)
        record = rows[0]
        return FreightClassMatch(code=str(record.freight_class), record=record)


class DistanceClassifier:
    def __init__(self, repo: DistanceClassRepository) -> None:
        self.repo = repo

    def classify(self, distance_km: float) -> Any:
        rows = self.repo.find_by_distance(distance_km)
        if not rows:
            raise ClassificationNotFoundError(f"No distance class found for distance {distance_km}km")
        if len(rows) > 1:
            logger.warning("distance_km=%s matched %d distance classes, using first id=%s", distance_km, len(rows), rows[0].id)
        return rows[0]
