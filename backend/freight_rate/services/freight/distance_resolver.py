# 起运地 + 距离的确定：指定仓库 / 自动选最近仓 / 回退到 origin_postal_code

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Sequence, Tuple, Union
import logging

from freight_rate.core.errors import (
    ExternalServiceError, NoOriginAvailableError, WarehouseNotFoundError,
)
from freight_rate.services.freight.distance_strategies import DistanceStrategy


logger = logging.getLogger(__name__)


class WarehouseRepository(Protocol):
    def find_one(self, warehouse_id: Union[int, str]) -> Optional[Any]: ...
    def find_all(self, limit: int = 1000) -> List[Any]: ...


@dataclass(frozen=True)
class DistanceResolution:
    distance_km: float
    origin_postal_code: Optional[str]
    selected_warehouse_id: Optional[str] = None


class DistanceResolver:
    """
    决定 (distance_km, 起运邮编, 选中的仓库 id)：
        1) 传了 warehouse_id：必须存在且有邮编，否则 WarehouseNotFoundError；
        2) 调用方直接给了 distance_km：原样使用，起运地取 origin_postal_code；
        3) 否则枚举所有仓库，测距取严格最小（< 比较，距离相同保留先出现的）；
           仓库列表为空 / 全部测距失败时回退到 origin_postal_code。
    """

    def __init__(
        self,
        strategy: DistanceStrategy,
        warehouses: WarehouseRepository,
        lookup_limit: int = 1000,
        max_workers: int = 8,
    ) -> None:
        self.strategy = strategy
        self.warehouses = warehouses
        self.lookup_limit = lookup_limit
        self.max_workers = max(1, max_workers)


    def resolve(
        self,
        destination: str,
        origin_postal_code: Optional[str] = None,
        warehouse_id: Optional[Union[int, str]] = None,
        distance_km: Optional[float] = None,
    ) -> DistanceResolution:

        if warehouse_id is not None and warehouse_id != "":
            return self._resolve_warehouse(destination, warehouse_id, distance_km)

        if distance_km is not None:
            logger.info("using caller supplied distance_km=%s origin=%s", distance_km, origin_postal_code)
            return DistanceResolution(float(distance_km), origin_postal_code)

        if self.strategy.requires_distance:
            # direct 策略下没有测距能力，不去枚举仓库
            self.strategy.measure(origin_postal_code or "", destination)

        return self._auto_select(destination, origin_postal_code)


    # ---------- 指定仓库 ----------
    def _resolve_warehouse(
        self, destination: str, warehouse_id: Union[int, str], distance_km: Optional[float]
    ) -> DistanceResolution:
        wh = self.warehouses.find_one(warehouse_id)
        if wh is None or not getattr(wh, "zipcode", None):
            raise WarehouseNotFoundError(f"Warehouse {warehouse_id} not found or has no zipcode")

        km = float(distance_km) if distance_km is not None else self.strategy.measure(wh.zipcode, destination)
        logger.info("using specified warehouse id=%s zipcode=%s distance_km=%s", warehouse_id, wh.zipcode, km)
        return DistanceResolution(km, wh.zipcode, str(wh.id))


    # ---------- 自动选仓 ----------
    def _auto_select(self, destination: str, origin_postal_code: Optional[str]) -> DistanceResolution:
        candidates = [w for w in self.warehouses.find_all(limit=self.lookup_limit) if getattr(w, "zipcode", None)]

        if not candidates:
            if origin_postal_code:
                logger.warning("no warehouses found, falling back to origin_postal_code=%s", origin_postal_code)
                return self._from_origin(destination, origin_postal_code)
            raise NoOriginAvailableError("No warehouses found and origin_postal_code not provided")

        measured = self._measure_all(candidates, destination)

        best: Optional[Tuple[Any, float]] = None
        for wh, km in measured:
            if km is None:
                continue
            if best is None or km < best[1]:
                best = (wh, km)

        if best is None:
            logger.error("could not calculate distance for any of %d warehouses", len(candidates))
            if origin_postal_code:
                logger.warning("falling back to origin_postal_code=%s", origin_postal_code)
                return self._from_origin(destination, origin_postal_code)
            raise ExternalServiceError("Could not calculate distance for any warehouse")

        wh, km = best
        logger.info("closest warehouse id=%s name=%s distance_km=%s", wh.id, getattr(wh, "name", None), km)
        return DistanceResolution(km, wh.zipcode, str(wh.id))


    def _from_origin(self, destination: str, origin_postal_code: str) -> DistanceResolution:
        km = self.strategy.measure(origin_postal_code, destination)
        return DistanceResolution(km, origin_postal_code)


    def _measure_one(self, wh: Any, destination: str) -> Tuple[Any, Optional[float]]:
        try:
            return wh, self.strategy.measure(wh.zipcode, destination)
        except ExternalServiceError as e:
            logger.warning("could not calculate distance for warehouse id=%s: %s", wh.id, e)
            return wh, None


    def _measure_all(self, candidates: Sequence[Any], destination: str) -> List[Tuple[Any, Optional[float]]]:
        # executor.map 保持输入顺序，"距离相同取先出现的" 不受线程完成顺序影响
        if not self.strategy.concurrent or len(candidates) == 1:
            return [self._measure_one(wh, destination) for wh in candidates]

        workers = min(self.max_workers, len(candidates))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="wh-distance") as pool:
            return list(pool.map(lambda wh: self._measure_one(wh, destination), candidates))
