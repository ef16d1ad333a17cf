# 距离测算策略：direct / estimate / routing，由 DISTANCE_STRATEGY 选择

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional, Protocol
import logging

import requests

from freight_rate.core.config import Settings, settings as default_settings
from freight_rate.core.errors import ValidationError
from freight_rate.integrations.routing.distance_matrix_client import DistanceMatrixClient


logger = logging.getLogger(__name__)

ESTIMATE_MIN_KM = 100
ESTIMATE_SPAN_KM = 4900     # 100 + (hash % 4900) -> [100, 5000)


class RoutingProvider(Protocol):
    def distance_km(self, origin: str, destination: str) -> float: ...


class DistanceStrategy(ABC):
    name: str = ""
    # 调用方必须自带 distance_km（无法自己测距）
    requires_distance: bool = False
    # 多仓测距时是否值得开线程池（纯计算的策略不需要）
    concurrent: bool = False

    @abstractmethod
    def measure(self, origin: str, destination: str) -> float:
        ...


class DirectDistanceStrategy(DistanceStrategy):
    """距离由上游算好传进来；这里没有任何测距能力。"""

    name = "direct"
    requires_distance = True

    def measure(self, origin: str, destination: str) -> float:
        raise ValidationError("distance_km is required when DISTANCE_STRATEGY=direct")


class DeterministicEstimateStrategy(DistanceStrategy):
    """
    邮编字符串哈希估算：100 + (sum(ord(c)) % 4900)。
    只是真实路由的替代品，但同一对邮编永远得到同一距离，历史报价可复现。
    """

    name = "estimate"

    def measure(self, origin: str, destination: str) -> float:
        combined = f"{origin}{destination}"
        return float(ESTIMATE_MIN_KM + sum(ord(c) for c in combined) % ESTIMATE_SPAN_KM)


class ExternalRoutingStrategy(DistanceStrategy):
    """走外部路由服务；没配 key（provider 为 None）时返回固定兜底距离。"""

    name = "routing"
    concurrent = True

    def __init__(self, provider: Optional[RoutingProvider], fallback_km: float = 500.0) -> None:
        self.provider = provider
        self.fallback_km = fallback_km

    def measure(self, origin: str, destination: str) -> float:
        if self.provider is None:
            logger.warning("GOOGLE_API_KEY not set, using fallback distance %skm origin=%s destination=%s",
                           self.fallback_km, origin, destination)
            return float(self.fallback_km)
        return self.provider.distance_km(origin, destination)


def build_distance_strategy(
    cfg: Optional[Settings] = None,
    session: Optional[requests.Session] = None,
) -> DistanceStrategy:
    cfg = cfg or default_settings
    name = cfg.DISTANCE_STRATEGY

    if name == "direct":
        return DirectDistanceStrategy()
    if name == "estimate":
        return DeterministicEstimateStrategy()
    if name == "routing":
        key = cfg.google_api_key
        provider = None
        if key:
            provider = DistanceMatrixClient(
                api_key=key,
                base_url=cfg.GOOGLE_DISTANCE_MATRIX_URL,
                country_suffix=cfg.ROUTING_COUNTRY_SUFFIX,
                timeout=cfg.ROUTING_HTTP_TIMEOUT,
                session=session,
            )
        return ExternalRoutingStrategy(provider, fallback_km=cfg.ROUTING_FALLBACK_DISTANCE_KM)
    raise ValueError(f"unknown DISTANCE_STRATEGY {name!r}")
