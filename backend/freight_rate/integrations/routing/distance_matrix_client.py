"""
Google Distance Matrix 的轻量客户端：一次只查一对 (origin, destination)
  - 邮编后面拼国家后缀（默认 "Canada"）帮助地理解析；
  - 顶层 status 或 element.status 不是 OK 一律抛 ExternalServiceError；
  - 不做重试：距离查询是主流程的一部分，失败交给上层决定是否降级。
"""

from __future__ import annotations
import logging, requests
from typing import Any, Dict, Optional

from freight_rate.core.config import settings
from freight_rate.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)


class DistanceMatrixClient:

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        country_suffix: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ValueError("DistanceMatrixClient requires an api_key")
        self.api_key = api_key
        self.base_url = base_url or settings.GOOGLE_DISTANCE_MATRIX_URL
        self.country_suffix = settings.ROUTING_COUNTRY_SUFFIX if country_suffix is None else country_suffix
        self.timeout = timeout or settings.ROUTING_HTTP_TIMEOUT
        self._session = session or requests.Session()


    def _place(self, postal_code: str) -> str:
        return f"{postal_code} {self.country_suffix}".strip()


    def distance_km(self, origin: str, destination: str) -> float:
        """返回驾车距离（公里）；米 / 1000，不做取整。"""
        params = {
            "departure_time": "now",
            "origins": self._place(origin),
            "destinations": self._place(destination),
            "key": self.api_key,
        }
        # key 不进日志
        logger.info("Distance Matrix query origins=%s destinations=%s", params["origins"], params["destinations"])

        try:
            resp = self._session.get(self.base_url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            body: Dict[str, Any] = resp.json()
        except requests.RequestException as e:
            logger.error("Distance Matrix request failed origin=%s destination=%s: %s", origin, destination, e)
            raise ExternalServiceError(f"distance matrix request failed: {e}") from e
        except ValueError as e:
            raise ExternalServiceError(f"distance matrix returned non-JSON body (status={resp.status_code})") from e

        status = body.get("status")
        if status != "OK":
            logger.error("Distance Matrix error status=%s message=%s", status, body.get("error_message"))
            raise ExternalServiceError(f"Google API error: {status}")

        rows = body.get("rows") or []
        elements = (rows[0].get("elements") or []) if rows else []
        element = elements[0] if elements else None
        element_status = element.get("status") if element else "No element"
        if element_status != "OK":
            logger.error("Distance Matrix element error origin=%s destination=%s status=%s", origin, destination, element_status)
            raise ExternalServiceError(f"Could not calculate distance: {element_status}")

        try:
            meters = float(element["distance"]["value"])
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalServiceError("distance matrix element has no distance value") from e

        km = meters / 1000
        logger.info("Distance calculated origin=%s destination=%s km=%s (%s)", origin, destination, km, element["distance"].get("text"))
        return km


    def close(self) -> None:
        self._session.close()
