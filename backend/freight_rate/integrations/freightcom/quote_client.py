"""
Freightcom 报价 API 的低层客户端：
  - POST /rate 提交报价请求，拿到 request_id；
  - GET /rate/{request_id} 查询进度，status.done 为 True 时 rates 才完整；
  - 鉴权是裸 API key 放在 Authorization 头里（没有 Bearer 前缀）。
轮询/超时由上层 QuoteComparator 负责，这里每个方法只发一次请求。
"""

from __future__ import annotations
import logging, requests
from typing import Any, Dict, Optional

from freight_rate.core.config import settings
from freight_rate.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)


class FreightcomClient:

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ValueError("FreightcomClient requires an api_key")
        self.base_url = (base_url or settings.FREIGHTCOM_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.FREIGHTCOM_HTTP_TIMEOUT

        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": api_key,
            "Accept": "application/json",
            "Content-Type": "application/json",
        })


    # ---------- Public ----------
    def submit(self, rate_request: Dict[str, Any]) -> str:
        """提交报价请求，返回 request_id。"""
        body = self._request("POST", "/rate", json=rate_request)
        request_id = body.get("request_id") if isinstance(body, dict) else None
        if not request_id:
            raise ExternalServiceError("freightcom /rate response has no request_id")
        logger.info("Freightcom rate request submitted request_id=%s", request_id)
        return str(request_id)


    def poll(self, request_id: str) -> Dict[str, Any]:
        """查询一次进度：{"done": bool, "rates": [...], "total": int, "complete": int}"""
        body = self._request("GET", f"/rate/{request_id}")
        status = (body or {}).get("status") or {}
        result = {
            "done": bool(status.get("done")),
            "total": status.get("total"),
            "complete": status.get("complete"),
            "rates": body.get("rates") or [],
        }
        logger.info("Freightcom rate status request_id=%s done=%s complete=%s/%s",
                    request_id, result["done"], result["complete"], result["total"])
        return result


    def close(self) -> None:
        self._session.close()


    # ---------- Internals ----------
    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("Freightcom request error %s %s: %s", method, path, e)
            raise ExternalServiceError(f"freightcom request error: {e}") from e

        if resp.status_code >= 400:
            snippet = (resp.text or "")[:300]   # 截断，避免日志过大
            logger.error("Freightcom %s %s -> %s: %s", method, path, resp.status_code, snippet)
            raise ExternalServiceError(f"freightcom {resp.status_code}: {snippet}")

        try:
            return resp.json()
        except ValueError as e:
            text = (resp.text or "")[:300]
            raise ExternalServiceError(f"freightcom non-JSON response (status={resp.status_code}): {text}") from e
