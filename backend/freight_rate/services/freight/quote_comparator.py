# 外部承运商报价对比（Freightcom）：旁路功能，失败只会让 comparison 为空

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Protocol, Sequence
import contextvars, logging, threading, time

from freight_rate.core.config import Settings, settings as default_settings
from freight_rate.core.errors import ExternalServiceError, ExternalServiceTimeoutError
from freight_rate.integrations.freightcom.quote_client import FreightcomClient
from freight_rate.services.freight.freight_compute import CartItem
from freight_rate.utils.clock import local_date_after


logger = logging.getLogger(__name__)

_Q_CENT = Decimal("1")


class QuoteProvider(Protocol):
    def submit(self, rate_request: Dict[str, Any]) -> str: ...
    def poll(self, request_id: str) -> Dict[str, Any]: ...


def to_cents(value: Any) -> int:
    """"123.455" -> 12346（ROUND_HALF_UP）"""
    return int((Decimal(str(value)) * 100).quantize(_Q_CENT, rounding=ROUND_HALF_UP))


def _money(block: Any) -> Optional[Decimal]:
    if not isinstance(block, dict) or block.get("value") in (None, ""):
        return None
    return Decimal(str(block["value"]))


@dataclass
class QuoteComparison:
    internal_price_cents: int
    external_lowest_cents: int
    breakdown: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def difference_cents(self) -> int:
        # 正数 = 外部报价比我们贵
        return self.external_lowest_cents - self.internal_price_cents

    def to_dict(self) -> Dict[str, Any]:
        return {
            "internalPrice": self.internal_price_cents,
            "freightApiLowestPrice": self.external_lowest_cents,
            "differenceCents": self.difference_cents,
            "freightApiRates": self.breakdown,
        }


@dataclass
class QuoteOutcome:
    rates: Optional[List[Dict[str, Any]]]
    comparison: Optional[QuoteComparison]


class QuoteComparator:
    """
    提交报价 -> 固定间隔轮询直到 done（带截止时间）-> 归一化为分并与内部价比较。
    等待用 threading.Event.wait，不忙等；同一个 Event 也是取消信号。
    """

    def __init__(
        self,
        provider: Optional[QuoteProvider],
        *,
        poll_interval_sec: float = 1.0,
        poll_timeout_sec: float = 30.0,
        country: str = "CA",
        timezone_name: str = "America/Toronto",
        ship_date_offset_days: int = 7,
    ) -> None:
        self.provider = provider
        self.poll_interval_sec = poll_interval_sec
        self.poll_timeout_sec = poll_timeout_sec
        self.country = country
        self.timezone_name = timezone_name
        self.ship_date_offset_days = ship_date_offset_days


    # ---------- 请求体 ----------
    def build_rate_request(
        self,
        items: Sequence[CartItem],
        origin: str,
        destination: str,
        service_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        ship = local_date_after(self.ship_date_offset_days, self.timezone_name)

        # 每件货一个托盘，quantity 展开
        pallets: List[Dict[str, Any]] = []
        for idx, item in enumerate(items):
            name = item.product_id or f"item-{idx + 1}"
            for _ in range(item.quantity):
                pallets.append({
                    "measurements": {
                        "weight": {"unit": "g", "value": item.weight_g},
                        "cuboid": {"unit": "mm", "l": item.length_mm, "w": item.width_mm, "h": item.height_mm},
                    },
                    "description": name,
                })

        request: Dict[str, Any] = {
            "details": {
                "origin": {"address": {"country": self.country, "postal_code": origin}},
                "destination": {
                    "address": {"country": self.country, "postal_code": destination},
                    "ready_at": {"hour": 15, "minute": 6},
                    "ready_until": {"hour": 15, "minute": 6},
                    "signature_requirement": "not-required",
                },
                "expected_ship_date": {"year": ship.year, "month": ship.month, "day": ship.day},
                "packaging_type": "pallet",
                "packaging_properties": {"pallet_type": "ltl", "pallets": pallets},
            },
        }
        if service_id:
            request["services"] = [service_id]
        return request


    # ---------- 提交 + 轮询 ----------
    # 截止时间在 submit 之前开始计；provider 调用在工作线程里执行，只按剩余时间等结果
    def fetch_rates(
        self,
        items: Sequence[CartItem],
        origin: str,
        destination: str,
        service_id: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[Dict[str, Any]]:
        if self.provider is None:
            raise ExternalServiceError("carrier quote provider is not configured")

        deadline = time.monotonic() + self.poll_timeout_sec
        request = self.build_rate_request(items, origin, destination, service_id)
        calls = ThreadPoolExecutor(max_workers=1, thread_name_prefix="freightcom-call")
        try:
            request_id = self._call_before(deadline, calls, "submit", self.provider.submit, request)
        finally:
            calls.shutdown(wait=False)
        return self.wait_for_rates(request_id, cancel=cancel, deadline=deadline)


    def wait_for_rates(
        self,
        request_id: str,
        cancel: Optional[threading.Event] = None,
        deadline: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        cancel = cancel or threading.Event()
        if deadline is None:
            deadline = time.monotonic() + self.poll_timeout_sec

        calls = ThreadPoolExecutor(max_workers=1, thread_name_prefix="freightcom-call")
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise self._timeout(request_id)
                if cancel.wait(min(self.poll_interval_sec, remaining)):
                    raise ExternalServiceError(f"rate polling cancelled request_id={request_id}")

                status = self._call_before(deadline, calls, request_id, self.provider.poll, request_id)
                if status.get("done"):
                    return list(status.get("rates") or [])
        finally:
            calls.shutdown(wait=False)


    def _call_before(self, deadline: float, calls: ThreadPoolExecutor, request_id: str, fn, *args):
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise self._timeout(request_id)
        future = calls.submit(contextvars.copy_context().run, fn, *args)
        try:
            return future.result(timeout=remaining)
        except FuturesTimeoutError as e:
            future.cancel()
            raise self._timeout(request_id) from e


    def _timeout(self, request_id: str) -> ExternalServiceTimeoutError:
        return ExternalServiceTimeoutError(
            f"Timeout waiting for freight rates request_id={request_id} after {self.poll_timeout_sec}s"
        )


    # ---------- 对比 ----------
    @staticmethod
    def summarize(rates: Sequence[Dict[str, Any]], internal_price_cents: int) -> Optional[QuoteComparison]:
        breakdown: List[Dict[str, Any]] = []
        for r in rates:
            total = _money(r.get("total"))
            if total is None:
                continue
            base = _money(r.get("base"))
            breakdown.append({
                "serviceId": r.get("service_id"),
                "serviceName": r.get("service_name"),
                "carrierName": r.get("carrier_name"),
                "totalPrice": float(total),
                "totalPriceCents": to_cents(total),
                "basePrice": float(base) if base is not None else None,
                "currency": (r.get("total") or {}).get("currency"),
                "transitTimeDays": r.get("transit_time_days"),
            })

        if not breakdown:
            return None
        lowest = min(b["totalPriceCents"] for b in breakdown)
        return QuoteComparison(internal_price_cents=internal_price_cents, external_lowest_cents=lowest, breakdown=breakdown)


    def compare(
        self,
        items: Sequence[CartItem],
        origin: Optional[str],
        destination: str,
        internal_price_cents: int,
        service_id: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Optional[QuoteComparison]:
        """任何失败都记日志并返回 None，绝不影响内部报价结果。"""
        return self.quote(items, origin, destination, internal_price_cents, service_id, cancel).comparison


    def quote(
        self,
        items: Sequence[CartItem],
        origin: Optional[str],
        destination: str,
        internal_price_cents: Optional[int],
        service_id: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> QuoteOutcome:
        if self.provider is None:
            logger.warning("FREIGHTCOM_API_KEY not set, skipping freight API call")
            return QuoteOutcome(rates=None, comparison=None)
        if not origin:
            logger.warning("no origin postal code, skipping freight API call")
            return QuoteOutcome(rates=None, comparison=None)

        try:
            rates = self.fetch_rates(items, origin, destination, service_id=service_id, cancel=cancel)
        except Exception:
            logger.exception("Error calling freight API origin=%s destination=%s", origin, destination)
            return QuoteOutcome(rates=None, comparison=None)

        logger.info("Received %d freight API rates", len(rates))
        comparison = None
        if internal_price_cents is not None:
            comparison = self.comparison_for(rates, internal_price_cents)
        return QuoteOutcome(rates=rates, comparison=comparison)


    def comparison_for(self, rates: Sequence[Dict[str, Any]], internal_price_cents: int) -> Optional[QuoteComparison]:
        try:
            return self.summarize(rates, internal_price_cents)
        except (ArithmeticError, ValueError, TypeError, AttributeError):
            logger.exception("could not normalize freight API rates")
            return None



def build_quote_comparator(cfg: Optional[Settings] = None, session=None) -> QuoteComparator:
    cfg = cfg or default_settings
    key = cfg.freightcom_api_key
    provider = None
    if key:
        provider = FreightcomClient(
            api_key=key,
            base_url=cfg.FREIGHTCOM_BASE_URL,
            timeout=cfg.FREIGHTCOM_HTTP_TIMEOUT,
            session=session,
        )
    return QuoteComparator(
        provider,
        poll_interval_sec=cfg.QUOTE_POLL_INTERVAL_SEC,
        poll_timeout_sec=cfg.QUOTE_POLL_TIMEOUT_SEC,
        country=cfg.QUOTE_COUNTRY,
        timezone_name=cfg.QUOTE_TIMEZONE,
        ship_date_offset_days=cfg.QUOTE_SHIP_DATE_OFFSET_DAYS,
    )
