import threading
import time
from datetime import date, timedelta

import pytest

from freight_rate.core.config import Settings
from freight_rate.core.errors import ExternalServiceError, ExternalServiceTimeoutError
from freight_rate.integrations.freightcom.quote_client import FreightcomClient
from freight_rate.services.freight.freight_compute import CartItem
from freight_rate.services.freight.quote_comparator import (
    QuoteComparator, build_quote_comparator, to_cents,
)


ITEMS = [
    CartItem(weight_g=5000, length_mm=300, width_mm=200, height_mm=150, quantity=2, product_id="SKU-1"),
    CartItem(weight_g=1200, length_mm=100, width_mm=100, height_mm=100, quantity=1),
]

RATES = [
    {"service_id": "a.std", "service_name": "Standard", "carrier_name": "A",
     "total": {"value": "123.45", "currency": "CAD"}, "base": {"value": "100.00", "currency": "CAD"},
     "transit_time_days": 4},
    {"service_id": "b.eco", "service_name": "Economy", "carrier_name": "B",
     "total": {"value": "98.765", "currency": "CAD"}, "base": {"value": "80", "currency": "CAD"},
     "transit_time_days": 6},
]


class FakeProvider:
    """done_after 次 poll 之后才返回 done；done_after=None 表示永远不完成。"""

    def __init__(self, done_after=1, rates=RATES, submit_exc=None, poll_exc=None):
        self.done_after = done_after
        self.rates = rates
        self.submit_exc = submit_exc
        self.poll_exc = poll_exc
        self.submitted = []
        self.polls = 0

    def submit(self, rate_request):
        if self.submit_exc:
            raise self.submit_exc
        self.submitted.append(rate_request)
        return "req-1"

    def poll(self, request_id):
        self.polls += 1
        if self.poll_exc:
            raise self.poll_exc
        done = self.done_after is not None and self.polls >= self.done_after
        return {"done": done, "rates": self.rates if done else []}


def _comparator(provider, interval=0.01, timeout=0.5):
    return QuoteComparator(provider, poll_interval_sec=interval, poll_timeout_sec=timeout)


def test_to_cents_half_up():
    assert to_cents("123.45") == 12345
    assert to_cents("98.765") == 9877
    assert to_cents("0.005") == 1
    assert to_cents(10) == 1000


def test_rate_request_has_one_pallet_per_unit():
    req = _comparator(FakeProvider()).build_rate_request(ITEMS, "M5V 2T6", "H3B 4W8", service_id="a.std")
    details = req["details"]
    pallets = details["packaging_properties"]["pallets"]

    assert len(pallets) == 3
    assert [p["description"] for p in pallets] == ["SKU-1", "SKU-1", "item-2"]
    assert pallets[0]["measurements"]["weight"] == {"unit": "g", "value": 5000}
    assert pallets[0]["measurements"]["cuboid"] == {"unit": "mm", "l": 300, "w": 200, "h": 150}
    assert details["packaging_type"] == "pallet"
    assert details["packaging_properties"]["pallet_type"] == "ltl"
    assert details["origin"]["address"] == {"country": "CA", "postal_code": "M5V 2T6"}
    assert details["destination"]["address"]["postal_code"] == "H3B 4W8"
    assert req["services"] == ["a.std"]

    ship = details["expected_ship_date"]
    shipped = date(ship["year"], ship["month"], ship["day"])
    # 按业务时区算，和 UTC 日期最多差一天
    assert timedelta(days=6) <= shipped - date.today() <= timedelta(days=8)


def test_rate_request_without_service_id():
    req = _comparator(FakeProvider()).build_rate_request(ITEMS, "A", "B")
    assert "services" not in req


def test_polls_until_done():
    provider = FakeProvider(done_after=3)
    rates = _comparator(provider).fetch_rates(ITEMS, "A", "B")
    assert rates == RATES
    assert provider.polls == 3
    assert len(provider.submitted) == 1


def test_times_out_when_never_done():
    provider = FakeProvider(done_after=None)
    with pytest.raises(ExternalServiceTimeoutError):
        _comparator(provider, interval=0.01, timeout=0.05).fetch_rates(ITEMS, "A", "B")
    assert provider.polls >= 1


def test_cancel_event_stops_polling():
    cancel = threading.Event()
    cancel.set()
    provider = FakeProvider(done_after=None)
    with pytest.raises(ExternalServiceError):
        _comparator(provider, interval=1, timeout=30).wait_for_rates("req-1", cancel=cancel)
    assert provider.polls == 0


def test_compare_reports_lowest_external_quote():
    comparison = _comparator(FakeProvider()).compare(ITEMS, "A", "B", internal_price_cents=10350)
    data = comparison.to_dict()

    assert data["internalPrice"] == 10350
    assert data["freightApiLowestPrice"] == 9877
    assert data["differenceCents"] == 9877 - 10350
    assert [r["totalPriceCents"] for r in data["freightApiRates"]] == [12345, 9877]
    assert data["freightApiRates"][1] == {
        "serviceId": "b.eco",
        "serviceName": "Economy",
        "carrierName": "B",
        "totalPrice": 98.765,
        "totalPriceCents": 9877,
        "basePrice": 80.0,
        "currency": "CAD",
        "transitTimeDays": 6,
    }


def test_timeout_degrades_to_no_comparison():
    comparator = _comparator(FakeProvider(done_after=None), interval=0.01, timeout=0.05)
    assert comparator.compare(ITEMS, "A", "B", internal_price_cents=100) is None


@pytest.mark.parametrize("provider", [
    FakeProvider(submit_exc=ExternalServiceError("401")),
    FakeProvider(poll_exc=ExternalServiceError("500")),
    FakeProvider(poll_exc=RuntimeError("unexpected")),
    FakeProvider(rates=[]),
    FakeProvider(rates=[{"service_id": "x", "total": {"value": "not-a-number"}}]),
])
def test_provider_failures_degrade_to_none(provider):
    assert _comparator(provider).compare(ITEMS, "A", "B", internal_price_cents=100) is None


def test_missing_provider_or_origin_skips_call():
    assert _comparator(None).compare(ITEMS, "A", "B", 100) is None
    provider = FakeProvider()
    assert _comparator(provider).compare(ITEMS, None, "B", 100) is None
    assert provider.submitted == []


def test_quote_returns_raw_rates_without_internal_price():
    outcome = _comparator(FakeProvider()).quote(ITEMS, "A", "B", None)
    assert outcome.rates == RATES
    assert outcome.comparison is None


def test_build_from_settings():
    no_key = build_quote_comparator(Settings(FREIGHTCOM_API_KEY=None))
    assert no_key.provider is None

    cmp = build_quote_comparator(Settings(
        FREIGHTCOM_API_KEY="fc-key", QUOTE_POLL_INTERVAL_SEC=0.5, QUOTE_POLL_TIMEOUT_SEC=12,
    ))
    assert isinstance(cmp.provider, FreightcomClient)
    assert (cmp.poll_interval_sec, cmp.poll_timeout_sec) == (0.5, 12)
    cmp.provider.close()


class SlowProvider(FakeProvider):
    """submit / poll 卡住 delay 秒，模拟迟迟不返回的 HTTP 请求。"""

    def __init__(self, delay=1.5, slow_submit=False, **kw):
        super().__init__(done_after=None, **kw)
        self.delay = delay
        self.slow_submit = slow_submit

    def submit(self, rate_request):
        if self.slow_submit:
            time.sleep(self.delay)
        return super().submit(rate_request)

    def poll(self, request_id):
        time.sleep(self.delay)
        return super().poll(request_id)


def test_slow_poll_cannot_outlast_deadline():
    comparator = _comparator(SlowProvider(), interval=0.05, timeout=0.5)

    started = time.monotonic()
    with pytest.raises(ExternalServiceTimeoutError):
        comparator.wait_for_rates("req-1")
    assert time.monotonic() - started < 1.0


def test_deadline_covers_submit():
    provider = SlowProvider(slow_submit=True)
    comparator = _comparator(provider, interval=0.05, timeout=0.5)

    started = time.monotonic()
    with pytest.raises(ExternalServiceTimeoutError):
        comparator.fetch_rates(ITEMS, "A", "B")
    assert time.monotonic() - started < 1.0
    assert provider.polls == 0


def test_slow_provider_degrades_within_deadline():
    comparator = _comparator(SlowProvider(), interval=0.05, timeout=0.5)

    started = time.monotonic()
    outcome = comparator.quote(ITEMS, "A", "B", internal_price_cents=100)
    assert (outcome.rates, outcome.comparison) == (None, None)
    assert time.monotonic() - started < 1.0
