import logging
from types import SimpleNamespace

from freight_rate.core.config import Settings
from freight_rate.core.logging import (
    LOG_FORMAT, RateContextFilter, configure_logging, current_rate_context, rate_log_context,
)
from freight_rate.services.freight.freight_cal_service import calculate_and_record, calculate_with_comparison
from freight_rate.services.freight.freight_compute import CartItem
from freight_rate.services.freight.freight_rate_service import RateCalculationResult, RateRequest
from freight_rate.services.freight.distance_resolver import DistanceResolution
from freight_rate.services.freight.quote_comparator import QuoteComparator, QuoteOutcome


ITEMS = [CartItem(weight_g=5000, length_mm=300, width_mm=200, height_mm=150, quantity=1)]


def _record():
    return logging.LogRecord("freight_rate.test", logging.INFO, __file__, 1, "hello", None, None)


def test_context_is_scoped_and_restored():
    assert current_rate_context() == "-"
    with rate_log_context(dest="H3B 4W8", strategy="routing", warehouse=None) as outer:
        assert outer == "dest=H3B 4W8 strategy=routing"
        with rate_log_context(dest="K1A"):
            assert current_rate_context() == "dest=K1A"
        assert current_rate_context() == outer
    assert current_rate_context() == "-"


def test_filter_stamps_records_for_format():
    record = _record()
    with rate_log_context(dest="H3B"):
        assert RateContextFilter().filter(record) is True
    assert record.rate_ctx == "dest=H3B"
    assert "dest=H3B | hello" in logging.Formatter(LOG_FORMAT).format(record)


def test_configure_logging_attaches_filter_once(monkeypatch):
    root = logging.getLogger()
    handler = logging.StreamHandler()
    monkeypatch.setattr(root, "handlers", [handler])

    configure_logging("INFO")
    configure_logging("INFO")
    assert sum(isinstance(f, RateContextFilter) for f in handler.filters) == 1


def _cfg(**kw):
    base = dict(DISTANCE_STRATEGY="estimate", RATE_TABLE_MODE="range", RATE_HISTORY_ENABLED=False, FREIGHTCOM_API_KEY=None)
    base.update(kw)
    return Settings(**base)


def test_calculate_and_record_logs_under_request_context():
    seen = {}

    def calculate(req):
        seen["ctx"] = current_rate_context()
        return SimpleNamespace(final_price_cents=1, freight_class="500", distance_km=10.0, selected_warehouse_id=None)

    calculate_and_record(None, RateRequest(items=ITEMS, destination_postal_code="H3B 4W8"),
                         calculator=SimpleNamespace(calculate=calculate), cfg=_cfg())
    assert seen["ctx"] == "dest=H3B 4W8 strategy=estimate mode=range"
    assert current_rate_context() == "-"


def test_quote_thread_inherits_request_context():
    seen = {}

    class _Comparator(QuoteComparator):
        def quote(self, items, origin, destination, internal_price_cents, service_id=None, cancel=None):
            seen["quote_ctx"] = current_rate_context()
            return QuoteOutcome(rates=None, comparison=None)

    resolver = SimpleNamespace(resolve=lambda *a, **kw: DistanceResolution(
        origin_postal_code="M5V 2T6", distance_km=120.0, selected_warehouse_id=None))
    result = RateCalculationResult(
        final_price_cents=5175, freight_class="500", density=0.02, distance_km=120.0,
        origin_postal_code="M5V 2T6", selected_warehouse_id=None, applicable_rates=[],
    )
    calculator = SimpleNamespace(distance_resolver=resolver, calculate_rate=lambda *a, **kw: result)

    out = calculate_with_comparison(
        None, RateRequest(items=ITEMS, destination_postal_code="H3B 4W8"),
        calculator=calculator, comparator=_Comparator(None), cfg=_cfg(DISTANCE_STRATEGY="routing"),
    )
    assert seen["quote_ctx"] == "dest=H3B 4W8 strategy=routing mode=range"
    assert out.comparison is None
