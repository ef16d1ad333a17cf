# 运费计算服务装配：从 Settings + Session 组装 RateCalculator，并提供带外部报价对比的流程

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Optional
import contextvars, logging, threading

from sqlalchemy.orm import Session

from freight_rate.core.config import Settings, settings as default_settings
from freight_rate.core.errors import ValidationError
from freight_rate.core.logging import rate_log_context
from freight_rate.repository.reference_repo import (
    SqlDistanceClassRepository, SqlFreightClassRepository,
    SqlRateTableRepository, SqlWarehouseRepository,
)
from freight_rate.repository.freight_rate_repo import record_calculation
from freight_rate.services.freight.classifiers import DistanceClassifier, FreightClassifier
from freight_rate.services.freight.distance_resolver import DistanceResolver
from freight_rate.services.freight.distance_strategies import DistanceStrategy, build_distance_strategy
from freight_rate.services.freight.freight_compute import compute_totals
from freight_rate.services.freight.freight_rate_service import (
    RateCalculationResult, RateCalculator, RateRequest,
)
from freight_rate.services.freight.rate_lookup import RateLookup
from freight_rate.services.freight.quote_comparator import QuoteComparator, build_quote_comparator


logger = logging.getLogger(__name__)



def build_rate_calculator(
    db: Session,
    cfg: Optional[Settings] = None,
    strategy: Optional[DistanceStrategy] = None,
) -> RateCalculator:
    """SQL 仓储 + 配置选出的距离策略 / 价格表模式 / 选价规则。"""
    cfg = cfg or default_settings
    strategy = strategy or build_distance_strategy(cfg)

    resolver = DistanceResolver(
        strategy,
        SqlWarehouseRepository(db),
        lookup_limit=cfg.WAREHOUSE_LOOKUP_LIMIT,
        max_workers=cfg.WAREHOUSE_DISTANCE_MAX_WORKERS,
    )

    dc_classifier = DistanceClassifier(SqlDistanceClassRepository(db)) if cfg.RATE_TABLE_MODE == "distance_class" else None
    lookup = RateLookup(SqlRateTableRepository(db), mode=cfg.RATE_TABLE_MODE, distance_classifier=dc_classifier)

    return RateCalculator(
        FreightClassifier(SqlFreightClassRepository(db)),
        resolver,
        lookup,
        selection=cfg.RATE_SELECTION,
        prices_in_cents=cfg.RATE_PRICES_IN_CENTS,
        markup=cfg.MARKUP_MULTIPLIER,
    )



"""
/freight-rates/calculate：计算一次报价；开启 RATE_HISTORY_ENABLED 时顺便落一条历史记录
"""
def calculate_and_record(
    db: Session,
    req: RateRequest,
    calculator: Optional[RateCalculator] = None,
    cfg: Optional[Settings] = None,
) -> RateCalculationResult:
    cfg = cfg or default_settings
    calculator = calculator or build_rate_calculator(db, cfg)

    with rate_log_context(dest=req.destination_postal_code, strategy=cfg.DISTANCE_STRATEGY, mode=cfg.RATE_TABLE_MODE):
        result = calculator.calculate(req)
        logger.info("rate result final_price_cents=%s freight_class=%s distance_km=%s warehouse=%s",
                    result.final_price_cents, result.freight_class, result.distance_km, result.selected_warehouse_id)

        if cfg.RATE_HISTORY_ENABLED:
            record_calculation(db, req, result)
    return result



@dataclass
class ComparisonResult:
    internal: RateCalculationResult
    freight_api_rates: Optional[list]
    comparison: Optional[Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "internalCalculation": self.internal.to_dict(),
            "freightApiRates": self.freight_api_rates,
            "comparison": self.comparison,
        }



"""
/freight-calc/calculate：内部报价 + Freightcom 报价对比
    1) 先校验货物、确定起运地和距离（两边都要用）；
    2) 外部报价丢到工作线程里轮询，主线程同时算内部价格；
    3) 内部计算失败时通过 Event 取消轮询并把异常抛给调用方；
    4) 外部报价失败只会让 freightApiRates / comparison 为 None。
"""
def calculate_with_comparison(
    db: Session,
    req: RateRequest,
    service_id: Optional[str] = None,
    calculator: Optional[RateCalculator] = None,
    comparator: Optional[QuoteComparator] = None,
    cfg: Optional[Settings] = None,
) -> ComparisonResult:
    cfg = cfg or default_settings
    calculator = calculator or build_rate_calculator(db, cfg)
    comparator = comparator or build_quote_comparator(cfg)

    with rate_log_context(dest=req.destination_postal_code, strategy=cfg.DISTANCE_STRATEGY, mode=cfg.RATE_TABLE_MODE):
        return _compare(req, service_id, calculator, comparator)


def _compare(
    req: RateRequest,
    service_id: Optional[str],
    calculator: RateCalculator,
    comparator: QuoteComparator,
) -> ComparisonResult:
    if not (req.destination_postal_code or "").strip():
        raise ValidationError("Destination postal code is required")
    compute_totals(req.items)
    where = calculator.distance_resolver.resolve(
        req.destination_postal_code,
        origin_postal_code=req.origin_postal_code,
        warehouse_id=req.warehouse_id,
        distance_km=req.distance_km,
    )

    cancel = threading.Event()
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="freight-quote") as pool:
        # 工作线程不会继承 contextvars，显式带上日志上下文
        future = pool.submit(
            contextvars.copy_context().run, comparator.quote,
            req.items, where.origin_postal_code, req.destination_postal_code, None, service_id, cancel,
        )
        try:
            internal = calculator.calculate_rate(
                req.items,
                req.destination_postal_code,
                origin=where.origin_postal_code,
                distance_km=where.distance_km,
            )
        except Exception:
            cancel.set()
            raise
        outcome = future.result()

    internal.selected_warehouse_id = where.selected_warehouse_id
    logger.info("internal result final_price_cents=%s origin=%s", internal.final_price_cents, where.origin_postal_code)

    comparison = None
    if outcome.rates:
        summary = comparator.comparison_for(outcome.rates, internal.final_price_cents)
        comparison = summary.to_dict() if summary is not None else None

    return ComparisonResult(internal=internal, freight_api_rates=outcome.rates, comparison=comparison)
