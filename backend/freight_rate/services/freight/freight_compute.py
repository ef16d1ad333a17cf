# 运费计算：密度 / 100 lbs 计费单位 / 最终价格（纯函数，不碰 DB 和网络）

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Protocol, Sequence
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
import logging, math

from freight_rate.core.errors import InvalidDimensionsError, NoApplicableRateError, ValidationError


logger = logging.getLogger(__name__)


# --------- 常量 ----------
GRAMS_PER_LB = 453.592
MM3_PER_IN3 = 16387.064
DEFAULT_MARKUP = Decimal("1.15")
RATE_SELECTIONS = ("first", "lowest")

_Q_DENSITY = Decimal("0.01")



# --------- 输入 / 输出模型 ----------
@dataclass(frozen=True)
class CartItem:
    weight_g: float
    length_mm: float
    width_mm: float
    height_mm: float
    quantity: int
    product_id: Optional[str] = None

    @property
    def weight_lbs(self) -> float:
        return self.weight_g * self.quantity / GRAMS_PER_LB

    @property
    def volume_in3(self) -> float:
        return self.length_mm * self.width_mm * self.height_mm * self.quantity / MM3_PER_IN3

    def to_dict(self) -> dict[str, Any]:
        return {
            "weight": self.weight_g,
            "length": self.length_mm,
            "width": self.width_mm,
            "height": self.height_mm,
            "quantity": self.quantity,
            "productId": self.product_id,
        }


@dataclass(frozen=True)
class ShipmentTotals:
    total_weight_lbs: float
    total_volume_in3: float
    density: float                     # lbs / in³，两位小数
    total_weight_g: float = 0.0
    total_volume_mm3: float = 0.0


class RateEntry(Protocol):
    id: Any
    price_per_100lbs: Any



# --------- 校验 ----------
"""
逐个检查 CartItem：
    - 重量必须 > 0，数量必须是正整数
    - 尺寸不能为负；为 0 的尺寸放行，由密度计算统一报体积为 0
"""
def validate_items(items: Sequence[CartItem]) -> None:
    for idx, item in enumerate(items):
        if item.weight_g is None or item.weight_g <= 0:
            raise ValidationError(f"item[{idx}] weight must be > 0, got {item.weight_g!r}")
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity <= 0:
            raise ValidationError(f"item[{idx}] quantity must be a positive integer, got {item.quantity!r}")
        for name in ("length_mm", "width_mm", "height_mm"):
            value = getattr(item, name)
            if value is None or value < 0:
                raise ValidationError(f"item[{idx}] {name} must be >= 0, got {value!r}")



# --------- 密度 ----------
def round_density(value: float) -> float:
    """两位小数，ROUND_HALF_UP（按十进制表示舍入，避免 float 的 .xx5 偏差）。"""
    return float(Decimal(str(value)).quantize(_Q_DENSITY, rounding=ROUND_HALF_UP))


def compute_totals(items: Sequence[CartItem]) -> ShipmentTotals:
    """
    汇总重量 / 体积并计算密度：
        lbs = g * qty / 453.592
        in³ = L * W * H * qty / 16387.064
        density = round2(lbs / in³)
    总体积为 0（空列表或所有件都有 0 尺寸）直接抛 InvalidDimensionsError。
    """
    validate_items(items)

    total_lbs = 0.0
    total_in3 = 0.0
    total_g = 0.0
    total_mm3 = 0.0
    for item in items:
        total_lbs += item.weight_lbs
        total_in3 += item.volume_in3
        total_g += item.weight_g * item.quantity
        total_mm3 += item.length_mm * item.width_mm * item.height_mm * item.quantity

    if total_in3 == 0:
        raise InvalidDimensionsError(
            f"Invalid item dimensions: volume cannot be zero (items={len(items)})"
        )

    density = round_density(total_lbs / total_in3)
    return ShipmentTotals(
        total_weight_lbs=total_lbs,
        total_volume_in3=total_in3,
        density=density,
        total_weight_g=total_g,
        total_volume_mm3=total_mm3,
    )


def compute_density(items: Sequence[CartItem]) -> float:
    return compute_totals(items).density



# --------- 价格 ----------
def units_100lbs(total_weight_lbs: float) -> int:
    # 不足 100 lbs 按 100 lbs 计：100.01 -> 2
    return math.ceil(total_weight_lbs / 100)


def base_price_cents(entry: RateEntry, prices_in_cents: bool = False) -> Decimal:
    """价格表存的是货币单位；历史数据若已经是分，打开 prices_in_cents 原样使用。"""
    price = Decimal(str(entry.price_per_100lbs))
    return price if prices_in_cents else price * 100


def select_rate(
    candidates: Sequence[RateEntry],
    selection: str = "first",
    prices_in_cents: bool = False,
) -> RateEntry:
    """
    从候选价格中选出计费用的一条：
        - first：直接取仓储返回的第一条（依赖仓储按价格升序）
        - lowest：按归一化后的分值显式求最小，价格相同保留先出现的
    """
    if not candidates:
        raise NoApplicableRateError("no rate candidates to select from")
    if selection not in RATE_SELECTIONS:
        raise ValueError(f"unknown rate selection {selection!r}")

    if selection == "first":
        return candidates[0]

    best = candidates[0]
    best_cents = base_price_cents(best, prices_in_cents)
    for entry in candidates[1:]:
        cents = base_price_cents(entry, prices_in_cents)
        if cents < best_cents:
            best, best_cents = entry, cents
    return best


def compute_final_price_cents(base_cents: Decimal, units: int, markup: Decimal = DEFAULT_MARKUP) -> int:
    """floor(base * units * markup)；全程 Decimal，4500 * 2 * 1.15 必须得到 10350。"""
    subtotal = Decimal(base_cents) * units * Decimal(markup)
    return int(subtotal.to_integral_value(rounding=ROUND_FLOOR))


def rate_projection(entries: Iterable[RateEntry]) -> List[dict[str, Any]]:
    # 结果里只暴露 id + 单价（货币单位）
    out: List[dict[str, Any]] = []
    for e in entries:
        price = e.price_per_100lbs
        out.append({
            "id": e.id,
            "pricePer100lbs": float(price) if isinstance(price, Decimal) else price,
        })
    return out
