"""
app/accommodation/domain/types.py

定价与可用性的值类型 - 纯数据，不依赖 ORM

月份、星期使用枚举集合表示，替代数据库中的 JSON 数组包含判断。
所有价格统一为两位小数的 Decimal。
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum, IntEnum
from typing import FrozenSet, Iterable, List, Optional, Union

TWO_PLACES = Decimal("0.01")


def to_money(value: Union[Decimal, int, str, float]) -> Decimal:
    """转换为两位小数金额（float 先转字符串，避免二进制误差）"""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


# ============== 枚举定义 ==============

class Month(IntEnum):
    """月份"""
    JANUARY = 1
    FEBRUARY = 2
    MARCH = 3
    APRIL = 4
    MAY = 5
    JUNE = 6
    JULY = 7
    AUGUST = 8
    SEPTEMBER = 9
    OCTOBER = 10
    NOVEMBER = 11
    DECEMBER = 12


class Weekday(str, Enum):
    """星期（取值为英文全称，与前端及历史数据保持一致）"""
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def of(cls, day: date) -> "Weekday":
        # date.weekday(): 周一为 0，与声明顺序一致，不受 locale 影响
        return list(cls)[day.weekday()]


class Tier(str, Enum):
    """价格来源层级"""
    DEFAULT = "default"          # 未配置季节定价，使用房间默认价
    BASE = "base"                # 季节定价基础价
    PEAK_SEASON = "peak_season"  # 旺季
    HIGH_SEASON = "high_season"  # 高季
    LOW_SEASON = "low_season"    # 淡季
    WEEKEND = "weekend"          # 周末


class BookingStatus(str, Enum):
    """预订状态枚举"""
    PENDING = "Pending"          # 待确认
    RESERVED = "Reserved"        # 已预留
    CHECKED_IN = "Checked-In"    # 已入住
    CHECKED_OUT = "Checked-Out"  # 已退房
    CANCELED = "Canceled"        # 已取消


# 不占用日期的预订状态
NON_OCCUPYING_STATUSES = frozenset({BookingStatus.CANCELED, BookingStatus.CHECKED_OUT})


def is_occupying(status: Union[BookingStatus, str]) -> bool:
    """预订是否占用其日期区间"""
    return BookingStatus(status) not in NON_OCCUPYING_STATUSES


def parse_months(values: Optional[Iterable]) -> FrozenSet[Month]:
    """将 [12, "1", ...] 之类的原始值转换为月份集合"""
    if not values:
        return frozenset()
    return frozenset(Month(int(v)) for v in values)


def parse_weekdays(values: Optional[Iterable]) -> FrozenSet[Weekday]:
    """将 ["Saturday", "sunday"] 之类的原始值转换为星期集合"""
    if not values:
        return frozenset()
    return frozenset(Weekday(str(v).strip().capitalize()) for v in values)


# ============== 季节定价规则 ==============

@dataclass(frozen=True)
class SeasonTier:
    """季节档位：价格 + 适用月份"""
    price: Decimal
    months: FrozenSet[Month] = frozenset()

    def applies_to(self, night: date) -> bool:
        return Month(night.month) in self.months


@dataclass(frozen=True)
class SeasonalRuleSet:
    """
    单个房间的季节定价配置

    由存储层构造并保证每个房间最多一个生效配置；
    解析器只读取传入的这一个值，不再做去重。
    """
    base_price: Decimal
    weekend_price: Optional[Decimal] = None
    weekend_days: FrozenSet[Weekday] = frozenset()
    peak: Optional[SeasonTier] = None
    high: Optional[SeasonTier] = None
    low: Optional[SeasonTier] = None
    is_active: bool = True

    def season_tiers(self):
        """按优先级返回 (tier, 档位)：旺季 > 高季 > 淡季"""
        return (
            (Tier.PEAK_SEASON, self.peak),
            (Tier.HIGH_SEASON, self.high),
            (Tier.LOW_SEASON, self.low),
        )


# ============== 快照（调用方提供的一致性读取结果） ==============

@dataclass(frozen=True)
class RoomSnapshot:
    id: int
    business_id: int
    room_number: str
    base_price: Decimal


@dataclass(frozen=True)
class BookingSnapshot:
    id: int
    room_id: int
    business_id: int
    check_in_date: date
    check_out_date: date
    status: BookingStatus


@dataclass(frozen=True)
class BlockedRange:
    """封房区间 [start_date, end_date)"""
    id: int
    room_id: int
    business_id: int
    start_date: date
    end_date: date


# ============== 计算结果 ==============

@dataclass(frozen=True)
class NightlyRate:
    price: Decimal
    tier: Tier


@dataclass(frozen=True)
class PriceBreakdownEntry:
    """单晚价格明细"""
    date: date
    weekday_name: str
    resolved_price: Decimal
    tier: Tier

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "weekday_name": self.weekday_name,
            "price": self.resolved_price,
            "tier": self.tier.value,
        }


@dataclass(frozen=True)
class StayQuote:
    """整段住宿报价"""
    check_in: date
    check_out: date
    breakdown: List[PriceBreakdownEntry] = field(default_factory=list)
    total: Decimal = Decimal("0.00")
    nights: int = 0
