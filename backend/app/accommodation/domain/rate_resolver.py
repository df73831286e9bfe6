"""
app/accommodation/domain/rate_resolver.py

单晚价格解析

规则：
1. 无生效配置 → 房间默认价 (default)
2. 季节候选价：旺季 > 高季 > 淡季，首个包含该月份的档位胜出；均不匹配 → 基础价 (base)
3. 周末覆盖：星期在 weekend_days 中、weekend_price 已设置且严格高于候选价时生效，
   从不用于降价
"""
from datetime import date
from typing import Optional

from app.accommodation.domain.types import (
    NightlyRate, SeasonalRuleSet, Tier, Weekday, to_money,
)


def _seasonal_candidate(rule_set: SeasonalRuleSet, night: date) -> NightlyRate:
    for tier, season in rule_set.season_tiers():
        # 档位未设置价格时视为未配置
        if season is None or season.price is None:
            continue
        if season.applies_to(night):
            return NightlyRate(to_money(season.price), tier)
    return NightlyRate(to_money(rule_set.base_price), Tier.BASE)


def resolve_nightly_price(room, rule_set: Optional[SeasonalRuleSet], night: date) -> NightlyRate:
    """
    计算指定日期的单晚价格

    Args:
        room: 任意带 base_price 属性的对象（RoomSnapshot 或 ORM Room）
        rule_set: 该房间的生效配置，可为 None
        night: 入住的某一晚

    Returns:
        NightlyRate(price, tier)
    """
    if rule_set is None or not rule_set.is_active:
        return NightlyRate(to_money(room.base_price), Tier.DEFAULT)

    candidate = _seasonal_candidate(rule_set, night)

    weekend_price = rule_set.weekend_price
    if (
        weekend_price is not None
        and Weekday.of(night) in rule_set.weekend_days
        and to_money(weekend_price) > candidate.price
    ):
        return NightlyRate(to_money(weekend_price), Tier.WEEKEND)

    return candidate
