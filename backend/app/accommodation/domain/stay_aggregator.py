"""
app/accommodation/domain/stay_aggregator.py

整段住宿报价：逐晚调用价格解析，离店当天不计价
"""
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator, Optional

from app.accommodation.domain.errors import InvalidDateRange
from app.accommodation.domain.rate_resolver import resolve_nightly_price
from app.accommodation.domain.types import (
    PriceBreakdownEntry, SeasonalRuleSet, StayQuote, Weekday, to_money,
)


def iter_nights(check_in: date, check_out: date) -> Iterator[date]:
    """按升序遍历 [check_in, check_out)"""
    current = check_in
    while current < check_out:
        yield current
        current += timedelta(days=1)


def compute_stay_price(room, rule_set: Optional[SeasonalRuleSet],
                       check_in: date, check_out: date) -> StayQuote:
    """
    计算住宿总价及逐晚明细

    Raises:
        InvalidDateRange: check_out 不晚于 check_in
    """
    if check_out <= check_in:
        raise InvalidDateRange(check_in, check_out, "离店日期必须晚于入住日期")

    breakdown = []
    total = Decimal("0.00")
    for night in iter_nights(check_in, check_out):
        rate = resolve_nightly_price(room, rule_set, night)
        breakdown.append(PriceBreakdownEntry(
            date=night,
            weekday_name=Weekday.of(night).value,
            resolved_price=rate.price,
            tier=rate.tier,
        ))
        total += rate.price

    return StayQuote(
        check_in=check_in,
        check_out=check_out,
        breakdown=breakdown,
        total=to_money(total),
        nights=len(breakdown),
    )
