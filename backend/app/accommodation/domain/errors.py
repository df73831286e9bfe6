"""
app/accommodation/domain/errors.py

领域异常

全部继承 ValueError：服务层抛出，路由层统一转换为 HTTPException。
"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional


class InvalidDateRange(ValueError):
    """离店日期必须晚于入住日期"""

    def __init__(self, start: date, end: date, message: Optional[str] = None):
        self.start = start
        self.end = end
        super().__init__(message or f"结束日期 {end} 必须晚于开始日期 {start}")


class NotFoundError(ValueError):
    """实体不存在（由存储层抛出）"""
    entity = "记录"

    def __init__(self, entity_id: Any = None):
        self.entity_id = entity_id
        super().__init__(f"{self.entity}不存在")


class BusinessNotFound(NotFoundError):
    entity = "商家"


class RoomNotFound(NotFoundError):
    entity = "房间"


class BookingNotFound(NotFoundError):
    entity = "预订"


class PricingNotFound(NotFoundError):
    entity = "季节定价"


class BlockNotFound(NotFoundError):
    entity = "封房记录"


class BookingConflict(ValueError):
    """
    预订冲突 - 其他请求刚刚预订了同一房间的重叠日期

    调用方可重试（重新查询可用房间后再下单）。
    """
    retryable = True

    def __init__(self, room_id: int, start: date, end: date, reason: str = "BOOKED"):
        self.room_id = room_id
        self.start = start
        self.end = end
        self.reason = reason
        super().__init__(f"房间在 {start} 至 {end} 不可预订 ({reason})")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_id": self.room_id,
            "start_date": self.start.isoformat(),
            "end_date": self.end.isoformat(),
            "reason": self.reason,
            "retryable": self.retryable,
        }


class QuoteMismatch(ValueError):
    """客户端报价与事务内重新计算的价格不一致"""

    def __init__(self, quoted: Decimal, actual: Decimal):
        self.quoted = quoted
        self.actual = actual
        super().__init__(f"报价已变化: 客户端 {quoted}，当前 {actual}")


class InvalidStatusTransition(ValueError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"预订状态不能从 {current} 变更为 {target}")
