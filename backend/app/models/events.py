"""
领域事件定义 (Domain Events)
通知推送等外部协作方通过订阅这些事件接入，本服务只负责发布
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, Dict, Any, List


class EventType(str, Enum):
    """事件类型枚举"""
    # 预订相关
    BOOKING_CREATED = "booking.created"
    BOOKING_STATUS_CHANGED = "booking.status_changed"
    BOOKING_RESCHEDULED = "booking.rescheduled"

    # 定价相关
    SEASONAL_PRICING_CHANGED = "seasonal_pricing.changed"

    # 房间相关
    ROOM_DATES_BLOCKED = "room.dates_blocked"
    ROOM_DATES_UNBLOCKED = "room.dates_unblocked"


@dataclass
class BaseEventData:
    """事件数据基类"""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典（日期、金额转为字符串，便于 JSON 序列化）"""
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, (datetime, date)):
                result[key] = value.isoformat()
            elif isinstance(value, Decimal):
                result[key] = str(value)
        return result


@dataclass
class BookingCreatedData(BaseEventData):
    """预订创建事件数据"""
    booking_id: int = 0
    business_id: int = 0
    room_id: int = 0
    room_number: str = ""
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    nights: int = 0
    total_price: Decimal = Decimal("0.00")
    status: str = ""
    booking_source: str = ""
    guest_name: str = ""


@dataclass
class BookingStatusChangedData(BaseEventData):
    """预订状态变更事件数据"""
    booking_id: int = 0
    business_id: int = 0
    room_id: int = 0
    old_status: str = ""
    new_status: str = ""
    cancellation_reason: str = ""


@dataclass
class BookingRescheduledData(BaseEventData):
    """改期事件数据"""
    booking_id: int = 0
    business_id: int = 0
    room_id: int = 0
    old_check_in: Optional[date] = None
    old_check_out: Optional[date] = None
    new_check_in: Optional[date] = None
    new_check_out: Optional[date] = None
    old_total: Decimal = Decimal("0.00")
    new_total: Decimal = Decimal("0.00")


@dataclass
class SeasonalPricingChangedData(BaseEventData):
    """季节定价变更事件数据"""
    pricing_id: int = 0
    business_id: int = 0
    room_id: int = 0
    action: str = ""  # created, updated, deleted
    is_active: bool = True


@dataclass
class RoomDatesBlockedData(BaseEventData):
    """封房 / 解封事件数据"""
    block_id: int = 0
    business_id: int = 0
    room_id: int = 0
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    block_reason: str = ""


# 事件数据类型映射
EVENT_DATA_CLASSES = {
    EventType.BOOKING_CREATED: BookingCreatedData,
    EventType.BOOKING_STATUS_CHANGED: BookingStatusChangedData,
    EventType.BOOKING_RESCHEDULED: BookingRescheduledData,
    EventType.SEASONAL_PRICING_CHANGED: SeasonalPricingChangedData,
    EventType.ROOM_DATES_BLOCKED: RoomDatesBlockedData,
    EventType.ROOM_DATES_UNBLOCKED: RoomDatesBlockedData,
}
