"""
本体对象定义 (Ontology Objects)
住宿业务实体：商家、房间、季节定价、预订、封房
"""
import json
from datetime import datetime
from enum import Enum
from typing import Optional
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, ForeignKey, Text,
    Enum as SQLEnum, Boolean, Numeric, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship
from app.database import Base
from app.accommodation.domain.types import (
    BookingStatus, BlockedRange, BookingSnapshot,
    SeasonTier, SeasonalRuleSet, parse_months, parse_weekdays,
)


# ============== 枚举定义 ==============

class RoomStatus(str, Enum):
    """房间状态枚举"""
    AVAILABLE = "Available"          # 空闲
    OCCUPIED = "Occupied"            # 入住中
    MAINTENANCE = "Maintenance"      # 维修中


class BookingSource(str, Enum):
    """预订来源"""
    ONLINE = "online"                # 线上
    WALK_IN = "walk-in"              # 前台散客


class BlockReason(str, Enum):
    """封房原因"""
    MAINTENANCE = "Maintenance"
    RENOVATION = "Renovation"
    PRIVATE = "Private"
    SEASONAL = "Seasonal"
    OTHER = "Other"


def _dump_list(values) -> Optional[str]:
    if values is None:
        return None
    return json.dumps([v.value if isinstance(v, Enum) else v for v in values])


def _load_list(raw: Optional[str]) -> list:
    if not raw:
        return []
    parsed = json.loads(raw)
    return parsed if isinstance(parsed, list) else []


# ============== 本体对象定义 ==============

class Business(Base):
    """
    商家对象
    商家本身的增删改由外部服务负责，这里只保存引用所需字段
    """
    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True, index=True)
    business_name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    rooms = relationship("Room", back_populates="business")


class Room(Base):
    """
    房间对象
    business_id 创建后不可修改；base_price 为未配置季节定价时的默认价
    """
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    room_number = Column(String(20), nullable=False)              # 房间号
    room_type = Column(String(50))                                # 房型
    base_price = Column(Numeric(10, 2), nullable=False)           # 默认价格
    capacity = Column(Integer, default=2)                         # 可住人数
    description = Column(Text)
    status = Column(SQLEnum(RoomStatus), default=RoomStatus.AVAILABLE)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 链接
    business = relationship("Business", back_populates="rooms")
    bookings = relationship("Booking", back_populates="room")
    seasonal_pricings = relationship("SeasonalPricing", back_populates="room")
    blocked_dates = relationship("RoomBlockedDate", back_populates="room")


class SeasonalPricing(Base):
    """
    季节定价配置
    月份与星期以 JSON 数组存储，读取时转换为类型化集合
    """
    __tablename__ = "seasonal_pricing"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    weekend_price = Column(Numeric(10, 2))
    weekend_days = Column(Text)                                   # ["Saturday", "Sunday"]
    peak_season_price = Column(Numeric(10, 2))
    peak_season_months = Column(Text)                             # [12, 1]
    high_season_price = Column(Numeric(10, 2))
    high_season_months = Column(Text)
    low_season_price = Column(Numeric(10, 2))
    low_season_months = Column(Text)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    room = relationship("Room", back_populates="seasonal_pricings")

    LIST_FIELDS = (
        "weekend_days", "peak_season_months", "high_season_months", "low_season_months",
    )

    def set_list(self, name: str, values) -> None:
        setattr(self, name, _dump_list(values))

    def get_list(self, name: str) -> list:
        return _load_list(getattr(self, name))

    def _tier(self, price, months_field: str) -> Optional[SeasonTier]:
        if price is None:
            return None
        return SeasonTier(price=price, months=parse_months(self.get_list(months_field)))

    def to_rule_set(self) -> SeasonalRuleSet:
        """转换为解析器使用的值类型"""
        return SeasonalRuleSet(
            base_price=self.base_price,
            weekend_price=self.weekend_price,
            weekend_days=parse_weekdays(self.get_list("weekend_days")),
            peak=self._tier(self.peak_season_price, "peak_season_months"),
            high=self._tier(self.high_season_price, "high_season_months"),
            low=self._tier(self.low_season_price, "low_season_months"),
            is_active=bool(self.is_active),
        )


class Booking(Base):
    """
    预订对象
    check_out_date 为离店日，当晚不计价也不占用
    """
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="ck_booking_dates"),
        Index("ix_bookings_room_dates", "room_id", "check_in_date", "check_out_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)
    tourist_id = Column(Integer)                                  # 游客账号（外部用户服务）
    check_in_date = Column(Date, nullable=False)                  # 入住日期
    check_out_date = Column(Date, nullable=False)                 # 离店日期
    pax = Column(Integer, default=1)                              # 入住人数
    total_price = Column(Numeric(10, 2), nullable=False)          # 报价总价
    balance = Column(Numeric(10, 2), default=0)                   # 待付余额
    status = Column(SQLEnum(BookingStatus), default=BookingStatus.PENDING, nullable=False)
    booking_source = Column(SQLEnum(BookingSource), default=BookingSource.ONLINE)
    guest_name = Column(String(100))
    guest_phone = Column(String(20))
    guest_email = Column(String(100))
    cancellation_reason = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    room = relationship("Room", back_populates="bookings")

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days

    def to_snapshot(self) -> BookingSnapshot:
        return BookingSnapshot(
            id=self.id,
            room_id=self.room_id,
            business_id=self.business_id,
            check_in_date=self.check_in_date,
            check_out_date=self.check_out_date,
            status=self.status,
        )


class RoomBlockedDate(Base):
    """
    封房记录 [start_date, end_date)
    用于维修、自用等不对外销售的日期
    """
    __tablename__ = "room_blocked_dates"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_blocked_dates"),
    )

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    block_reason = Column(SQLEnum(BlockReason), default=BlockReason.MAINTENANCE)
    notes = Column(Text)
    created_by = Column(Integer)                                  # 操作人（外部用户服务）
    created_at = Column(DateTime, default=datetime.utcnow)

    room = relationship("Room", back_populates="blocked_dates")

    def to_snapshot(self) -> BlockedRange:
        return BlockedRange(
            id=self.id,
            room_id=self.room_id,
            business_id=self.business_id,
            start_date=self.start_date,
            end_date=self.end_date,
        )
