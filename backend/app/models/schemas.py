"""
Pydantic 模式定义
用于 API 请求/响应验证
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from app.models.ontology import RoomStatus, BookingSource, BlockReason
from app.accommodation.domain.types import BookingStatus, Month, Weekday, parse_weekdays


# ============== 房间 Schemas ==============

class RoomBase(BaseModel):
    room_number: str = Field(..., max_length=20)
    room_type: Optional[str] = Field(None, max_length=50)
    base_price: Decimal = Field(..., ge=0, decimal_places=2)
    capacity: int = Field(default=2, ge=1)
    description: Optional[str] = None


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    """business_id 不可修改，故不在此列"""
    room_number: Optional[str] = Field(None, max_length=20)
    room_type: Optional[str] = Field(None, max_length=50)
    base_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    capacity: Optional[int] = Field(None, ge=1)
    description: Optional[str] = None
    status: Optional[RoomStatus] = None


class RoomResponse(RoomBase):
    id: int
    business_id: int
    status: RoomStatus
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class AvailableRoomResponse(RoomResponse):
    """可用房间 + 该日期段报价"""
    nightly_price: Decimal
    total_price: Decimal
    nights: int


# ============== 季节定价 Schemas ==============

def _validate_months(value):
    if value is None:
        return value
    return sorted({Month(int(m)).value for m in value})


def _validate_weekdays(value):
    if value is None:
        return value
    order = list(Weekday)
    return [d.value for d in sorted(parse_weekdays(value), key=order.index)]


class SeasonalPricingFields(BaseModel):
    """季节定价可修改字段；未出现的字段在更新时保持不变"""
    base_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    weekend_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    weekend_days: Optional[List[str]] = None
    peak_season_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    peak_season_months: Optional[List[int]] = None
    high_season_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    high_season_months: Optional[List[int]] = None
    low_season_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    low_season_months: Optional[List[int]] = None
    is_active: Optional[bool] = None

    @field_validator("peak_season_months", "high_season_months", "low_season_months")
    @classmethod
    def validate_months(cls, v):
        try:
            return _validate_months(v)
        except ValueError:
            raise ValueError("月份必须在 1-12 之间")

    @field_validator("weekend_days")
    @classmethod
    def validate_weekdays(cls, v):
        try:
            return _validate_weekdays(v)
        except ValueError:
            raise ValueError("星期必须为 Monday-Sunday")


class SeasonalPricingCreate(SeasonalPricingFields):
    business_id: int
    room_id: int
    base_price: Decimal = Field(..., ge=0, decimal_places=2)
    is_active: bool = True


class SeasonalPricingUpdate(SeasonalPricingFields):
    pass


class SeasonalPricingUpsert(SeasonalPricingFields):
    business_id: int
    room_id: int


class SeasonalPricingResponse(BaseModel):
    id: int
    business_id: int
    room_id: int
    room_number: Optional[str] = None
    base_price: Decimal
    weekend_price: Optional[Decimal] = None
    weekend_days: List[str] = []
    peak_season_price: Optional[Decimal] = None
    peak_season_months: List[int] = []
    high_season_price: Optional[Decimal] = None
    high_season_months: List[int] = []
    low_season_price: Optional[Decimal] = None
    low_season_months: List[int] = []
    is_active: bool
    created_at: datetime
    updated_at: datetime


class NightlyPriceResponse(BaseModel):
    date: date
    weekday_name: str
    price: Decimal
    tier: str


class PriceRangeSummary(BaseModel):
    total_price: Decimal
    nights: int
    check_in: date
    check_out: date


class PriceRangeResponse(BaseModel):
    breakdown: List[NightlyPriceResponse]
    summary: PriceRangeSummary


# ============== 预订 Schemas ==============

class BookingBase(BaseModel):
    room_id: int
    business_id: int
    check_in_date: date
    check_out_date: date
    pax: int = Field(default=1, ge=1)
    tourist_id: Optional[int] = None
    guest_name: Optional[str] = Field(None, max_length=100)
    guest_phone: Optional[str] = Field(None, max_length=20)
    guest_email: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def check_dates(self):
        if self.check_out_date <= self.check_in_date:
            raise ValueError("离店日期必须晚于入住日期")
        return self


class BookingCreate(BookingBase):
    status: BookingStatus = BookingStatus.PENDING
    quoted_total: Optional[Decimal] = Field(None, ge=0)  # 客户端看到的报价，用于一致性校验

    @field_validator("status")
    @classmethod
    def validate_initial_status(cls, v):
        if v not in (BookingStatus.PENDING, BookingStatus.RESERVED):
            raise ValueError("新预订状态只能为 Pending 或 Reserved")
        return v


class WalkInBookingCreate(BookingBase):
    immediate_checkin: bool = True
    quoted_total: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_guest(self):
        # 未关联游客账号时必须登记客人姓名
        if self.tourist_id is None and not (self.guest_name or "").strip():
            raise ValueError("未关联游客时必须填写客人姓名")
        return self


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    cancellation_reason: Optional[str] = None


class BookingReschedule(BaseModel):
    check_in_date: date
    check_out_date: date
    quoted_total: Optional[Decimal] = Field(None, ge=0)


class BookingResponse(BaseModel):
    id: int
    room_id: int
    business_id: int
    tourist_id: Optional[int] = None
    check_in_date: date
    check_out_date: date
    nights: int
    pax: int
    total_price: Decimal
    balance: Decimal
    status: BookingStatus
    booking_source: BookingSource
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    guest_email: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== 封房 Schemas ==============

class BlockedDateBase(BaseModel):
    business_id: int
    start_date: date
    end_date: date
    block_reason: BlockReason = BlockReason.MAINTENANCE
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("结束日期必须晚于开始日期")
        return self


class BlockedDateCreate(BlockedDateBase):
    room_id: int


class BulkBlockedDateCreate(BlockedDateBase):
    room_ids: List[int] = Field(..., min_length=1)


class BlockedDateResponse(BaseModel):
    id: int
    room_id: int
    business_id: int
    start_date: date
    end_date: date
    block_reason: BlockReason
    notes: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class BulkBlockError(BaseModel):
    room_id: int
    error: str


class BulkBlockSummary(BaseModel):
    total: int
    success: int
    failed: int


class BulkBlockResponse(BaseModel):
    created: List[BlockedDateResponse]
    errors: List[BulkBlockError]
    summary: BulkBlockSummary


class RoomAvailabilityResponse(BaseModel):
    room_id: int
    start_date: date
    end_date: date
    availability_status: str
