"""
预订服务 - 本体操作层
管理 Booking 对象（预订阶段的聚合根）

可用性检查、报价与写入在同一事务内完成：先锁定房间行，
再重新检查冲突并计算价格，最后写入。数据库层的约束兜底并发写入。
"""
from typing import Callable, List, Optional
from datetime import date
from decimal import Decimal
import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from app.models.ontology import Room, Booking, RoomStatus, BookingSource
from app.models.schemas import (
    BookingCreate, WalkInBookingCreate, BookingStatusUpdate, BookingReschedule,
)
from app.models.events import (
    EventType, BookingCreatedData, BookingStatusChangedData, BookingRescheduledData,
)
from app.services.event_bus import Event, publish_event
from app.services.room_service import load_occupying_bookings, load_blocked_ranges
from app.services.seasonal_pricing_service import SeasonalPricingService
from app.accommodation.domain import (
    BookingStatus, StayQuote, BookingConflict, BookingNotFound, RoomNotFound,
    InvalidDateRange, InvalidStatusTransition, QuoteMismatch,
    compute_stay_price, conflicting_room_ids, to_money,
)

logger = logging.getLogger(__name__)


# 允许的状态变更
STATUS_TRANSITIONS = {
    BookingStatus.PENDING: {
        BookingStatus.RESERVED, BookingStatus.CHECKED_IN, BookingStatus.CANCELED,
    },
    BookingStatus.RESERVED: {BookingStatus.CHECKED_IN, BookingStatus.CANCELED},
    BookingStatus.CHECKED_IN: {BookingStatus.CHECKED_OUT},
    BookingStatus.CHECKED_OUT: set(),
    BookingStatus.CANCELED: set(),
}

# 可改期的状态
RESCHEDULABLE_STATUSES = {BookingStatus.PENDING, BookingStatus.RESERVED}


class BookingService:
    """预订服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publisher = event_publisher
        self.pricing_service = SeasonalPricingService(db, event_publisher)

    # ============== 查询 ==============

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        """获取单个预订"""
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def get_booking_or_raise(self, booking_id: int) -> Booking:
        booking = self.get_booking(booking_id)
        if not booking:
            raise BookingNotFound(booking_id)
        return booking

    def get_bookings(self, business_id: int,
                     status: Optional[BookingStatus] = None) -> List[Booking]:
        """获取商家预订列表"""
        query = self.db.query(Booking).filter(Booking.business_id == business_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.check_in_date.desc(), Booking.id.desc()).all()

    def get_room_bookings(self, room_id: int) -> List[Booking]:
        return self.db.query(Booking).filter(
            Booking.room_id == room_id
        ).order_by(Booking.check_in_date).all()

    # ============== 可用性与报价 ==============

    def _lock_room(self, room_id: int, business_id: Optional[int] = None) -> Room:
        """锁定房间行（PostgreSQL 行锁；SQLite 由 BEGIN IMMEDIATE 持有写锁，见 configure_sqlite_locking）"""
        room = self.db.query(Room).filter(Room.id == room_id).with_for_update().first()
        if not room or (business_id is not None and room.business_id != business_id):
            raise RoomNotFound(room_id)
        return room

    def _assert_room_available(self, room: Room, start: date, end: date,
                               exclude_booking_id: Optional[int] = None) -> None:
        bookings = load_occupying_bookings(self.db, start, end, room_id=room.id)
        if room.id in conflicting_room_ids(start, end, bookings,
                                           exclude_booking_id=exclude_booking_id):
            raise BookingConflict(room.id, start, end, reason="BOOKED")

        blocks = load_blocked_ranges(self.db, start, end, room_id=room.id)
        if room.id in conflicting_room_ids(start, end, blocked_ranges=blocks):
            raise BookingConflict(room.id, start, end, reason="BLOCKED")

    def _quote(self, room: Room, start: date, end: date,
               quoted_total: Optional[Decimal] = None) -> StayQuote:
        quote = compute_stay_price(room, self.pricing_service.get_rule_set(room.id), start, end)
        if quoted_total is not None and to_money(quoted_total) != quote.total:
            raise QuoteMismatch(to_money(quoted_total), quote.total)
        return quote

    def _commit(self, room_id: int, start: date, end: date) -> None:
        """提交事务；唯一/排他约束冲突转换为 BookingConflict"""
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Booking conflict on room {room_id} for {start}..{end}: {e.orig}")
            raise BookingConflict(room_id, start, end)

    def _place(self, data, status: BookingStatus, source: BookingSource,
               quoted_total: Optional[Decimal]) -> Booking:
        if data.check_out_date <= data.check_in_date:
            raise InvalidDateRange(data.check_in_date, data.check_out_date)

        try:
            room = self._lock_room(data.room_id, data.business_id)
            self._assert_room_available(room, data.check_in_date, data.check_out_date)
            quote = self._quote(room, data.check_in_date, data.check_out_date, quoted_total)
        except ValueError:
            self.db.rollback()
            raise

        booking = Booking(
            business_id=data.business_id,
            room_id=room.id,
            tourist_id=data.tourist_id,
            check_in_date=data.check_in_date,
            check_out_date=data.check_out_date,
            pax=data.pax,
            total_price=quote.total,
            balance=quote.total,
            status=status,
            booking_source=source,
            guest_name=data.guest_name,
            guest_phone=data.guest_phone,
            guest_email=data.guest_email,
        )
        self.db.add(booking)
        if status == BookingStatus.CHECKED_IN:
            room.status = RoomStatus.OCCUPIED

        self._commit(room.id, data.check_in_date, data.check_out_date)
        self.db.refresh(booking)
        logger.info(
            f"Booking {booking.id} created: room {room.room_number}, "
            f"{booking.check_in_date}..{booking.check_out_date}, total {booking.total_price}"
        )

        publish_event(
            EventType.BOOKING_CREATED,
            BookingCreatedData(
                booking_id=booking.id,
                business_id=booking.business_id,
                room_id=room.id,
                room_number=room.room_number,
                check_in_date=booking.check_in_date,
                check_out_date=booking.check_out_date,
                nights=quote.nights,
                total_price=quote.total,
                status=booking.status.value,
                booking_source=source.value,
                guest_name=booking.guest_name or "",
            ),
            source="booking_service",
            publisher=self._publisher,
        )
        return booking

    # ============== 写操作 ==============

    def create_booking(self, data: BookingCreate) -> Booking:
        """创建线上预订（价格以事务内重新计算的结果为准）"""
        return self._place(data, data.status, BookingSource.ONLINE, data.quoted_total)

    def create_walk_in_booking(self, data: WalkInBookingCreate) -> Booking:
        """前台散客预订：默认立即入住"""
        status = BookingStatus.CHECKED_IN if data.immediate_checkin else BookingStatus.RESERVED
        return self._place(data, status, BookingSource.WALK_IN, data.quoted_total)

    def update_status(self, booking_id: int, data: BookingStatusUpdate) -> Booking:
        """变更预订状态"""
        booking = self.get_booking_or_raise(booking_id)
        old_status = booking.status
        new_status = data.status

        if new_status == old_status:
            return booking
        if new_status not in STATUS_TRANSITIONS.get(old_status, set()):
            raise InvalidStatusTransition(old_status.value, new_status.value)

        booking.status = new_status
        if new_status == BookingStatus.CANCELED:
            booking.cancellation_reason = data.cancellation_reason
        elif new_status == BookingStatus.CHECKED_IN:
            booking.room.status = RoomStatus.OCCUPIED
        elif new_status == BookingStatus.CHECKED_OUT:
            booking.room.status = RoomStatus.AVAILABLE

        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} status {old_status.value} -> {new_status.value}")

        publish_event(
            EventType.BOOKING_STATUS_CHANGED,
            BookingStatusChangedData(
                booking_id=booking.id,
                business_id=booking.business_id,
                room_id=booking.room_id,
                old_status=old_status.value,
                new_status=new_status.value,
                cancellation_reason=booking.cancellation_reason or "",
            ),
            source="booking_service",
            publisher=self._publisher,
        )
        return booking

    def reschedule_booking(self, booking_id: int, data: BookingReschedule) -> Booking:
        """改期：重新检查可用性（排除自身）并重新计价"""
        booking = self.get_booking_or_raise(booking_id)
        if booking.status not in RESCHEDULABLE_STATUSES:
            raise ValueError(f"状态为 {booking.status.value} 的预订不能改期")
        if data.check_out_date <= data.check_in_date:
            raise InvalidDateRange(data.check_in_date, data.check_out_date)

        old_check_in, old_check_out = booking.check_in_date, booking.check_out_date
        old_total = booking.total_price

        try:
            room = self._lock_room(booking.room_id)
            self._assert_room_available(room, data.check_in_date, data.check_out_date,
                                        exclude_booking_id=booking.id)
            quote = self._quote(room, data.check_in_date, data.check_out_date,
                                data.quoted_total)
        except ValueError:
            self.db.rollback()
            raise

        paid = to_money(booking.total_price) - to_money(booking.balance)
        booking.check_in_date = data.check_in_date
        booking.check_out_date = data.check_out_date
        booking.total_price = quote.total
        booking.balance = quote.total - paid

        self._commit(room.id, data.check_in_date, data.check_out_date)
        self.db.refresh(booking)
        logger.info(
            f"Booking {booking.id} rescheduled {old_check_in}..{old_check_out} -> "
            f"{booking.check_in_date}..{booking.check_out_date}"
        )

        publish_event(
            EventType.BOOKING_RESCHEDULED,
            BookingRescheduledData(
                booking_id=booking.id,
                business_id=booking.business_id,
                room_id=booking.room_id,
                old_check_in=old_check_in,
                old_check_out=old_check_out,
                new_check_in=booking.check_in_date,
                new_check_out=booking.check_out_date,
                old_total=to_money(old_total),
                new_total=quote.total,
            ),
            source="booking_service",
            publisher=self._publisher,
        )
        return booking
