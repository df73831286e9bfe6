"""
房间服务 - 本体操作层
管理 Room 对象，并提供按日期段的可用房间查询
"""
from typing import List, Optional, Tuple
from datetime import date
import logging
from sqlalchemy.orm import Session
from app.models.ontology import Business, Room, Booking, RoomBlockedDate
from app.models.schemas import RoomCreate, RoomUpdate
from app.accommodation.domain import (
    BlockedRange, BookingSnapshot, StayQuote,
    BusinessNotFound, RoomNotFound, InvalidDateRange,
    compute_stay_price, find_available_rooms,
)
from app.accommodation.domain.types import NON_OCCUPYING_STATUSES

logger = logging.getLogger(__name__)


# ============== 快照读取 ==============

def load_occupying_bookings(db: Session, start: date, end: date,
                            business_id: Optional[int] = None,
                            room_id: Optional[int] = None) -> List[BookingSnapshot]:
    """读取与 [start, end) 重叠、且仍占用日期的预订"""
    query = db.query(Booking).filter(
        Booking.status.notin_(list(NON_OCCUPYING_STATUSES)),
        Booking.check_in_date < end,
        Booking.check_out_date > start,
    )
    if business_id is not None:
        query = query.filter(Booking.business_id == business_id)
    if room_id is not None:
        query = query.filter(Booking.room_id == room_id)
    return [b.to_snapshot() for b in query.all()]


def load_blocked_ranges(db: Session, start: date, end: date,
                        business_id: Optional[int] = None,
                        room_id: Optional[int] = None) -> List[BlockedRange]:
    """读取与 [start, end) 重叠的封房记录"""
    query = db.query(RoomBlockedDate).filter(
        RoomBlockedDate.start_date < end,
        RoomBlockedDate.end_date > start,
    )
    if business_id is not None:
        query = query.filter(RoomBlockedDate.business_id == business_id)
    if room_id is not None:
        query = query.filter(RoomBlockedDate.room_id == room_id)
    return [r.to_snapshot() for r in query.all()]


class RoomService:
    """房间服务"""

    def __init__(self, db: Session):
        self.db = db

    # ============== 房间操作 ==============

    def get_business(self, business_id: int) -> Business:
        business = self.db.query(Business).filter(Business.id == business_id).first()
        if not business:
            raise BusinessNotFound(business_id)
        return business

    def get_rooms(self, business_id: int) -> List[Room]:
        """获取商家房间列表"""
        return self.db.query(Room).filter(
            Room.business_id == business_id
        ).order_by(Room.room_number, Room.id).all()

    def get_room(self, room_id: int) -> Optional[Room]:
        """获取单个房间"""
        return self.db.query(Room).filter(Room.id == room_id).first()

    def get_room_or_raise(self, room_id: int, business_id: Optional[int] = None) -> Room:
        room = self.get_room(room_id)
        if not room or (business_id is not None and room.business_id != business_id):
            raise RoomNotFound(room_id)
        return room

    def _number_taken(self, business_id: int, room_number: str,
                      exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Room).filter(
            Room.business_id == business_id,
            Room.room_number == room_number
        )
        if exclude_id is not None:
            query = query.filter(Room.id != exclude_id)
        return query.first() is not None

    def create_room(self, business_id: int, data: RoomCreate) -> Room:
        """创建房间"""
        self.get_business(business_id)
        if self._number_taken(business_id, data.room_number):
            raise ValueError(f"房间号 '{data.room_number}' 已存在")

        room = Room(business_id=business_id, **data.model_dump())
        self.db.add(room)
        self.db.commit()
        self.db.refresh(room)
        logger.info(f"Room {room.room_number} created for business {business_id}")
        return room

    def update_room(self, room_id: int, data: RoomUpdate,
                    business_id: Optional[int] = None) -> Room:
        """更新房间（business_id 不可修改）"""
        room = self.get_room_or_raise(room_id, business_id)
        update_data = data.model_dump(exclude_unset=True)

        if update_data.get('room_number') and self._number_taken(
                room.business_id, update_data['room_number'], exclude_id=room_id):
            raise ValueError(f"房间号 '{update_data['room_number']}' 已存在")

        for key, value in update_data.items():
            if value is None and key in ('room_number', 'base_price'):
                continue
            setattr(room, key, value)

        self.db.commit()
        self.db.refresh(room)
        return room

    def delete_room(self, room_id: int, business_id: Optional[int] = None) -> bool:
        """删除房间（有预订引用时不可删除）"""
        room = self.get_room_or_raise(room_id, business_id)

        booking_count = self.db.query(Booking).filter(Booking.room_id == room_id).count()
        if booking_count > 0:
            raise ValueError(f"该房间有 {booking_count} 条预订记录，无法删除")

        for block in room.blocked_dates:
            self.db.delete(block)
        for pricing in room.seasonal_pricings:
            self.db.delete(pricing)
        self.db.delete(room)
        self.db.commit()
        logger.info(f"Room {room_id} deleted")
        return True

    # ============== 可用性查询 ==============

    def get_available_rooms(self, business_id: int, start_date: date,
                            end_date: date) -> List[Room]:
        """获取商家在 [start_date, end_date) 内可预订的房间"""
        if end_date <= start_date:
            raise InvalidDateRange(start_date, end_date)
        self.get_business(business_id)

        rooms = self.get_rooms(business_id)
        bookings = load_occupying_bookings(self.db, start_date, end_date, business_id=business_id)
        blocks = load_blocked_ranges(self.db, start_date, end_date, business_id=business_id)
        return find_available_rooms(business_id, rooms, start_date, end_date, bookings, blocks)

    def get_available_rooms_with_quotes(self, business_id: int, start_date: date,
                                        end_date: date) -> List[Tuple[Room, StayQuote]]:
        """可用房间及各自的住宿报价（用于前台展示）"""
        from app.services.seasonal_pricing_service import SeasonalPricingService

        rooms = self.get_available_rooms(business_id, start_date, end_date)
        rule_sets = SeasonalPricingService(self.db).get_rule_sets([r.id for r in rooms])
        return [
            (room, compute_stay_price(room, rule_sets.get(room.id), start_date, end_date))
            for room in rooms
        ]
