"""
app/accommodation/domain/availability.py

房间可用性过滤

所有区间均为半开区间 [start, end)：
离店日与下一位客人的入住日相同不算冲突（同日周转）。
"""
from datetime import date
from typing import Iterable, List, Optional, Set

from app.accommodation.domain.errors import InvalidDateRange
from app.accommodation.domain.types import is_occupying


def overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """两个半开区间是否有共同日期"""
    return a_start < b_end and b_start < a_end


def booking_conflicts(booking, start: date, end: date) -> bool:
    """占用中的预订是否与 [start, end) 重叠"""
    return (
        is_occupying(booking.status)
        and overlaps(booking.check_in_date, booking.check_out_date, start, end)
    )


def block_conflicts(block, start: date, end: date) -> bool:
    return overlaps(block.start_date, block.end_date, start, end)


def conflicting_room_ids(start: date, end: date, bookings: Iterable = (),
                         blocked_ranges: Iterable = (),
                         exclude_booking_id: Optional[int] = None) -> Set[int]:
    """返回在 [start, end) 内有冲突的房间 ID"""
    room_ids = {
        b.room_id for b in bookings
        if b.id != exclude_booking_id and booking_conflicts(b, start, end)
    }
    room_ids.update(r.room_id for r in blocked_ranges if block_conflicts(r, start, end))
    return room_ids


def find_available_rooms(business_id: int, rooms: Iterable, start: date, end: date,
                         bookings: Iterable = (), blocked_ranges: Iterable = ()) -> List:
    """
    筛选商家在 [start, end) 内可预订的房间

    Args:
        business_id: 商家 ID，其他商家的房间一律忽略
        rooms: 候选房间（需有 id、business_id、room_number）
        bookings: 预订快照（需有 id、room_id、status、check_in_date、check_out_date）
        blocked_ranges: 封房快照（需有 room_id、start_date、end_date）

    Returns:
        按房间号、ID 升序排列的可用房间
    """
    if end <= start:
        raise InvalidDateRange(start, end)

    unavailable = conflicting_room_ids(start, end, bookings, blocked_ranges)
    available = [
        room for room in rooms
        if room.business_id == business_id and room.id not in unavailable
    ]
    return sorted(available, key=lambda r: (r.room_number, r.id))
