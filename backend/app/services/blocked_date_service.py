"""
封房服务 - 本体操作层
管理 RoomBlockedDate 对象（维修、自用等不对外销售的日期段）
"""
from typing import Callable, List, Optional
from datetime import date
import logging
from sqlalchemy.orm import Session
from app.models.ontology import Room, RoomBlockedDate
from app.models.schemas import BlockedDateCreate, BulkBlockedDateCreate
from app.models.events import EventType, RoomDatesBlockedData
from app.services.event_bus import Event, publish_event
from app.services.room_service import load_occupying_bookings, load_blocked_ranges
from app.accommodation.domain import (
    BlockNotFound, RoomNotFound, InvalidDateRange, conflicting_room_ids,
)

logger = logging.getLogger(__name__)

AVAILABLE = "AVAILABLE"
BOOKED = "BOOKED"
BLOCKED = "BLOCKED"


class BlockedDateService:
    """封房服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publisher = event_publisher

    def get_block(self, block_id: int) -> Optional[RoomBlockedDate]:
        return self.db.query(RoomBlockedDate).filter(RoomBlockedDate.id == block_id).first()

    def get_room_blocks(self, room_id: int) -> List[RoomBlockedDate]:
        """获取房间的封房记录"""
        return self.db.query(RoomBlockedDate).filter(
            RoomBlockedDate.room_id == room_id
        ).order_by(RoomBlockedDate.start_date).all()

    def get_business_blocks(self, business_id: int) -> List[RoomBlockedDate]:
        """获取商家所有封房记录"""
        return self.db.query(RoomBlockedDate).filter(
            RoomBlockedDate.business_id == business_id
        ).order_by(RoomBlockedDate.start_date, RoomBlockedDate.room_id).all()

    def _publish(self, event_type: EventType, block: RoomBlockedDate) -> None:
        publish_event(
            event_type,
            RoomDatesBlockedData(
                block_id=block.id,
                business_id=block.business_id,
                room_id=block.room_id,
                start_date=block.start_date,
                end_date=block.end_date,
                block_reason=block.block_reason.value if block.block_reason else "",
            ),
            source="blocked_date_service",
            publisher=self._publisher,
        )

    def _new_block(self, room_id: int, data, created_by: Optional[int]) -> RoomBlockedDate:
        room = self.db.query(Room).filter(Room.id == room_id).first()
        if not room or room.business_id != data.business_id:
            raise RoomNotFound(room_id)

        block = RoomBlockedDate(
            business_id=data.business_id,
            room_id=room_id,
            start_date=data.start_date,
            end_date=data.end_date,
            block_reason=data.block_reason,
            notes=data.notes,
            created_by=created_by,
        )
        self.db.add(block)
        return block

    def create_block(self, data: BlockedDateCreate,
                     created_by: Optional[int] = None) -> RoomBlockedDate:
        """封房"""
        block = self._new_block(data.room_id, data, created_by)
        self.db.commit()
        self.db.refresh(block)
        logger.info(
            f"Room {block.room_id} blocked {block.start_date}..{block.end_date} "
            f"({block.block_reason.value})"
        )
        self._publish(EventType.ROOM_DATES_BLOCKED, block)
        return block

    def bulk_block(self, data: BulkBlockedDateCreate,
                   created_by: Optional[int] = None) -> dict:
        """批量封房：单个房间失败不影响其他房间"""
        created, errors = [], []
        for room_id in data.room_ids:
            try:
                block = self._new_block(room_id, data, created_by)
                self.db.commit()
                self.db.refresh(block)
            except ValueError as e:
                self.db.rollback()
                errors.append({"room_id": room_id, "error": str(e)})
                continue
            created.append(block)
            self._publish(EventType.ROOM_DATES_BLOCKED, block)

        logger.info(f"Bulk block: {len(created)} created, {len(errors)} failed")
        return {
            "created": created,
            "errors": errors,
            "summary": {
                "total": len(data.room_ids),
                "success": len(created),
                "failed": len(errors),
            },
        }

    def delete_block(self, block_id: int) -> bool:
        """解封"""
        block = self.get_block(block_id)
        if not block:
            raise BlockNotFound(block_id)

        event_data = RoomDatesBlockedData(
            block_id=block.id,
            business_id=block.business_id,
            room_id=block.room_id,
            start_date=block.start_date,
            end_date=block.end_date,
            block_reason=block.block_reason.value if block.block_reason else "",
        )
        self.db.delete(block)
        self.db.commit()
        logger.info(f"Block {block_id} removed from room {event_data.room_id}")
        publish_event(
            EventType.ROOM_DATES_UNBLOCKED, event_data,
            source="blocked_date_service",
            publisher=self._publisher,
        )
        return True

    def check_room_availability(self, room_id: int, start_date: date, end_date: date) -> str:
        """
        检查单个房间在 [start_date, end_date) 的状态

        Returns:
            BOOKED（有占用中的预订）、BLOCKED（有封房）或 AVAILABLE
        """
        if end_date <= start_date:
            raise InvalidDateRange(start_date, end_date)
        if not self.db.query(Room).filter(Room.id == room_id).first():
            raise RoomNotFound(room_id)

        bookings = load_occupying_bookings(self.db, start_date, end_date, room_id=room_id)
        if room_id in conflicting_room_ids(start_date, end_date, bookings):
            return BOOKED

        blocks = load_blocked_ranges(self.db, start_date, end_date, room_id=room_id)
        if room_id in conflicting_room_ids(start_date, end_date, blocked_ranges=blocks):
            return BLOCKED
        return AVAILABLE
