"""
Tests for app/services/blocked_date_service.py
"""
import pytest
from datetime import date

from app.models.ontology import BlockReason
from app.models.schemas import BlockedDateCreate, BulkBlockedDateCreate, BookingCreate
from app.services.blocked_date_service import BlockedDateService
from app.services.booking_service import BookingService
from app.accommodation.domain import BlockNotFound, InvalidDateRange, RoomNotFound


def _block_data(room, start, end, **overrides):
    values = dict(business_id=room.business_id, room_id=room.id,
                  start_date=start, end_date=end)
    values.update(overrides)
    return BlockedDateCreate(**values)


class TestCreateBlock:

    def test_create_block(self, db_session, sample_room, published_events):
        """封房并发布事件"""
        service = BlockedDateService(db_session, published_events.append)
        block = service.create_block(
            _block_data(sample_room, date(2025, 3, 1), date(2025, 3, 3),
                        block_reason=BlockReason.RENOVATION, notes="换地毯"),
            created_by=10,
        )

        assert block.block_reason == BlockReason.RENOVATION
        assert block.created_by == 10
        assert published_events[0].event_type == "room.dates_blocked"
        assert published_events[0].data["block_reason"] == "Renovation"

    def test_end_must_be_after_start(self, sample_room):
        """单晚封房为 [d, d+1)"""
        with pytest.raises(ValueError):
            _block_data(sample_room, date(2025, 3, 1), date(2025, 3, 1))

    def test_room_of_other_business(self, db_session, sample_room, other_business):
        with pytest.raises(RoomNotFound):
            BlockedDateService(db_session).create_block(
                _block_data(sample_room, date(2025, 3, 1), date(2025, 3, 2),
                            business_id=other_business.id))


class TestBulkBlock:

    def test_partial_success(self, db_session, sample_room, sample_room_102, other_room):
        """部分房间失败不影响其他房间"""
        result = BlockedDateService(db_session).bulk_block(BulkBlockedDateCreate(
            business_id=sample_room.business_id,
            room_ids=[sample_room.id, other_room.id, sample_room_102.id],
            start_date=date(2025, 3, 1), end_date=date(2025, 3, 3),
        ))

        assert [b.room_id for b in result["created"]] == [sample_room.id, sample_room_102.id]
        assert result["errors"] == [{"room_id": other_room.id, "error": "房间不存在"}]
        assert result["summary"] == {"total": 3, "success": 2, "failed": 1}

    def test_empty_room_ids_rejected(self, sample_business):
        with pytest.raises(ValueError):
            BulkBlockedDateCreate(business_id=sample_business.id, room_ids=[],
                                  start_date=date(2025, 3, 1), end_date=date(2025, 3, 3))


class TestDeleteBlock:

    def test_delete(self, db_session, sample_room, published_events):
        service = BlockedDateService(db_session, published_events.append)
        block_id = service.create_block(
            _block_data(sample_room, date(2025, 3, 1), date(2025, 3, 3))).id

        assert service.delete_block(block_id) is True
        assert service.get_room_blocks(sample_room.id) == []
        assert published_events[-1].event_type == "room.dates_unblocked"
        assert published_events[-1].data["start_date"] == "2025-03-01"

    def test_delete_missing(self, db_session):
        with pytest.raises(BlockNotFound):
            BlockedDateService(db_session).delete_block(999)


class TestQueries:

    def test_list_by_room_and_business(self, db_session, sample_room, sample_room_102):
        service = BlockedDateService(db_session)
        service.create_block(_block_data(sample_room, date(2025, 3, 5), date(2025, 3, 6)))
        service.create_block(_block_data(sample_room, date(2025, 3, 1), date(2025, 3, 2)))
        service.create_block(_block_data(sample_room_102, date(2025, 3, 1), date(2025, 3, 2)))

        room_blocks = service.get_room_blocks(sample_room.id)
        assert [b.start_date for b in room_blocks] == [date(2025, 3, 1), date(2025, 3, 5)]
        assert len(service.get_business_blocks(sample_room.business_id)) == 3


class TestCheckRoomAvailability:

    def test_available(self, db_session, sample_room):
        status = BlockedDateService(db_session).check_room_availability(
            sample_room.id, date(2025, 3, 1), date(2025, 3, 3))
        assert status == "AVAILABLE"

    def test_blocked(self, db_session, sample_room):
        service = BlockedDateService(db_session)
        service.create_block(_block_data(sample_room, date(2025, 3, 2), date(2025, 3, 3)))
        assert service.check_room_availability(
            sample_room.id, date(2025, 3, 1), date(2025, 3, 5)) == "BLOCKED"

    def test_booked_takes_precedence(self, db_session, sample_room):
        """同时有预订与封房时返回 BOOKED"""
        BookingService(db_session).create_booking(BookingCreate(
            room_id=sample_room.id, business_id=sample_room.business_id,
            check_in_date=date(2025, 3, 1), check_out_date=date(2025, 3, 2),
        ))
        service = BlockedDateService(db_session)
        service.create_block(_block_data(sample_room, date(2025, 3, 3), date(2025, 3, 4)))

        assert service.check_room_availability(
            sample_room.id, date(2025, 3, 1), date(2025, 3, 5)) == "BOOKED"

    def test_block_boundary(self, db_session, sample_room):
        """封房结束日当天可用"""
        service = BlockedDateService(db_session)
        service.create_block(_block_data(sample_room, date(2025, 3, 1), date(2025, 3, 3)))
        assert service.check_room_availability(
            sample_room.id, date(2025, 3, 3), date(2025, 3, 4)) == "AVAILABLE"

    def test_invalid_range(self, db_session, sample_room):
        with pytest.raises(InvalidDateRange):
            BlockedDateService(db_session).check_room_availability(
                sample_room.id, date(2025, 3, 3), date(2025, 3, 1))

    def test_unknown_room(self, db_session):
        with pytest.raises(RoomNotFound):
            BlockedDateService(db_session).check_room_availability(
                999, date(2025, 3, 1), date(2025, 3, 2))
