"""
事件总线单元测试
"""
import pytest
from datetime import datetime, date
from decimal import Decimal

from app.services.event_bus import EventBus, Event, publish_event
from app.models.events import EventType, BookingCreatedData, EVENT_DATA_CLASSES


class TestEventBus:
    """事件总线测试"""

    @pytest.fixture
    def bus(self):
        """创建新的事件总线实例"""
        return EventBus()

    @pytest.fixture
    def sample_event(self):
        """创建示例事件"""
        return Event(
            event_type="test.event",
            timestamp=datetime.now(),
            data={"key": "value"},
            source="test"
        )

    def test_subscribe_and_publish(self, bus, sample_event):
        """测试订阅和发布"""
        received_events = []
        bus.subscribe("test.event", received_events.append)
        bus.publish(sample_event)

        assert len(received_events) == 1
        assert received_events[0].data["key"] == "value"

    def test_unsubscribe(self, bus, sample_event):
        """测试取消订阅"""
        received_events = []

        def handler(event):
            received_events.append(event)

        bus.subscribe("test.event", handler)
        bus.unsubscribe("test.event", handler)
        bus.publish(sample_event)

        assert received_events == []

    def test_handler_exception_isolation(self, bus, sample_event):
        """处理器异常不影响其他处理器，也不传回发布方"""
        successful_calls = []

        def failing_handler(event):
            raise ValueError("Test error")

        def successful_handler(event):
            successful_calls.append(event)

        bus.subscribe("test.event", failing_handler)
        bus.subscribe("test.event", successful_handler)

        bus.publish(sample_event)

        assert len(successful_calls) == 1

    def test_duplicate_subscription(self, bus, sample_event):
        """测试重复订阅只调用一次"""
        call_count = [0]

        def handler(event):
            call_count[0] += 1

        bus.subscribe("test.event", handler)
        bus.subscribe("test.event", handler)
        bus.publish(sample_event)

        assert call_count[0] == 1

    def test_enum_and_string_keys_match(self, bus):
        """枚举与字符串事件类型等价"""
        received = []

        def handler(event):
            received.append(event)

        bus.subscribe(EventType.BOOKING_CREATED, handler)
        bus.publish(Event(
            event_type="booking.created", timestamp=datetime.now(), data={}, source="test"
        ))

        assert len(received) == 1
        assert len(bus.get_history(event_type=EventType.BOOKING_CREATED)) == 1

    def test_event_history(self, bus):
        """测试事件历史（最新的在前）"""
        for i in range(5):
            bus.publish(Event(
                event_type="test.event", timestamp=datetime.now(), data={"index": i}, source="test"
            ))

        history = bus.get_history()
        assert len(history) == 5
        assert history[0].data["index"] == 4

    def test_event_history_filter(self, bus):
        """测试事件历史筛选"""
        bus.publish(Event(event_type="type.a", timestamp=datetime.now(), data={}, source="test"))
        bus.publish(Event(event_type="type.b", timestamp=datetime.now(), data={}, source="test"))

        history_a = bus.get_history(event_type="type.a")
        assert len(history_a) == 1
        assert history_a[0].event_type == "type.a"

    def test_history_size_bounded(self):
        """历史记录有上限"""
        bus = EventBus(history_size=10)
        for i in range(25):
            bus.publish(Event(
                event_type="test.event", timestamp=datetime.now(), data={"index": i}, source="test"
            ))

        history = bus.get_history(limit=100)
        assert len(history) == 10
        assert history[-1].data["index"] == 15

    def test_clear(self, bus, sample_event):
        """测试清空订阅者与历史"""
        received_events = []
        bus.subscribe("test.event", received_events.append)
        bus.publish(sample_event)
        bus.clear()
        bus.publish(sample_event)

        assert len(received_events) == 1
        assert len(bus.get_history()) == 1


class TestPublishEvent:
    """publish_event 辅助函数"""

    def test_serializes_dates_and_money(self):
        """日期与金额序列化为字符串"""
        captured = []
        event = publish_event(
            EventType.BOOKING_CREATED,
            BookingCreatedData(
                booking_id=1, business_id=2, room_id=3, room_number="101",
                check_in_date=date(2025, 12, 5), check_out_date=date(2025, 12, 7),
                nights=2, total_price=Decimal("3500.00"), status="Pending",
            ),
            source="test",
            publisher=captured.append,
        )

        assert captured == [event]
        assert event.event_type == "booking.created"
        assert event.data["check_in_date"] == "2025-12-05"
        assert event.data["total_price"] == "3500.00"

    def test_every_event_type_has_data_class(self):
        """每种事件类型都有对应的数据类"""
        assert set(EVENT_DATA_CLASSES) == set(EventType)
