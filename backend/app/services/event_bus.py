"""
事件总线 - 内存级发布/订阅模式
预订、定价、封房变更通过事件通知外部协作方（推送、审计等）
"""
from typing import Callable, Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
from collections import deque
import logging
import threading

logger = logging.getLogger(__name__)

EventHandler = Callable[["Event"], None]


def _key(event_type) -> str:
    """EventType 枚举与字符串统一为字符串键"""
    return getattr(event_type, "value", event_type)


@dataclass
class Event:
    """事件基类"""
    event_type: str
    timestamp: datetime
    data: Dict[str, Any]
    source: str  # 触发来源（服务名）
    event_id: str = field(default_factory=lambda: datetime.now().strftime("%Y%m%d%H%M%S%f"))


class EventBus:
    """
    内存级事件总线（线程安全）

    使用方式：
    1. 订阅事件：event_bus.subscribe("booking.created", handler_func)
    2. 发布事件：event_bus.publish(Event(...))
    3. 取消订阅：event_bus.unsubscribe("booking.created", handler_func)

    处理器在发布方线程中同步执行；异常只记录日志，不会传回发布方，
    因此预订事务提交后的通知失败不会影响预订本身。
    """

    def __init__(self, history_size: int = 100):
        self._subscribers: Dict[str, List[EventHandler]] = {}
        self._history: deque = deque(maxlen=history_size)
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        with self._lock:
            handlers = self._subscribers.setdefault(_key(event_type), [])
            if handler not in handlers:
                handlers.append(handler)
                logger.info(f"Handler {handler.__name__} subscribed to {event_type}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        with self._lock:
            handlers = self._subscribers.get(_key(event_type), [])
            if handler in handlers:
                handlers.remove(handler)
                logger.info(f"Handler {handler.__name__} unsubscribed from {event_type}")

    def publish(self, event: Event) -> None:
        """发布事件（同步执行所有处理器）"""
        with self._lock:
            self._history.append(event)
            handlers = list(self._subscribers.get(_key(event.event_type), []))

        if handlers:
            logger.info(f"Publishing {event.event_type} to {len(handlers)} handlers")

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Event handler {handler.__name__} error for {event.event_type}: {e}",
                    exc_info=True
                )

    def get_history(self, event_type: Optional[str] = None, limit: int = 50) -> List[Event]:
        """获取事件历史（最新的在前）"""
        with self._lock:
            history = list(self._history)
        if event_type:
            history = [e for e in history if _key(e.event_type) == _key(event_type)]
        return list(reversed(history))[:limit]

    def clear(self) -> None:
        """清空订阅与历史（用于测试）"""
        with self._lock:
            self._subscribers.clear()
            self._history.clear()


# 全局事件总线实例
event_bus = EventBus()


def publish_event(event_type: str, data, source: str,
                  publisher: Optional[Callable[[Event], None]] = None) -> Event:
    """构造并发布事件，data 为 BaseEventData 子类实例"""
    event = Event(
        event_type=_key(event_type),
        timestamp=datetime.now(),
        data=data.to_dict(),
        source=source,
    )
    (publisher or event_bus.publish)(event)
    return event
