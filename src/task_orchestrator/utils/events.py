"""
Канал событий оркестратора.

Подписчики регистрируют callback'и на типы событий, а последние события
хранятся в ограниченной истории, которую внешний мониторинг может опрашивать.
"""

import threading
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

from .logger import get_logger


logger = get_logger(__name__)


class EventType(Enum):
    """Типы событий."""
    BATCH_SCHEDULED = "batchScheduled"
    TASK_DISTRIBUTED = "taskDistributed"
    TASK_COMPLETED = "taskCompleted"
    TASK_FAILED = "taskFailed"
    WORKER_REGISTERED = "workerRegistered"
    WORKER_UNREGISTERED = "workerUnregistered"
    WORKER_FAILED = "workerFailed"
    WORKER_UNHEALTHY = "workerUnhealthy"
    WORKER_RECOVERY_REQUESTED = "workerRecoveryRequested"
    WORKER_RECOVERED = "workerRecovered"
    WORKER_RECOVERY_FAILED = "workerRecoveryFailed"
    WORKER_RECOVERY_ATTEMPTED = "workerRecoveryAttempted"
    SYSTEM_HEALTH_UPDATE = "systemHealthUpdate"
    OPERATIONS_PAUSED = "operationsPaused"
    OPERATIONS_RESUMED = "operationsResumed"
    SHUTDOWN = "shutdown"


@dataclass(frozen=True)
class Event:
    """Событие с данными."""
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


Subscriber = Callable[[Event], None]


class EventBus:
    """Потокобезопасный реестр подписчиков с историей событий."""

    def __init__(self, history_size: int = 500, clock=None):
        self._subscribers: Dict[EventType, List[Subscriber]] = defaultdict(list)
        self._global_subscribers: List[Subscriber] = []
        self._history: Deque[Event] = deque(maxlen=history_size)
        self._lock = threading.Lock()
        self._clock = clock

    def subscribe(self, event_type: Optional[EventType], callback: Subscriber):
        """
        Подписка на события.

        Args:
            event_type: Тип события (None - все события)
            callback: Функция, получающая Event
        """
        with self._lock:
            if event_type is None:
                self._global_subscribers.append(callback)
            else:
                self._subscribers[event_type].append(callback)

    def unsubscribe(self, event_type: Optional[EventType], callback: Subscriber) -> bool:
        """Отписка от событий."""
        with self._lock:
            target = self._global_subscribers if event_type is None else self._subscribers[event_type]
            if callback in target:
                target.remove(callback)
                return True
            return False

    def emit(self, event_type: EventType, **data) -> Event:
        """Публикация события."""
        timestamp = self._clock.now() if self._clock else datetime.now()
        event = Event(type=event_type, data=data, timestamp=timestamp)

        with self._lock:
            self._history.append(event)
            callbacks = list(self._subscribers[event_type]) + list(self._global_subscribers)

        # Callback'и вызываются без блокировки
        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Event subscriber {callback} failed on {event_type.value}: {e}")

        return event

    def history(self, event_type: Optional[EventType] = None, limit: Optional[int] = None) -> List[Event]:
        """Получение последних событий."""
        with self._lock:
            events = list(self._history)

        if event_type is not None:
            events = [e for e in events if e.type == event_type]
        if limit is not None:
            events = events[-limit:]
        return events

    def count(self, event_type: EventType) -> int:
        """Количество событий данного типа в истории."""
        return len(self.history(event_type))

    def clear_history(self):
        with self._lock:
            self._history.clear()

    def __repr__(self) -> str:
        with self._lock:
            subscribers = sum(len(s) for s in self._subscribers.values()) + len(self._global_subscribers)
            return f"EventBus(subscribers={subscribers}, history={len(self._history)})"
