"""
Источники времени для оркестратора.

Все компоненты получают время только через Clock, поэтому в тестах
реальное ожидание заменяется ручным сдвигом часов.
"""

import threading
import time
from datetime import datetime, timedelta
from typing import Optional


class Clock:
    """Базовый интерфейс часов."""

    def now(self) -> datetime:
        raise NotImplementedError

    def sleep(self, seconds: float):
        raise NotImplementedError


class SystemClock(Clock):
    """Часы на основе системного времени."""

    def now(self) -> datetime:
        return datetime.now()

    def sleep(self, seconds: float):
        if seconds > 0:
            time.sleep(seconds)


class ManualClock(Clock):
    """Часы, которые двигаются только вручную."""

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime(2024, 1, 1, 12, 0, 0)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def sleep(self, seconds: float):
        # Ожидание мгновенно сдвигает часы
        self.advance(seconds)

    def advance(self, seconds: float) -> datetime:
        """Сдвиг часов вперед."""
        with self._lock:
            self._now += timedelta(seconds=max(0.0, seconds))
            return self._now

    def set(self, moment: datetime):
        """Установка конкретного момента времени."""
        with self._lock:
            self._now = moment

    def __repr__(self) -> str:
        return f"ManualClock(now={self._now.isoformat()})"
