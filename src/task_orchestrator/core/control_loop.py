"""
Цикл управления оркестратором.

Два фоновых потока: частый такт диспетчеризации и редкий такт проверки
здоровья. Проверка здоровья вынесена в отдельный поток, потому что
восстановление воркера ждет recovery_delay и не должно задерживать такты.
"""

import threading
from typing import Callable, Dict, Optional

from ..utils.logger import get_logger


logger = get_logger(__name__)


class ControlLoop:
    """Периодический вызов такта и проверки здоровья."""

    def __init__(
        self,
        tick: Callable[[], object],
        health_check: Callable[[], object],
        tick_interval: float = 1.0,
        health_check_interval: float = 30.0
    ):
        self._tick = tick
        self._health_check = health_check
        self.tick_interval = tick_interval
        self.health_check_interval = health_check_interval

        self._stop_event = threading.Event()
        self._threads: Dict[str, threading.Thread] = {}
        self._lock = threading.Lock()
        self._stats = {
            'ticks': 0,
            'health_checks': 0,
            'errors': 0
        }

    def start(self):
        """Запуск потоков цикла."""
        with self._lock:
            if self.is_running():
                logger.warning("Control loop already running")
                return

            self._stop_event.clear()
            self._threads = {
                'ticks': threading.Thread(
                    target=self._run_periodic,
                    args=('ticks', self.tick_interval, self._tick),
                    name="orchestrator-tick",
                    daemon=True
                ),
                'health_checks': threading.Thread(
                    target=self._run_periodic,
                    args=('health_checks', self.health_check_interval, self._health_check),
                    name="orchestrator-health",
                    daemon=True
                ),
            }
            for thread in self._threads.values():
                thread.start()

        logger.info(
            f"Control loop started (tick every {self.tick_interval}s, "
            f"health check every {self.health_check_interval}s)"
        )

    def stop(self, timeout: Optional[float] = 5.0):
        """Остановка потоков цикла."""
        self._stop_event.set()

        current = threading.current_thread()
        for thread in list(self._threads.values()):
            if thread.is_alive() and thread is not current:
                thread.join(timeout=timeout)

        logger.info("Control loop stopped")

    def is_running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads.values()) and not self._stop_event.is_set()

    def _run_periodic(self, name: str, interval: float, func: Callable[[], object]):
        while not self._stop_event.wait(interval):
            try:
                func()
                with self._lock:
                    self._stats[name] += 1
            except Exception as e:
                # Один неудачный проход не останавливает цикл
                logger.error(f"Error in control loop ({name}): {e}")
                with self._lock:
                    self._stats['errors'] += 1

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return self._stats.copy()
