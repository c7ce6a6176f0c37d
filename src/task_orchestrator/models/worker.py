"""
Модели воркеров оркестратора.
"""

from enum import Enum
from typing import Optional, Dict, Any
from dataclasses import dataclass, field
from datetime import datetime


class WorkerStatus(Enum):
    """Статусы воркеров."""
    IDLE = "idle"
    BUSY = "busy"
    FAILED = "failed"
    OFFLINE = "offline"


@dataclass
class Worker:
    """
    Логический слот выполнения.

    Инвариант: status == BUSY тогда и только тогда, когда current_task задан.
    Все изменения статуса выполняются владельцем реестра под его блокировкой.
    """

    id: str
    status: WorkerStatus = WorkerStatus.IDLE
    current_task: Optional[str] = None
    tasks_completed: int = 0
    tasks_successful: int = 0
    tasks_failed: int = 0
    registered_at: datetime = field(default_factory=datetime.now)
    last_heartbeat: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def assign(self, task_id: str):
        """Назначение задачи свободному воркеру."""
        if self.status != WorkerStatus.IDLE:
            raise ValueError(f"Worker {self.id} is not idle (status: {self.status.value})")
        self.status = WorkerStatus.BUSY
        self.current_task = task_id

    def release(self, success: bool, now: datetime):
        """Освобождение воркера после завершения задачи."""
        self.current_task = None
        if self.status == WorkerStatus.BUSY:
            self.status = WorkerStatus.IDLE
        self.tasks_completed += 1
        if success:
            self.tasks_successful += 1
        else:
            self.tasks_failed += 1
        self.last_heartbeat = now

    def mark_failed(self):
        self.status = WorkerStatus.FAILED
        self.current_task = None

    def mark_offline(self):
        self.status = WorkerStatus.OFFLINE
        self.current_task = None

    def mark_idle(self):
        self.status = WorkerStatus.IDLE
        self.current_task = None

    def is_available(self) -> bool:
        """Проверка доступности воркера."""
        return self.status == WorkerStatus.IDLE

    def is_active(self) -> bool:
        return self.status in (WorkerStatus.IDLE, WorkerStatus.BUSY)

    def get_success_rate(self) -> float:
        """Доля успешных задач за все время (1.0 для нового воркера)."""
        if self.tasks_completed == 0:
            return 1.0
        return self.tasks_successful / self.tasks_completed

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'status': self.status.value,
            'current_task': self.current_task,
            'tasks_completed': self.tasks_completed,
            'tasks_successful': self.tasks_successful,
            'tasks_failed': self.tasks_failed,
            'last_heartbeat': self.last_heartbeat.isoformat(),
        }
