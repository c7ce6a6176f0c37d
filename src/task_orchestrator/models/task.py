"""
Модели задач оркестратора.
"""

import uuid
from enum import Enum
from typing import Any, Optional, Dict
from dataclasses import dataclass, field
from datetime import datetime


class TaskStatus(Enum):
    """Статусы задач."""
    QUEUED = "queued"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Task:
    """Единица работы: одна попытка создания через внешний исполнитель."""

    batch_id: str
    payload: Any = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    max_attempts: int = 3
    attempts: int = 0
    status: TaskStatus = TaskStatus.QUEUED
    assigned_worker: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    scheduled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    not_before: Optional[datetime] = None
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Валидация после инициализации."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if not 0 <= self.attempts <= self.max_attempts:
            raise ValueError("attempts must be within [0, max_attempts]")
        if self.scheduled_at is None:
            self.scheduled_at = self.created_at

    def is_ready(self, now: datetime) -> bool:
        """Можно ли отправить задачу на выполнение в момент now."""
        return self.status == TaskStatus.QUEUED and (self.not_before is None or self.not_before <= now)

    def has_attempts_left(self) -> bool:
        return self.attempts < self.max_attempts

    def age(self, now: datetime) -> float:
        """Время с последней отправки в секундах."""
        return (now - self.scheduled_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'batch_id': self.batch_id,
            'status': self.status.value,
            'assigned_worker': self.assigned_worker,
            'attempts': self.attempts,
            'max_attempts': self.max_attempts,
            'created_at': self.created_at.isoformat(),
            'scheduled_at': self.scheduled_at.isoformat() if self.scheduled_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'error_message': self.error_message,
        }


@dataclass
class ExecutionOutcome:
    """Результат вызова внешнего исполнителя."""

    success: bool
    duration: float = 0.0
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
