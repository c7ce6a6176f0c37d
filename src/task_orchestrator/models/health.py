"""
Модели здоровья воркеров.
"""

from enum import Enum
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field, asdict
from datetime import datetime


class WorkerHealthStatus(Enum):
    """Статусы здоровья воркера."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    RECOVERING = "recovering"


@dataclass(frozen=True)
class PerformanceRecord:
    """Запись о выполненной задаче."""
    timestamp: datetime
    success: bool
    duration: float


@dataclass
class ResourceUsage:
    """Использование ресурсов, о котором сообщает воркер."""
    cpu: float = 0.0
    memory: float = 0.0
    network: float = 0.0

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> 'ResourceUsage':
        return cls(
            cpu=float(data.get('cpu', 0.0)),
            memory=float(data.get('memory', 0.0)),
            network=float(data.get('network', 0.0)),
        )


@dataclass
class WorkerPerformanceMetrics:
    """Производные метрики воркера за окно производительности."""
    worker_id: str
    success_rate: float = 1.0
    average_task_time: float = 0.0
    failure_streak: int = 0
    total_tasks: int = 0
    health_score: float = 100.0
    status: WorkerHealthStatus = WorkerHealthStatus.HEALTHY
    last_failure_time: Optional[datetime] = None
    resource_usage: Optional[ResourceUsage] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['status'] = self.status.value
        return data


@dataclass
class HealthCheckResult:
    """Результат проверки здоровья воркера."""
    worker_id: str
    metrics: WorkerPerformanceMetrics
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @property
    def is_healthy(self) -> bool:
        return len(self.issues) == 0
