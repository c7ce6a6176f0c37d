"""
Модели данных оркестратора.
"""

from .task import Task, TaskStatus, ExecutionOutcome
from .worker import Worker, WorkerStatus
from .health import (
    WorkerHealthStatus,
    PerformanceRecord,
    ResourceUsage,
    WorkerPerformanceMetrics,
    HealthCheckResult
)
from .rate_limit import DenialReason, RateLimitDecision, RateLimitStatus, UsageSnapshot

__all__ = [
    "Task",
    "TaskStatus",
    "ExecutionOutcome",
    "Worker",
    "WorkerStatus",
    "WorkerHealthStatus",
    "PerformanceRecord",
    "ResourceUsage",
    "WorkerPerformanceMetrics",
    "HealthCheckResult",
    "DenialReason",
    "RateLimitDecision",
    "RateLimitStatus",
    "UsageSnapshot"
]
