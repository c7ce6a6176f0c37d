"""
Оркестратор задач с адаптивным ограничением скорости и мониторингом воркеров.

Основные компоненты:
- TaskOrchestrator: очередь задач, реестр воркеров, повторы и таймауты
- RateLimiter: суточный/часовой лимиты, адаптивная задержка и охлаждение
- WorkerHealthMonitor: оценка здоровья воркеров и восстановление
- EventBus: события оркестратора для внешних подписчиков
"""

from .core.orchestrator import TaskOrchestrator, OrchestratorConfig
from .core.rate_limiter import RateLimiter, RateLimitConfig
from .core.health_monitor import WorkerHealthMonitor, HealthMonitorConfig
from .models.task import Task, TaskStatus, ExecutionOutcome
from .models.worker import Worker, WorkerStatus
from .models.health import WorkerHealthStatus
from .models.rate_limit import DenialReason, RateLimitDecision
from .utils.config import Config, load_config, load_config_from_env
from .utils.clock import SystemClock, ManualClock
from .utils.events import Event, EventBus, EventType
from .utils.logger import get_logger, setup_logging, setup_logging_from_config
from .exceptions import (
    OrchestratorError,
    TaskExecutionError,
    TaskTimeoutError,
    PayloadGenerationError,
    WorkerError,
    WorkerNotFoundError,
    WorkerRegistrationError,
    ConfigurationError,
    ValidationError
)

__version__ = "1.0.0"
__author__ = "Task Orchestrator Team"

__all__ = [
    "TaskOrchestrator",
    "OrchestratorConfig",
    "RateLimiter",
    "RateLimitConfig",
    "WorkerHealthMonitor",
    "HealthMonitorConfig",
    "Task",
    "TaskStatus",
    "ExecutionOutcome",
    "Worker",
    "WorkerStatus",
    "WorkerHealthStatus",
    "DenialReason",
    "RateLimitDecision",
    "Config",
    "load_config",
    "load_config_from_env",
    "SystemClock",
    "ManualClock",
    "Event",
    "EventBus",
    "EventType",
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
    "OrchestratorError",
    "TaskExecutionError",
    "TaskTimeoutError",
    "PayloadGenerationError",
    "WorkerError",
    "WorkerNotFoundError",
    "WorkerRegistrationError",
    "ConfigurationError",
    "ValidationError"
]
