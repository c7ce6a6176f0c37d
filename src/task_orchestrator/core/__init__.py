"""
Основные компоненты оркестратора.
"""

from .rate_limiter import RateLimiter, RateLimitConfig
from .health_monitor import WorkerHealthMonitor, HealthMonitorConfig
from .control_loop import ControlLoop
from .orchestrator import TaskOrchestrator, OrchestratorConfig, default_payload_generator

__all__ = [
    "RateLimiter",
    "RateLimitConfig",
    "WorkerHealthMonitor",
    "HealthMonitorConfig",
    "ControlLoop",
    "TaskOrchestrator",
    "OrchestratorConfig",
    "default_payload_generator"
]
