"""
Утилиты оркестратора.
"""

from .clock import Clock, SystemClock, ManualClock
from .events import Event, EventBus, EventType
from .logger import get_logger, setup_logging, setup_logging_from_config, StructuredLogger
from .monitoring import SystemMetrics, collect_system_metrics

__all__ = [
    "Clock",
    "SystemClock",
    "ManualClock",
    "Event",
    "EventBus",
    "EventType",
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
    "StructuredLogger",
    "SystemMetrics",
    "collect_system_metrics"
]
