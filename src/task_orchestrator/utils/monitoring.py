"""
Метрики хоста для сводок о состоянии оркестратора.
"""

import psutil
from typing import Dict, Any
from dataclasses import dataclass, field, asdict
from datetime import datetime

from ..utils.logger import get_logger


logger = get_logger(__name__)


@dataclass
class SystemMetrics:
    """Метрики системы."""
    cpu_percent: float = 0.0
    memory_percent: float = 0.0
    memory_used_mb: float = 0.0
    memory_available_mb: float = 0.0
    disk_usage_percent: float = 0.0
    load_average: tuple = (0.0, 0.0, 0.0)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        data['load_average'] = list(self.load_average)
        return data


def collect_system_metrics(cpu_interval: float = None) -> SystemMetrics:
    """
    Сбор метрик хоста через psutil.

    Args:
        cpu_interval: Интервал замера CPU (None - без блокировки, по последнему замеру)

    Returns:
        Метрики системы; при ошибке - нулевые метрики
    """
    try:
        cpu_percent = psutil.cpu_percent(interval=cpu_interval)

        memory = psutil.virtual_memory()
        disk = psutil.disk_usage('/')

        try:
            load_average = psutil.getloadavg()
        except (AttributeError, OSError):
            load_average = (0.0, 0.0, 0.0)

        return SystemMetrics(
            cpu_percent=cpu_percent,
            memory_percent=memory.percent,
            memory_used_mb=memory.used / (1024 * 1024),
            memory_available_mb=memory.available / (1024 * 1024),
            disk_usage_percent=(disk.used / disk.total) * 100 if disk.total else 0.0,
            load_average=tuple(load_average)
        )

    except Exception as e:
        logger.error(f"Error collecting system metrics: {e}")
        return SystemMetrics()
