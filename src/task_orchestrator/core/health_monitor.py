"""
Мониторинг здоровья воркеров.

Монитор хранит историю выполнения задач каждого воркера в ограниченном окне,
следит за свежестью heartbeat'ов, рассчитывает оценку здоровья и запускает
ограниченное число попыток автоматического восстановления.
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Deque, Dict, List, Optional, Set

from ..models.health import (
    HealthCheckResult,
    PerformanceRecord,
    ResourceUsage,
    WorkerHealthStatus,
    WorkerPerformanceMetrics
)
from ..utils.clock import Clock, SystemClock
from ..utils.events import EventBus, EventType
from ..utils.logger import get_logger
from ..exceptions import ConfigurationError, WorkerNotFoundError


logger = get_logger(__name__)


@dataclass
class HealthMonitorConfig:
    """Конфигурация монитора здоровья."""
    heartbeat_interval: float = 30.0  # Ожидаемый период heartbeat'ов воркера
    heartbeat_timeout: float = 60.0  # Возраст heartbeat, после которого он устарел
    performance_window: float = 1800.0  # Окно истории производительности
    min_success_rate: float = 0.7
    max_failure_streak: int = 5
    recovery_attempts: int = 3  # Бюджет попыток восстановления на воркер
    recovery_delay: float = 30.0  # Ожидание перед повторной оценкой
    cpu_threshold: float = 90.0
    memory_threshold: float = 90.0

    def validate(self):
        errors = []
        if self.heartbeat_timeout <= 0:
            errors.append("heartbeat_timeout must be > 0")
        if self.heartbeat_interval <= 0:
            errors.append("heartbeat_interval must be > 0")
        elif self.heartbeat_timeout < self.heartbeat_interval:
            errors.append("heartbeat_timeout must be >= heartbeat_interval")
        if self.performance_window <= 0:
            errors.append("performance_window must be > 0")
        if not 0.0 <= self.min_success_rate <= 1.0:
            errors.append("min_success_rate must be within [0, 1]")
        if self.max_failure_streak < 1:
            errors.append("max_failure_streak must be >= 1")
        if self.recovery_attempts < 0:
            errors.append("recovery_attempts must be >= 0")
        if self.recovery_delay < 0:
            errors.append("recovery_delay must be >= 0")
        if errors:
            raise ConfigurationError(f"Health monitor configuration invalid: {'; '.join(errors)}")


@dataclass
class _WorkerHealthState:
    last_heartbeat: datetime
    history: Deque[PerformanceRecord] = field(default_factory=deque)
    resource_usage: Optional[ResourceUsage] = None
    recovery_attempts: int = 0


class WorkerHealthMonitor:
    """Монитор здоровья воркеров с автоматическим восстановлением."""

    def __init__(
        self,
        config: Optional[HealthMonitorConfig] = None,
        clock: Optional[Clock] = None,
        event_bus: Optional[EventBus] = None
    ):
        self.config = config or HealthMonitorConfig()
        self.config.validate()
        self._clock = clock or SystemClock()
        self.events = event_bus or EventBus(clock=self._clock)

        self._workers: Dict[str, _WorkerHealthState] = {}
        self._recovering: Set[str] = set()
        self._lock = threading.RLock()

        logger.info(f"WorkerHealthMonitor initialized with config: {self.config}")

    # ------------------------------------------------------------------
    # Регистрация и входящие сигналы
    # ------------------------------------------------------------------

    def register_worker(self, worker_id: str):
        """Регистрация воркера для мониторинга."""
        with self._lock:
            self._workers[worker_id] = _WorkerHealthState(last_heartbeat=self._clock.now())

        logger.info(f"Worker {worker_id} registered for health monitoring")

    def unregister_worker(self, worker_id: str):
        """Снятие воркера с мониторинга."""
        with self._lock:
            self._workers.pop(worker_id, None)
            self._recovering.discard(worker_id)

        logger.info(f"Worker {worker_id} unregistered from health monitoring")

    def is_registered(self, worker_id: str) -> bool:
        with self._lock:
            return worker_id in self._workers

    def record_task_completion(self, worker_id: str, success: bool, duration: float):
        """
        Запись результата задачи в историю воркера.

        Args:
            worker_id: ID воркера
            success: Успешность задачи
            duration: Длительность в секундах
        """
        with self._lock:
            state = self._workers.get(worker_id)
            if state is None:
                logger.warning(f"Attempted to record task for unknown worker {worker_id}")
                return

            now = self._clock.now()
            state.history.append(PerformanceRecord(timestamp=now, success=success, duration=duration))
            state.last_heartbeat = now
            self._prune_history(state, now)

        logger.debug(f"Task completion recorded for worker {worker_id}: success={success}, duration={duration:.2f}s")

    def process_heartbeat(self, worker_id: str, metadata: Optional[Dict[str, Any]] = None):
        """Обработка heartbeat'а воркера."""
        with self._lock:
            state = self._workers.get(worker_id)
            if state is None:
                logger.warning(f"Heartbeat from unknown worker {worker_id}")
                return

            state.last_heartbeat = self._clock.now()
            if metadata and isinstance(metadata.get('resource_usage'), dict):
                state.resource_usage = ResourceUsage.from_mapping(metadata['resource_usage'])

    def get_last_heartbeat(self, worker_id: str) -> Optional[datetime]:
        with self._lock:
            state = self._workers.get(worker_id)
            return state.last_heartbeat if state else None

    def _prune_history(self, state: _WorkerHealthState, now: datetime):
        cutoff = now - timedelta(seconds=self.config.performance_window)
        while state.history and state.history[0].timestamp <= cutoff:
            state.history.popleft()

    # ------------------------------------------------------------------
    # Метрики
    # ------------------------------------------------------------------

    def compute_metrics(self, worker_id: str) -> Optional[WorkerPerformanceMetrics]:
        """
        Расчет метрик производительности воркера.

        Оценка здоровья начинается со 100 и уменьшается за низкую долю успехов,
        серию неудач подряд и устаревший heartbeat.

        Returns:
            Метрики или None для незарегистрированного воркера
        """
        with self._lock:
            state = self._workers.get(worker_id)
            if state is None:
                return None

            now = self._clock.now()
            cutoff = now - timedelta(seconds=self.config.performance_window)
            recent = [record for record in state.history if record.timestamp > cutoff]

            total = len(recent)
            successful = sum(1 for record in recent if record.success)
            success_rate = successful / total if total > 0 else 1.0
            average_task_time = sum(record.duration for record in recent) / total if total > 0 else 0.0

            failure_streak = 0
            for record in reversed(recent):
                if record.success:
                    break
                failure_streak += 1

            last_failure = next((record.timestamp for record in reversed(recent) if not record.success), None)

            health_score = 100.0
            if success_rate < self.config.min_success_rate:
                health_score -= (self.config.min_success_rate - success_rate) * 100
            if failure_streak > 0:
                health_score -= min(failure_streak * 10, 50)
            if self._heartbeat_age(state, now) > self.config.heartbeat_timeout:
                health_score -= 30
            health_score = max(0.0, min(100.0, health_score))

            if health_score >= 80:
                status = WorkerHealthStatus.HEALTHY
            elif health_score >= 60:
                status = WorkerHealthStatus.DEGRADED
            elif worker_id in self._recovering:
                status = WorkerHealthStatus.RECOVERING
            else:
                status = WorkerHealthStatus.UNHEALTHY

            return WorkerPerformanceMetrics(
                worker_id=worker_id,
                success_rate=success_rate,
                average_task_time=average_task_time,
                failure_streak=failure_streak,
                total_tasks=total,
                health_score=health_score,
                status=status,
                last_failure_time=last_failure,
                resource_usage=state.resource_usage
            )

    @staticmethod
    def _heartbeat_age(state: _WorkerHealthState, now: datetime) -> float:
        return (now - state.last_heartbeat).total_seconds()

    # ------------------------------------------------------------------
    # Проверки здоровья
    # ------------------------------------------------------------------

    def perform_health_check(self, worker_id: str) -> HealthCheckResult:
        """
        Проверка здоровья воркера.

        Raises:
            WorkerNotFoundError: Если воркер не зарегистрирован
        """
        metrics = self.compute_metrics(worker_id)
        if metrics is None:
            raise WorkerNotFoundError(f"Worker {worker_id} not found")

        with self._lock:
            heartbeat_age = self._heartbeat_age(self._workers[worker_id], self._clock.now())

        issues: List[str] = []
        recommendations: List[str] = []

        if heartbeat_age > self.config.heartbeat_timeout:
            issues.append(f"Heartbeat timeout ({heartbeat_age:.0f}s ago)")
            recommendations.append("Check worker connectivity and restart if necessary")

        if metrics.success_rate < self.config.min_success_rate:
            issues.append(f"Low success rate ({metrics.success_rate * 100:.1f}%)")
            recommendations.append("Investigate task failures and review worker configuration")

        if metrics.failure_streak >= self.config.max_failure_streak:
            issues.append(f"High failure streak ({metrics.failure_streak} consecutive failures)")
            recommendations.append("Restart worker or check for systematic issues")

        usage = metrics.resource_usage
        if usage is not None:
            if usage.cpu > self.config.cpu_threshold:
                issues.append(f"High CPU usage ({usage.cpu:.1f}%)")
                recommendations.append("Consider scaling out or reducing worker load")
            if usage.memory > self.config.memory_threshold:
                issues.append(f"High memory usage ({usage.memory:.1f}%)")
                recommendations.append("Check for memory leaks or increase worker memory")

        result = HealthCheckResult(
            worker_id=worker_id,
            metrics=metrics,
            issues=issues,
            recommendations=recommendations
        )

        logger.debug(
            f"Health check for worker {worker_id}: healthy={result.is_healthy}, "
            f"issues={len(issues)}, score={metrics.health_score:.1f}"
        )
        return result

    def perform_all_health_checks(self) -> List[HealthCheckResult]:
        """Проверка здоровья всех воркеров."""
        with self._lock:
            worker_ids = list(self._workers.keys())

        results = []
        for worker_id in worker_ids:
            try:
                results.append(self.perform_health_check(worker_id))
            except WorkerNotFoundError:
                # Воркер снят с мониторинга во время цикла
                continue
            except Exception as e:
                logger.error(f"Health check failed for worker {worker_id}: {e}")

        return results

    def run_monitoring_cycle(self) -> List[HealthCheckResult]:
        """
        Цикл мониторинга: проверки, события о нездоровых воркерах и
        не более одной попытки восстановления на воркер за цикл.
        """
        results = self.perform_all_health_checks()

        for check in results:
            if check.is_healthy:
                continue

            logger.warning(f"Unhealthy worker detected {check.worker_id}: {check.issues}")
            self.events.emit(EventType.WORKER_UNHEALTHY, worker_id=check.worker_id, issues=list(check.issues))

            if check.metrics.status == WorkerHealthStatus.UNHEALTHY:
                self.attempt_recovery(check.worker_id)

        self.events.emit(EventType.SYSTEM_HEALTH_UPDATE, metrics=self.get_system_health_metrics())
        return results

    # ------------------------------------------------------------------
    # Восстановление
    # ------------------------------------------------------------------

    def attempt_recovery(self, worker_id: str) -> bool:
        """
        Попытка восстановления воркера.

        Сам перезапуск выполняется снаружи по событию workerRecoveryRequested;
        монитор ждет recovery_delay и повторно оценивает здоровье.

        Returns:
            True если воркер восстановился
        """
        with self._lock:
            state = self._workers.get(worker_id)
            if state is None:
                logger.warning(f"Recovery requested for unknown worker {worker_id}")
                return False

            if state.recovery_attempts >= self.config.recovery_attempts:
                logger.warning(
                    f"Maximum recovery attempts reached for worker {worker_id} "
                    f"({state.recovery_attempts}), leaving it offline"
                )
                return False

            if worker_id in self._recovering:
                logger.debug(f"Recovery already in progress for worker {worker_id}")
                return False

            state.recovery_attempts += 1
            attempt = state.recovery_attempts
            self._recovering.add(worker_id)

        logger.info(f"Attempting recovery of worker {worker_id} (attempt {attempt})")

        try:
            self.events.emit(EventType.WORKER_RECOVERY_REQUESTED, worker_id=worker_id, attempt=attempt)
            self._clock.sleep(self.config.recovery_delay)

            try:
                recovered = self.perform_health_check(worker_id).is_healthy
            except WorkerNotFoundError:
                logger.info(f"Worker {worker_id} was unregistered during recovery")
                return False
        finally:
            with self._lock:
                self._recovering.discard(worker_id)

        if recovered:
            with self._lock:
                state = self._workers.get(worker_id)
                if state is not None:
                    state.recovery_attempts = 0
            logger.info(f"Worker {worker_id} recovered")
            self.events.emit(EventType.WORKER_RECOVERED, worker_id=worker_id)
        else:
            logger.warning(f"Worker {worker_id} recovery failed (attempt {attempt})")
            self.events.emit(EventType.WORKER_RECOVERY_FAILED, worker_id=worker_id, attempt=attempt)

        return recovered

    def get_recovery_attempts(self, worker_id: str) -> int:
        with self._lock:
            state = self._workers.get(worker_id)
            return state.recovery_attempts if state else 0

    def is_recovering(self, worker_id: str) -> bool:
        with self._lock:
            return worker_id in self._recovering

    # ------------------------------------------------------------------
    # Сводка
    # ------------------------------------------------------------------

    def get_system_health_metrics(self) -> Dict[str, Any]:
        """Сводные метрики здоровья по всем воркерам."""
        with self._lock:
            worker_ids = list(self._workers.keys())

        counts = {status: 0 for status in WorkerHealthStatus}
        total_score = 0.0
        total_tasks = 0
        total_successful = 0.0

        for worker_id in worker_ids:
            metrics = self.compute_metrics(worker_id)
            if metrics is None:
                continue
            counts[metrics.status] += 1
            total_score += metrics.health_score
            total_tasks += metrics.total_tasks
            total_successful += metrics.success_rate * metrics.total_tasks

        monitored = len(worker_ids)
        return {
            'monitored_workers': monitored,
            'healthy_workers': counts[WorkerHealthStatus.HEALTHY],
            'degraded_workers': counts[WorkerHealthStatus.DEGRADED],
            'unhealthy_workers': counts[WorkerHealthStatus.UNHEALTHY] + counts[WorkerHealthStatus.RECOVERING],
            'recovering_workers': counts[WorkerHealthStatus.RECOVERING],
            'average_health_score': total_score / monitored if monitored > 0 else 0.0,
            'window_tasks': total_tasks,
            'window_success_rate': total_successful / total_tasks if total_tasks > 0 else 1.0
        }

    def __repr__(self) -> str:
        with self._lock:
            return f"WorkerHealthMonitor(workers={len(self._workers)}, recovering={len(self._recovering)})"
