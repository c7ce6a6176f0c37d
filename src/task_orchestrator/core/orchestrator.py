"""
Оркестратор задач.

Владеет очередью задач и реестром воркеров, пропускает каждую отправку через
ограничитель скорости, выполняет задачи внешним исполнителем в пуле потоков,
повторяет неудачные попытки и эскалирует сбои воркеров в монитор здоровья.
"""

import itertools
import threading
import uuid
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Deque, Dict, List, Optional, Union

from .rate_limiter import RateLimiter, RateLimitConfig
from .health_monitor import WorkerHealthMonitor, HealthMonitorConfig
from .control_loop import ControlLoop

from ..models.task import Task, TaskStatus, ExecutionOutcome
from ..models.worker import Worker, WorkerStatus
from ..models.health import HealthCheckResult, WorkerPerformanceMetrics
from ..models.rate_limit import RateLimitStatus

from ..utils.clock import Clock, SystemClock
from ..utils.events import Event, EventBus, EventType
from ..utils.logger import get_logger, StructuredLogger
from ..utils.monitoring import collect_system_metrics
from ..exceptions import (
    ConfigurationError,
    PayloadGenerationError,
    TaskTimeoutError,
    ValidationError,
    WorkerNotFoundError,
    WorkerRegistrationError
)


logger = get_logger(__name__)

Executor = Callable[[Task], ExecutionOutcome]
PayloadGenerator = Callable[[int, str], Any]


@dataclass
class OrchestratorConfig:
    """Конфигурация оркестратора."""
    max_concurrent_tasks: int = 5
    task_timeout: float = 300.0  # Секунды с момента отправки
    health_check_interval: float = 30.0
    tick_interval: float = 1.0
    retry_delay: float = 5.0  # Минимальная пауза перед повтором
    max_attempts: int = 3
    auto_start: bool = True  # Запускать цикл управления при первой партии
    collect_host_metrics: bool = True

    def validate(self):
        errors = []
        if self.max_concurrent_tasks < 1:
            errors.append("max_concurrent_tasks must be >= 1")
        if self.task_timeout <= 0:
            errors.append("task_timeout must be > 0")
        if self.health_check_interval <= 0:
            errors.append("health_check_interval must be > 0")
        if self.tick_interval <= 0:
            errors.append("tick_interval must be > 0")
        if self.retry_delay < 0:
            errors.append("retry_delay must be >= 0")
        if self.max_attempts < 1:
            errors.append("max_attempts must be >= 1")
        if errors:
            raise ConfigurationError(f"Orchestrator configuration invalid: {'; '.join(errors)}")


def default_payload_generator(index: int, batch_id: str) -> Dict[str, Any]:
    """Полезная нагрузка по умолчанию: номер в партии и уникальная ссылка."""
    return {
        'index': index,
        'batch_id': batch_id,
        'reference': uuid.uuid4().hex
    }


class TaskOrchestrator:
    """
    Оркестратор с ограничением скорости, повторами и мониторингом воркеров.

    Все состояние задач и воркеров защищено одной RLock. Ограничитель и
    монитор имеют собственные блокировки и берутся только после нее.
    """

    def __init__(
        self,
        executor: Executor,
        config: Optional[OrchestratorConfig] = None,
        rate_limit_config: Optional[RateLimitConfig] = None,
        health_config: Optional[HealthMonitorConfig] = None,
        payload_generator: Optional[PayloadGenerator] = None,
        clock: Optional[Clock] = None,
        event_bus: Optional[EventBus] = None,
        rate_limiter: Optional[RateLimiter] = None,
        health_monitor: Optional[WorkerHealthMonitor] = None
    ):
        self.config = config or OrchestratorConfig()
        self.config.validate()

        self._executor = executor
        self._payload_generator = payload_generator or default_payload_generator
        self._clock = clock or SystemClock()
        self.events = event_bus or EventBus(clock=self._clock)

        self.rate_limiter = rate_limiter or RateLimiter(rate_limit_config, clock=self._clock)
        self.health_monitor = health_monitor or WorkerHealthMonitor(health_config, clock=self._clock)

        self._lock = threading.RLock()

        # Арена задач и коллекции по статусам
        self._tasks: Dict[str, Task] = {}
        self._pending: Deque[str] = deque()
        self._in_progress: Dict[str, Task] = {}
        self._completed: List[str] = []
        self._failed: List[str] = []

        # Реестр воркеров в порядке регистрации
        self._workers: Dict[str, Worker] = {}

        # Токен текущей отправки задачи; устаревшие результаты отбрасываются
        self._dispatch_counter = itertools.count(1)
        self._dispatch_tokens: Dict[str, int] = {}
        self._futures: Dict[int, Future] = {}

        self._thread_pool = ThreadPoolExecutor(
            max_workers=self.config.max_concurrent_tasks,
            thread_name_prefix="task-executor"
        )
        self._control_loop = ControlLoop(
            tick=self._control_tick,
            health_check=self.monitor_progress,
            tick_interval=self.config.tick_interval,
            health_check_interval=self.config.health_check_interval
        )

        self._paused = False
        self._shutdown = False

        self._log = StructuredLogger(__name__, component="orchestrator")
        self._setup_health_callbacks()

        logger.info(f"TaskOrchestrator initialized with config: {self.config}")

    @classmethod
    def from_config(cls, config, executor: Executor, **kwargs) -> 'TaskOrchestrator':
        """
        Создание оркестратора из общей конфигурации.

        Args:
            config: Объект utils.config.Config
            executor: Исполнитель задач
            **kwargs: Остальные аргументы конструктора
        """
        config.validate()
        if 'event_bus' not in kwargs:
            kwargs['event_bus'] = EventBus(history_size=config.event_history_size, clock=kwargs.get('clock'))

        return cls(
            executor,
            config=config.orchestrator,
            rate_limit_config=config.rate_limit,
            health_config=config.health,
            **kwargs
        )

    def _setup_health_callbacks(self):
        """Подписка на события монитора здоровья."""
        monitor_events = self.health_monitor.events
        monitor_events.subscribe(EventType.WORKER_UNHEALTHY, self._republish)
        monitor_events.subscribe(EventType.WORKER_RECOVERY_REQUESTED, self._on_recovery_requested)
        monitor_events.subscribe(EventType.WORKER_RECOVERED, self._on_worker_recovered)
        monitor_events.subscribe(EventType.WORKER_RECOVERY_FAILED, self._republish)

    def _republish(self, event: Event):
        self.events.emit(event.type, **event.data)

    def _on_recovery_requested(self, event: Event):
        self._republish(event)
        worker_id = event.data.get('worker_id')
        with self._lock:
            known = worker_id in self._workers
        if known:
            self.handle_worker_failure(worker_id)

    def _on_worker_recovered(self, event: Event):
        worker_id = event.data.get('worker_id')
        with self._lock:
            worker = self._workers.get(worker_id)
            if worker is not None and worker.status in (WorkerStatus.FAILED, WorkerStatus.OFFLINE):
                worker.mark_idle()
                self._refresh_heartbeat(worker)
                logger.info(f"Worker {worker_id} returned to service")
        self._republish(event)

    # ------------------------------------------------------------------
    # Жизненный цикл
    # ------------------------------------------------------------------

    def start(self):
        """Запуск цикла управления."""
        with self._lock:
            if self._shutdown:
                raise RuntimeError("Orchestrator is shut down")
        self._control_loop.start()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Остановка оркестратора.

        Args:
            wait: Ждать завершения выполняемых задач
            timeout: Максимальное время ожидания
        """
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True
            self._paused = True

        logger.info("Shutting down TaskOrchestrator...")
        self._control_loop.stop()

        if wait:
            self.wait_for_in_flight(timeout)
        self._thread_pool.shutdown(wait=wait)

        self.events.emit(EventType.SHUTDOWN, status=self.get_system_status())
        logger.info("TaskOrchestrator shut down")

    def is_running(self) -> bool:
        return self._control_loop.is_running()

    def is_paused(self) -> bool:
        with self._lock:
            return self._paused

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    # ------------------------------------------------------------------
    # Планирование
    # ------------------------------------------------------------------

    def schedule_batch(self, count: int) -> List[str]:
        """
        Постановка партии задач в очередь.

        Args:
            count: Количество задач

        Returns:
            ID созданных задач

        Raises:
            ValidationError: При отрицательном количестве
            PayloadGenerationError: Если генератор нагрузки упал
        """
        if not isinstance(count, int) or count < 0:
            raise ValidationError(f"Batch size must be a non-negative integer, got {count!r}")
        if count == 0:
            return []

        batch_id = str(uuid.uuid4())

        try:
            payloads = [self._payload_generator(index, batch_id) for index in range(count)]
        except Exception as e:
            logger.error(f"Payload generation failed for batch {batch_id}: {e}")
            raise PayloadGenerationError(f"Failed to generate payloads for batch {batch_id}: {e}") from e

        now = self._clock.now()
        tasks = [
            Task(
                batch_id=batch_id,
                payload=payload,
                max_attempts=self.config.max_attempts,
                created_at=now
            )
            for payload in payloads
        ]

        with self._lock:
            for task in tasks:
                self._tasks[task.id] = task
                self._pending.append(task.id)
            paused = self._paused

        task_ids = [task.id for task in tasks]
        self._log.with_context(batch_id=batch_id).log_event("batch_scheduled", batch_size=count)
        self.events.emit(EventType.BATCH_SCHEDULED, batch_id=batch_id, task_ids=task_ids, batch_size=count)

        if self.config.auto_start and not paused and not self._control_loop.is_running():
            self.start()

        return task_ids

    # ------------------------------------------------------------------
    # Диспетчеризация
    # ------------------------------------------------------------------

    def _control_tick(self) -> int:
        self.rate_limiter.reset_expired_windows()
        return self.tick()

    def tick(self) -> int:
        """
        Один такт диспетчеризации: не более одной отправки.

        Returns:
            Количество отправленных задач (0 или 1)
        """
        try:
            with self._lock:
                if self._paused or not self._pending:
                    return 0

                now = self._clock.now()
                ready = [self._tasks[task_id] for task_id in self._pending
                         if self._tasks[task_id].is_ready(now)]
                if not ready:
                    return 0

                decision = self.rate_limiter.can_proceed()
                if not decision.allowed:
                    logger.debug(
                        f"Dispatch denied by rate limiter: {decision.reason.value}, "
                        f"wait {decision.wait_time:.1f}s"
                    )
                    return 0

                available = [worker for worker in self._workers.values() if worker.is_available()]
                if not available:
                    logger.debug("No available workers")
                    return 0

                capacity = self.config.max_concurrent_tasks - len(self._in_progress)
                if min(len(ready), len(available), capacity) <= 0:
                    return 0

                worker = self._select_worker(available)
                self.dispatch(ready[0], worker)
                return 1

        except Exception as e:
            self._log.log_error(e, stage="tick")
            return 0

    @staticmethod
    def _select_worker(available: List[Worker]) -> Worker:
        # Наименее загруженный; при равенстве - раньше зарегистрированный
        return min(available, key=lambda worker: worker.tasks_completed)

    def dispatch(self, task: Task, worker: Worker) -> Future:
        """
        Отправка задачи воркеру.

        Returns:
            Future вызова исполнителя

        Raises:
            ValidationError: Если задача не в очереди или воркер занят
        """
        with self._lock:
            if task.id not in self._pending or task.status != TaskStatus.QUEUED:
                raise ValidationError(f"Task {task.id} is not queued")
            if self._workers.get(worker.id) is not worker or not worker.is_available():
                raise ValidationError(f"Worker {worker.id} is not available")

            self._pending.remove(task.id)
            task.status = TaskStatus.IN_PROGRESS
            task.assigned_worker = worker.id
            task.scheduled_at = self._clock.now()
            task.not_before = None
            worker.assign(task.id)
            self._in_progress[task.id] = task

            token = next(self._dispatch_counter)
            self._dispatch_tokens[task.id] = token

            try:
                future = self._thread_pool.submit(self._execute, task, worker.id, token)
            except RuntimeError as e:
                # Пул уже остановлен: откат отправки
                self._dispatch_tokens.pop(task.id, None)
                self._in_progress.pop(task.id, None)
                task.status = TaskStatus.QUEUED
                task.assigned_worker = None
                worker.mark_idle()
                self._pending.appendleft(task.id)
                raise ValidationError(f"Cannot dispatch task {task.id}: {e}") from e

            # Слот лимита занимается сразу; _execute ждет эту блокировку
            self.rate_limiter.record_dispatch()

            self._futures[token] = future
            future.add_done_callback(lambda _, token=token: self._forget_future(token))

            self._log.with_context(task_id=task.id, worker_id=worker.id).log_event(
                "task_distributed", attempt=task.attempts + 1
            )
            self.events.emit(EventType.TASK_DISTRIBUTED, task=task, worker=worker)

        return future

    def _forget_future(self, token: int):
        with self._lock:
            self._futures.pop(token, None)

    def _execute(self, task: Task, worker_id: str, token: int):
        started = self._clock.now()

        try:
            outcome = self._executor(task)
            if not isinstance(outcome, ExecutionOutcome):
                outcome = ExecutionOutcome(success=bool(outcome))
        except Exception as e:
            outcome = ExecutionOutcome(success=False, error=f"{type(e).__name__}: {e}")

        duration = outcome.duration or (self._clock.now() - started).total_seconds()

        with self._lock:
            if self._dispatch_tokens.get(task.id) != token:
                logger.info(f"Ignoring stale outcome of task {task.id} from worker {worker_id}")
                return
            del self._dispatch_tokens[task.id]

            worker = self._workers.get(worker_id)
            if outcome.success:
                self.on_success(task, worker, duration)
            else:
                self.on_failure(task, worker, outcome.error or "Task execution failed", duration)

    def on_success(self, task: Task, worker: Optional[Worker], duration: float = 0.0):
        """Обработка успешного выполнения задачи."""
        with self._lock:
            self.rate_limiter.record_outcome(True)
            now = self._clock.now()

            self._in_progress.pop(task.id, None)
            self._dispatch_tokens.pop(task.id, None)
            task.status = TaskStatus.COMPLETED
            task.completed_at = now
            task.assigned_worker = None
            self._completed.append(task.id)

            if worker is not None:
                worker.release(True, now)
                self.health_monitor.record_task_completion(worker.id, True, duration)

            task_log = self._log.with_context(task_id=task.id)
            task_log.log_event("task_completed", attempt=task.attempts + 1)
            task_log.log_metric("task_duration", round(duration, 3), "s")
            self.events.emit(EventType.TASK_COMPLETED, task=task, worker=worker)

    def on_failure(
        self,
        task: Task,
        worker: Optional[Worker],
        error: Union[str, Exception],
        duration: float = 0.0
    ):
        """
        Обработка неудачной попытки.

        Попытка расходуется; при оставшихся попытках задача возвращается в
        начало очереди с паузой, иначе переходит в FAILED.
        """
        with self._lock:
            self.rate_limiter.record_outcome(False)
            now = self._clock.now()

            self._in_progress.pop(task.id, None)
            self._dispatch_tokens.pop(task.id, None)
            task.attempts = min(task.attempts + 1, task.max_attempts)
            task.error_message = str(error)
            task.assigned_worker = None

            if worker is not None:
                worker.release(False, now)
                self.health_monitor.record_task_completion(worker.id, False, duration)

            task_log = self._log.with_context(task_id=task.id)

            if task.has_attempts_left():
                delay = max(self.config.retry_delay, self.rate_limiter.time_until_next_slot())
                task.status = TaskStatus.QUEUED
                task.not_before = now + timedelta(seconds=delay)
                self._pending.appendleft(task.id)
                task_log.warning(
                    f"Task attempt failed, retrying in {delay:.1f}s",
                    attempt=task.attempts, error=task.error_message
                )
                return

            task.status = TaskStatus.FAILED
            task.completed_at = now
            self._failed.append(task.id)
            task_log.error("Task failed permanently", attempts=task.attempts, error=task.error_message)
            self.events.emit(EventType.TASK_FAILED, task=task, worker=worker, error=task.error_message)

    # ------------------------------------------------------------------
    # Мониторинг
    # ------------------------------------------------------------------

    def monitor_progress(self):
        """
        Проход мониторинга: таймауты задач, устаревшие heartbeat'ы,
        цикл монитора здоровья и сводка состояния.
        """
        try:
            with self._lock:
                now = self._clock.now()
                self._check_task_timeouts(now)
                self._check_worker_heartbeats(now)

            # Восстановление ждет recovery_delay, поэтому без блокировки
            self.health_monitor.run_monitoring_cycle()

            self.events.emit(EventType.SYSTEM_HEALTH_UPDATE, metrics=self._collect_health_summary())

        except Exception as e:
            self._log.log_error(e, stage="monitor_progress")

    def _check_task_timeouts(self, now):
        timed_out = [task for task in self._in_progress.values()
                     if task.age(now) > self.config.task_timeout]

        for task in timed_out:
            worker_id = task.assigned_worker
            age = task.age(now)
            error = TaskTimeoutError(f"Task timed out after {age:.0f}s (limit {self.config.task_timeout:.0f}s)")
            logger.warning(f"Task {task.id} timed out on worker {worker_id}")

            self.on_failure(task, self._workers.get(worker_id), error, duration=age)
            if worker_id in self._workers:
                self.handle_worker_failure(worker_id)

    def _check_worker_heartbeats(self, now):
        timeout = self.health_monitor.config.heartbeat_timeout
        stale = [
            worker.id for worker in self._workers.values()
            if worker.status not in (WorkerStatus.FAILED, WorkerStatus.OFFLINE)
            and (now - worker.last_heartbeat).total_seconds() > timeout
        ]

        for worker_id in stale:
            logger.warning(f"Worker {worker_id} heartbeat timeout")
            self.handle_worker_failure(worker_id)

    def _collect_health_summary(self) -> Dict[str, Any]:
        summary = {
            'status': self.get_system_status(),
            'rate_limit': self.get_rate_limit_status().to_dict(),
            'health': self.health_monitor.get_system_health_metrics(),
        }
        if self.config.collect_host_metrics:
            summary['host'] = collect_system_metrics().to_dict()
        return summary

    def handle_worker_failure(self, worker_id: str) -> int:
        """
        Обработка сбоя воркера.

        Воркер помечается FAILED, его задачи возвращаются в начало очереди
        без расхода попыток, затем воркер выводится в OFFLINE.

        Returns:
            Количество возвращенных в очередь задач
        """
        with self._lock:
            worker = self._workers.get(worker_id)
            if worker is None:
                logger.warning(f"Failure reported for unknown worker {worker_id}")
                return 0

            worker.mark_failed()
            reassigned = self._requeue_worker_tasks(worker_id)

            logger.error(f"Worker {worker_id} failed, {reassigned} task(s) requeued")
            self.events.emit(EventType.WORKER_FAILED, worker_id=worker_id, reassigned_count=reassigned)

            self._attempt_worker_recovery(worker)
            return reassigned

    def _requeue_worker_tasks(self, worker_id: str) -> int:
        tasks = [task for task in self._in_progress.values() if task.assigned_worker == worker_id]

        # В обратном порядке, чтобы сохранить исходный порядок в начале очереди
        for task in reversed(tasks):
            self._in_progress.pop(task.id, None)
            self._dispatch_tokens.pop(task.id, None)
            task.status = TaskStatus.QUEUED
            task.assigned_worker = None
            task.not_before = None
            self._pending.appendleft(task.id)

        return len(tasks)

    def _attempt_worker_recovery(self, worker: Worker):
        # Перезапуск выполняет внешний супервизор; здесь воркер выводится из работы
        worker.mark_offline()
        logger.info(f"Worker {worker.id} taken offline pending recovery")
        self.events.emit(EventType.WORKER_RECOVERY_ATTEMPTED, worker_id=worker.id)

    # ------------------------------------------------------------------
    # Пауза
    # ------------------------------------------------------------------

    def pause_operations(self):
        """Приостановка отправки новых задач. Выполняемые задачи не прерываются."""
        with self._lock:
            self._paused = True
        logger.info("Operations paused")
        self.events.emit(EventType.OPERATIONS_PAUSED)

    def resume_operations(self):
        """Возобновление отправки задач."""
        with self._lock:
            if self._shutdown:
                raise RuntimeError("Orchestrator is shut down")
            self._paused = False
        logger.info("Operations resumed")
        self.events.emit(EventType.OPERATIONS_RESUMED)

        if self.config.auto_start and not self._control_loop.is_running():
            self.start()

    # ------------------------------------------------------------------
    # Воркеры
    # ------------------------------------------------------------------

    def register_worker(self, worker_id: str, metadata: Optional[Dict[str, Any]] = None) -> Worker:
        """
        Регистрация воркера.

        Воркер в статусе FAILED или OFFLINE регистрируется заново.

        Raises:
            WorkerRegistrationError: Если воркер уже зарегистрирован и активен
        """
        with self._lock:
            existing = self._workers.get(worker_id)
            if existing is not None and existing.is_active():
                raise WorkerRegistrationError(f"Worker {worker_id} is already registered")

            now = self._clock.now()
            worker = Worker(
                id=worker_id,
                registered_at=now,
                last_heartbeat=now,
                metadata=dict(metadata or {})
            )
            # Повторная регистрация сохраняет место в порядке регистрации
            self._workers[worker_id] = worker
            self.health_monitor.register_worker(worker_id)

        self._log.with_context(worker_id=worker_id).log_event("worker_registered")
        self.events.emit(EventType.WORKER_REGISTERED, worker_id=worker_id)
        return worker

    def unregister_worker(self, worker_id: str) -> bool:
        """Снятие воркера с учета; его задачи возвращаются в очередь."""
        with self._lock:
            if worker_id not in self._workers:
                logger.warning(f"Attempted to unregister unknown worker {worker_id}")
                return False

            reassigned = self._requeue_worker_tasks(worker_id)
            del self._workers[worker_id]
            self.health_monitor.unregister_worker(worker_id)

        self._log.with_context(worker_id=worker_id).log_event("worker_unregistered", reassigned=reassigned)
        self.events.emit(EventType.WORKER_UNREGISTERED, worker_id=worker_id, reassigned_count=reassigned)
        return True

    def update_worker_heartbeat(self, worker_id: str, metadata: Optional[Dict[str, Any]] = None) -> bool:
        """Heartbeat от воркера."""
        with self._lock:
            worker = self._workers.get(worker_id)
            if worker is None:
                logger.warning(f"Heartbeat from unknown worker {worker_id}")
                return False

            self._refresh_heartbeat(worker, metadata)

        return True

    def _refresh_heartbeat(self, worker: Worker, metadata: Optional[Dict[str, Any]] = None):
        # Отметка heartbeat'а ведется и в реестре, и в мониторе; обновляются вместе
        worker.last_heartbeat = self._clock.now()
        if metadata:
            worker.metadata.update(metadata)
        self.health_monitor.process_heartbeat(worker.id, metadata)

    def get_worker(self, worker_id: str) -> Worker:
        with self._lock:
            worker = self._workers.get(worker_id)
        if worker is None:
            raise WorkerNotFoundError(f"Worker {worker_id} not found")
        return worker

    def get_workers(self) -> List[Worker]:
        with self._lock:
            return list(self._workers.values())

    # ------------------------------------------------------------------
    # Запросы состояния
    # ------------------------------------------------------------------

    def get_task(self, task_id: str) -> Optional[Task]:
        with self._lock:
            return self._tasks.get(task_id)

    def get_tasks(self, status: Optional[TaskStatus] = None) -> List[Task]:
        """Задачи, опционально отфильтрованные по статусу."""
        with self._lock:
            if status is None:
                return list(self._tasks.values())
            if status == TaskStatus.QUEUED:
                return [self._tasks[task_id] for task_id in self._pending]
            if status == TaskStatus.IN_PROGRESS:
                return list(self._in_progress.values())
            if status == TaskStatus.COMPLETED:
                return [self._tasks[task_id] for task_id in self._completed]
            return [self._tasks[task_id] for task_id in self._failed]

    def get_system_status(self) -> Dict[str, int]:
        """Сводка по воркерам и задачам."""
        with self._lock:
            return {
                'active_workers': sum(1 for worker in self._workers.values() if worker.is_active()),
                'queued_tasks': len(self._pending),
                'in_progress_tasks': len(self._in_progress),
                'completed_tasks': len(self._completed),
                'failed_tasks': len(self._failed),
            }

    def get_rate_limit_status(self) -> RateLimitStatus:
        return self.rate_limiter.get_status()

    def trigger_cooldown(self, duration: Optional[float] = None):
        self.rate_limiter.trigger_cooldown(duration)

    def reset_limits(self):
        self.rate_limiter.reset_limits()

    def get_worker_health(self, worker_id: str) -> Optional[WorkerPerformanceMetrics]:
        return self.health_monitor.compute_metrics(worker_id)

    def get_system_health_metrics(self) -> Dict[str, Any]:
        metrics = self.health_monitor.get_system_health_metrics()
        metrics.update(self.get_system_status())
        return metrics

    def perform_worker_health_check(self, worker_id: str) -> HealthCheckResult:
        return self.health_monitor.perform_health_check(worker_id)

    def wait_for_in_flight(self, timeout: Optional[float] = None) -> bool:
        """
        Ожидание завершения вызовов исполнителя.

        Returns:
            True если все вызовы завершились
        """
        with self._lock:
            futures = list(self._futures.values())

        if not futures:
            return True

        _, not_done = wait_futures(futures, timeout=timeout)
        return not not_done

    def __repr__(self) -> str:
        status = self.get_system_status()
        return (f"TaskOrchestrator(workers={status['active_workers']}, queued={status['queued_tasks']}, "
                f"in_progress={status['in_progress_tasks']}, completed={status['completed_tasks']}, "
                f"failed={status['failed_tasks']})")
