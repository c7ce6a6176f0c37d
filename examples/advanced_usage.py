"""
Продвинутые примеры использования оркестратора задач.
"""

import os
import time
import random
import requests
from typing import Dict, Optional

from task_orchestrator import (
    TaskOrchestrator,
    ExecutionOutcome,
    EventType,
    Config,
    load_config,
    setup_logging_from_config
)
from task_orchestrator.utils.config import merge_configs
from task_orchestrator.utils.monitoring import collect_system_metrics


class HttpExecutor:
    """
    Исполнитель, отправляющий полезную нагрузку задачи на HTTP endpoint.

    Ответ 2xx считается успехом, остальные коды и сетевые ошибки - неудачей.
    """

    def __init__(self, endpoint: str, timeout: float = 10.0, headers: Optional[Dict[str, str]] = None):
        self.endpoint = endpoint
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(headers or {})

    def __call__(self, task) -> ExecutionOutcome:
        started = time.monotonic()
        try:
            response = self._session.post(
                self.endpoint,
                json={'task_id': task.id, 'batch_id': task.batch_id, 'payload': task.payload},
                timeout=self.timeout
            )
            duration = time.monotonic() - started

            if response.ok:
                return ExecutionOutcome(success=True, duration=duration,
                                        metadata={'status_code': response.status_code})
            return ExecutionOutcome(success=False, duration=duration,
                                    error=f"HTTP {response.status_code}: {response.text[:200]}")

        except requests.RequestException as e:
            return ExecutionOutcome(success=False, duration=time.monotonic() - started, error=str(e))

    def close(self):
        self._session.close()


def demo_config() -> Config:
    """Конфигурация с короткими интервалами для демонстрации."""
    config_path = os.getenv('ORCHESTRATOR_CONFIG')
    base = load_config(config_path) if config_path else Config()

    return merge_configs(base, {
        'log_level': os.getenv('ORCHESTRATOR_LOG_LEVEL', 'WARNING'),
        'orchestrator': {
            'max_concurrent_tasks': 2,
            'tick_interval': 0.1,
            'health_check_interval': 1.0,
            'retry_delay': 0.5,
            'task_timeout': 15.0,
        },
        'rate_limit': {'daily_limit': 30, 'hourly_limit': 20, 'min_delay': 0.2, 'max_delay': 1.0},
        'health': {'recovery_delay': 1.0, 'heartbeat_interval': 2.0, 'heartbeat_timeout': 10.0},
    })


def wait_until_idle(orchestrator: TaskOrchestrator, timeout: float = 30.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        status = orchestrator.get_system_status()
        if status['queued_tasks'] == 0 and status['in_progress_tasks'] == 0:
            return True
        for worker in orchestrator.get_workers():
            orchestrator.update_worker_heartbeat(worker.id)
        time.sleep(0.2)
    return False


def example_http_executor():
    """Пример выполнения задач через HTTP endpoint."""
    print("=== Пример HTTP исполнителя ===\n")

    endpoint = os.getenv('ORCHESTRATOR_ENDPOINT', 'https://httpbin.org/post')
    executor = HttpExecutor(endpoint, timeout=10.0)

    orchestrator = TaskOrchestrator.from_config(demo_config(), executor)
    orchestrator.events.subscribe(
        EventType.TASK_COMPLETED,
        lambda event: print(f"   Задача {event.data['task'].id[:8]} выполнена воркером {event.data['worker'].id}")
    )

    try:
        with orchestrator:
            orchestrator.register_worker("http-1")
            orchestrator.register_worker("http-2")
            orchestrator.schedule_batch(4)

            if wait_until_idle(orchestrator):
                print("Все задачи обработаны")
            else:
                print("Таймаут ожидания задач")

            print(f"Итог: {orchestrator.get_system_status()}")
    finally:
        executor.close()


def example_unhealthy_worker():
    """Пример вывода из работы воркера с частыми ошибками."""
    print("\n=== Пример мониторинга здоровья воркеров ===\n")

    def flaky_executor(task) -> ExecutionOutcome:
        time.sleep(0.05)
        if task.assigned_worker == "flaky" or random.random() < 0.1:
            return ExecutionOutcome(success=False, error="Simulated upstream rejection")
        return ExecutionOutcome(success=True)

    config = demo_config()
    config.orchestrator.max_attempts = 5
    orchestrator = TaskOrchestrator.from_config(config, flaky_executor)

    for event_type in (EventType.WORKER_UNHEALTHY, EventType.WORKER_FAILED, EventType.WORKER_RECOVERY_FAILED):
        orchestrator.events.subscribe(
            event_type,
            lambda event: print(f"   {event.type.value}: {event.data.get('worker_id')}")
        )

    with orchestrator:
        orchestrator.register_worker("flaky")
        orchestrator.register_worker("stable")
        orchestrator.schedule_batch(10)
        wait_until_idle(orchestrator)

        for worker_id in ("flaky", "stable"):
            metrics = orchestrator.get_worker_health(worker_id)
            print(f"   {worker_id}: score={metrics.health_score:.0f}, status={metrics.status.value}, "
                  f"worker={orchestrator.get_worker(worker_id).status.value}")


def example_pause_and_cooldown():
    """Пример паузы и ручного охлаждения."""
    print("\n=== Пример паузы и охлаждения ===\n")

    orchestrator = TaskOrchestrator.from_config(demo_config(), lambda task: ExecutionOutcome(success=True))

    with orchestrator:
        orchestrator.register_worker("worker-1")
        orchestrator.pause_operations()
        orchestrator.schedule_batch(3)
        time.sleep(0.5)
        print(f"   На паузе: {orchestrator.get_system_status()}")

        orchestrator.trigger_cooldown(1.0)
        orchestrator.resume_operations()
        print(f"   Охлаждение активно: {orchestrator.get_rate_limit_status().in_cooldown}")

        wait_until_idle(orchestrator)
        print(f"   После охлаждения: {orchestrator.get_system_status()}")

    host = collect_system_metrics()
    print(f"   Хост: CPU {host.cpu_percent:.1f}%, память {host.memory_percent:.1f}%")


def main():
    """Основная функция с продвинутыми примерами."""
    print("=== Продвинутые примеры использования оркестратора ===\n")
    setup_logging_from_config(demo_config())

    try:
        example_http_executor()
        example_unhealthy_worker()
        example_pause_and_cooldown()

    except KeyboardInterrupt:
        print("\nПрервано пользователем")
    except Exception as e:
        print(f"\nОшибка: {e}")

    print("\nВсе примеры завершены")


if __name__ == "__main__":
    main()
