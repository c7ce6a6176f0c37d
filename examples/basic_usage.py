"""
Базовый пример использования оркестратора задач.
"""

import os
import time
import random

from task_orchestrator import (
    TaskOrchestrator,
    OrchestratorConfig,
    RateLimitConfig,
    ExecutionOutcome,
    EventType,
    setup_logging
)


def simulated_executor(task) -> ExecutionOutcome:
    """Имитация внешнего исполнителя: 80% успешных попыток."""
    duration = random.uniform(0.1, 0.4)
    time.sleep(duration)

    if random.random() < 0.2:
        return ExecutionOutcome(success=False, duration=duration, error="Simulated rejection")

    print(f"   Задача {task.payload['index']} из партии {task.batch_id[:8]} выполнена")
    return ExecutionOutcome(success=True, duration=duration)


def main():
    """Основная функция с примерами использования."""
    print("=== Базовый пример использования оркестратора ===\n")
    setup_logging(level=os.getenv("ORCHESTRATOR_LOG_LEVEL", "WARNING"))

    # Короткие задержки для демонстрации
    config = OrchestratorConfig(
        max_concurrent_tasks=3,
        tick_interval=0.1,
        health_check_interval=2.0,
        retry_delay=0.5
    )
    rate_config = RateLimitConfig(
        daily_limit=50,
        hourly_limit=40,
        min_delay=0.2,
        max_delay=0.5
    )

    orchestrator = TaskOrchestrator(simulated_executor, config=config, rate_limit_config=rate_config)

    orchestrator.events.subscribe(
        EventType.TASK_FAILED,
        lambda event: print(f"   Задача {event.data['task'].id[:8]} не выполнена: {event.data['error']}")
    )

    with orchestrator:
        # Пример 1: Регистрация воркеров
        print("1. Регистрация воркеров:")
        for worker_id in ("worker-1", "worker-2", "worker-3"):
            orchestrator.register_worker(worker_id)
            print(f"   Зарегистрирован {worker_id}")

        # Пример 2: Партия задач
        print("\n2. Постановка партии из 8 задач:")
        task_ids = orchestrator.schedule_batch(8)
        print(f"   Поставлено задач: {len(task_ids)}")

        # Ожидание завершения
        print("\nОжидание завершения задач...")
        deadline = time.time() + 30.0
        while time.time() < deadline:
            status = orchestrator.get_system_status()
            if status['queued_tasks'] == 0 and status['in_progress_tasks'] == 0:
                break

            for worker in orchestrator.get_workers():
                orchestrator.update_worker_heartbeat(worker.id)
            time.sleep(0.2)

        # Вывод состояния
        print("\n=== Состояние оркестратора ===")
        status = orchestrator.get_system_status()
        print(f"Активных воркеров: {status['active_workers']}")
        print(f"Выполнено задач: {status['completed_tasks']}")
        print(f"Задач с ошибками: {status['failed_tasks']}")
        print(f"В очереди: {status['queued_tasks']}")

        rate_status = orchestrator.get_rate_limit_status()
        print(f"\nЛимиты:")
        print(f"  За сутки: {rate_status.daily.used}/{rate_status.daily.limit}")
        print(f"  За час: {rate_status.hourly.used}/{rate_status.hourly.limit}")
        print(f"  Доля успехов: {rate_status.success_rate * 100:.1f}%")
        print(f"  Текущая задержка: {rate_status.current_delay:.2f}s")

    print("\nОркестратор остановлен")


if __name__ == "__main__":
    main()
