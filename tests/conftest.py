"""
Общие фикстуры тестов оркестратора.
"""

import random
import pytest
from datetime import datetime

from task_orchestrator.core.orchestrator import TaskOrchestrator, OrchestratorConfig
from task_orchestrator.core.rate_limiter import RateLimiter, RateLimitConfig
from task_orchestrator.core.health_monitor import WorkerHealthMonitor, HealthMonitorConfig
from task_orchestrator.models.task import ExecutionOutcome
from task_orchestrator.utils.clock import ManualClock


@pytest.fixture
def clock():
    """Управляемые часы, начинающиеся в начале часа."""
    return ManualClock(datetime(2024, 1, 1, 12, 0, 0))


@pytest.fixture
def fast_rate_config():
    """Конфигурация без задержек между запусками."""
    return RateLimitConfig(
        daily_limit=100,
        hourly_limit=100,
        min_delay=0.0,
        max_delay=0.0
    )


@pytest.fixture
def rate_limiter(clock, fast_rate_config):
    return RateLimiter(fast_rate_config, clock=clock, rng=random.Random(42))


@pytest.fixture
def health_monitor(clock):
    return WorkerHealthMonitor(HealthMonitorConfig(recovery_delay=30.0), clock=clock)


def always_succeeds(task):
    return ExecutionOutcome(success=True, duration=0.0)


def always_fails(task):
    return ExecutionOutcome(success=False, error="upstream rejected request")


@pytest.fixture
def make_orchestrator(clock, fast_rate_config):
    """Фабрика оркестраторов на управляемых часах без фонового цикла."""
    created = []

    def factory(executor=always_succeeds, rate_config=None, health_config=None, **config_overrides):
        options = dict(auto_start=False, retry_delay=0.0, collect_host_metrics=False)
        options.update(config_overrides)

        orchestrator = TaskOrchestrator(
            executor,
            config=OrchestratorConfig(**options),
            rate_limit_config=rate_config or fast_rate_config,
            health_config=health_config,
            clock=clock
        )
        created.append(orchestrator)
        return orchestrator

    yield factory

    for orchestrator in created:
        orchestrator.shutdown(wait=True, timeout=5.0)


@pytest.fixture
def drain():
    """Такты с ожиданием исполнителя, пока задачи отправляются."""
    def run(orchestrator, max_ticks=50):
        dispatched = 0
        for _ in range(max_ticks):
            count = orchestrator.tick()
            orchestrator.wait_for_in_flight(timeout=5.0)
            if count == 0:
                break
            dispatched += count
        return dispatched

    return run
