"""
Тесты для монитора здоровья воркеров.
"""

import pytest

from task_orchestrator.core.health_monitor import WorkerHealthMonitor, HealthMonitorConfig
from task_orchestrator.models.health import WorkerHealthStatus
from task_orchestrator.utils.events import EventType
from task_orchestrator.exceptions import ConfigurationError, WorkerNotFoundError


def record_many(monitor, worker_id, outcomes, duration=1.0):
    for success in outcomes:
        monitor.record_task_completion(worker_id, success, duration)


class TestHealthMetrics:
    """Тесты расчета метрик."""

    def test_new_worker_is_healthy(self, health_monitor):
        """Тест метрик воркера без истории."""
        health_monitor.register_worker("w1")

        metrics = health_monitor.compute_metrics("w1")

        assert metrics.health_score == 100.0
        assert metrics.status == WorkerHealthStatus.HEALTHY
        assert metrics.success_rate == 1.0
        assert metrics.total_tasks == 0
        assert metrics.last_failure_time is None

    def test_unknown_worker(self, health_monitor):
        """Тест метрик незарегистрированного воркера."""
        assert health_monitor.compute_metrics("missing") is None

        with pytest.raises(WorkerNotFoundError):
            health_monitor.perform_health_check("missing")

    def test_degraded_worker(self, health_monitor):
        """Тест деградации из-за серии неудач."""
        health_monitor.register_worker("w1")
        record_many(health_monitor, "w1", [True] * 9 + [False] * 3)

        metrics = health_monitor.compute_metrics("w1")

        assert metrics.success_rate == pytest.approx(0.75)
        assert metrics.failure_streak == 3
        assert metrics.health_score == pytest.approx(70.0)
        assert metrics.status == WorkerHealthStatus.DEGRADED

    def test_consecutive_failures_make_worker_unhealthy(self, health_monitor):
        """Тест нездорового воркера после десяти неудач подряд."""
        health_monitor.register_worker("w2")
        record_many(health_monitor, "w2", [False] * 10)

        metrics = health_monitor.compute_metrics("w2")

        assert metrics.status == WorkerHealthStatus.UNHEALTHY
        assert metrics.health_score == 0.0
        assert metrics.failure_streak == 10
        assert metrics.last_failure_time is not None

    def test_streak_resets_on_success(self, health_monitor):
        """Тест сброса серии неудач."""
        health_monitor.register_worker("w1")
        record_many(health_monitor, "w1", [False, False, True])

        assert health_monitor.compute_metrics("w1").failure_streak == 0

    def test_average_task_time(self, health_monitor):
        """Тест средней длительности задач."""
        health_monitor.register_worker("w1")
        health_monitor.record_task_completion("w1", True, 2.0)
        health_monitor.record_task_completion("w1", True, 4.0)

        assert health_monitor.compute_metrics("w1").average_task_time == pytest.approx(3.0)

    def test_stale_heartbeat_penalty(self, clock, health_monitor):
        """Тест штрафа за устаревший heartbeat."""
        health_monitor.register_worker("w1")
        clock.advance(61)

        metrics = health_monitor.compute_metrics("w1")
        check = health_monitor.perform_health_check("w1")

        assert metrics.health_score == pytest.approx(70.0)
        assert metrics.status == WorkerHealthStatus.DEGRADED
        assert not check.is_healthy
        assert any("Heartbeat timeout" in issue for issue in check.issues)

    def test_heartbeat_refreshes(self, clock, health_monitor):
        """Тест обновления heartbeat'а."""
        health_monitor.register_worker("w1")
        clock.advance(50)
        health_monitor.process_heartbeat("w1")
        clock.advance(50)

        assert health_monitor.perform_health_check("w1").is_healthy

    def test_resource_usage_issues(self, health_monitor):
        """Тест проблем с ресурсами из heartbeat'а."""
        health_monitor.register_worker("w1")
        health_monitor.process_heartbeat("w1", {'resource_usage': {'cpu': 95.0, 'memory': 97.5}})

        check = health_monitor.perform_health_check("w1")

        assert check.metrics.resource_usage.cpu == 95.0
        assert any("High CPU usage" in issue for issue in check.issues)
        assert any("High memory usage" in issue for issue in check.issues)
        assert len(check.recommendations) == len(check.issues)

    def test_performance_window_pruning(self, clock, health_monitor):
        """Тест отбрасывания старых записей."""
        health_monitor.register_worker("w1")
        record_many(health_monitor, "w1", [False] * 3)
        clock.advance(health_monitor.config.performance_window + 1)
        health_monitor.process_heartbeat("w1")

        metrics = health_monitor.compute_metrics("w1")

        assert metrics.total_tasks == 0
        assert metrics.status == WorkerHealthStatus.HEALTHY

    def test_invalid_config(self):
        """Тест валидации конфигурации."""
        with pytest.raises(ConfigurationError):
            WorkerHealthMonitor(HealthMonitorConfig(min_success_rate=1.5))


class TestRecovery:
    """Тесты восстановления воркеров."""

    def test_recovery_bounded_per_cycle(self, health_monitor):
        """Тест не более одной попытки восстановления за цикл и общего лимита."""
        health_monitor.register_worker("w2")
        record_many(health_monitor, "w2", [False] * 10)

        attempts_per_cycle = []
        for _ in range(5):
            before = health_monitor.events.count(EventType.WORKER_RECOVERY_REQUESTED)
            health_monitor.run_monitoring_cycle()
            after = health_monitor.events.count(EventType.WORKER_RECOVERY_REQUESTED)
            attempts_per_cycle.append(after - before)

        assert attempts_per_cycle == [1, 1, 1, 0, 0]
        assert health_monitor.get_recovery_attempts("w2") == 3
        assert health_monitor.events.count(EventType.WORKER_RECOVERY_FAILED) == 3
        assert health_monitor.events.count(EventType.WORKER_RECOVERED) == 0

    def test_unhealthy_event_carries_issues(self, health_monitor):
        """Тест события о нездоровом воркере."""
        health_monitor.register_worker("w2")
        record_many(health_monitor, "w2", [False] * 10)

        health_monitor.run_monitoring_cycle()

        event = health_monitor.events.history(EventType.WORKER_UNHEALTHY)[0]
        assert event.data['worker_id'] == "w2"
        assert any("Low success rate" in issue for issue in event.data['issues'])
        assert health_monitor.events.count(EventType.SYSTEM_HEALTH_UPDATE) == 1

    def test_degraded_worker_not_recovered(self, clock, health_monitor):
        """Тест отсутствия восстановления для деградировавшего воркера."""
        health_monitor.register_worker("w1")
        clock.advance(61)

        health_monitor.run_monitoring_cycle()

        assert health_monitor.events.count(EventType.WORKER_UNHEALTHY) == 1
        assert health_monitor.events.count(EventType.WORKER_RECOVERY_REQUESTED) == 0

    def test_recovering_status_during_recovery(self, health_monitor):
        """Тест статуса RECOVERING, пока восстановление идет."""
        health_monitor.register_worker("w2")
        record_many(health_monitor, "w2", [False] * 10)
        observed = []

        def on_requested(event):
            observed.append(health_monitor.compute_metrics(event.data['worker_id']).status)
            observed.append(health_monitor.attempt_recovery(event.data['worker_id']))

        health_monitor.events.subscribe(EventType.WORKER_RECOVERY_REQUESTED, on_requested)
        health_monitor.attempt_recovery("w2")

        assert observed == [WorkerHealthStatus.RECOVERING, False]
        assert not health_monitor.is_recovering("w2")
        assert health_monitor.get_recovery_attempts("w2") == 1

    def test_successful_recovery_resets_budget(self, clock):
        """Тест успешного восстановления после выхода неудач из окна."""
        monitor = WorkerHealthMonitor(
            HealthMonitorConfig(performance_window=20.0, recovery_delay=30.0),
            clock=clock
        )
        monitor.register_worker("w1")
        record_many(monitor, "w1", [False] * 6)

        assert monitor.attempt_recovery("w1") is True
        assert monitor.get_recovery_attempts("w1") == 0
        assert monitor.events.count(EventType.WORKER_RECOVERED) == 1

    def test_recovery_of_unknown_worker(self, health_monitor):
        """Тест восстановления незарегистрированного воркера."""
        assert health_monitor.attempt_recovery("ghost") is False
        assert health_monitor.events.count(EventType.WORKER_RECOVERY_REQUESTED) == 0

    def test_zero_recovery_budget(self, clock):
        """Тест нулевого бюджета восстановления."""
        monitor = WorkerHealthMonitor(HealthMonitorConfig(recovery_attempts=0), clock=clock)
        monitor.register_worker("w1")

        assert monitor.attempt_recovery("w1") is False
        assert monitor.events.count(EventType.WORKER_RECOVERY_REQUESTED) == 0


class TestSystemHealth:
    """Тесты сводных метрик."""

    def test_system_health_metrics(self, health_monitor):
        """Тест сводки по всем воркерам."""
        for worker_id in ("w1", "w2", "w3"):
            health_monitor.register_worker(worker_id)

        record_many(health_monitor, "w1", [True] * 4)
        record_many(health_monitor, "w2", [True] * 9 + [False] * 3)
        record_many(health_monitor, "w3", [False] * 10)

        metrics = health_monitor.get_system_health_metrics()

        assert metrics['monitored_workers'] == 3
        assert metrics['healthy_workers'] == 1
        assert metrics['degraded_workers'] == 1
        assert metrics['unhealthy_workers'] == 1
        assert metrics['average_health_score'] == pytest.approx((100.0 + 70.0 + 0.0) / 3)
        assert metrics['window_tasks'] == 26
        assert metrics['window_success_rate'] == pytest.approx(13 / 26)

    def test_empty_system(self, health_monitor):
        """Тест сводки без воркеров."""
        metrics = health_monitor.get_system_health_metrics()

        assert metrics['monitored_workers'] == 0
        assert metrics['average_health_score'] == 0.0

    def test_unregister_worker(self, health_monitor):
        """Тест снятия воркера с мониторинга."""
        health_monitor.register_worker("w1")
        health_monitor.unregister_worker("w1")

        assert not health_monitor.is_registered("w1")
        assert health_monitor.perform_all_health_checks() == []


if __name__ == "__main__":
    pytest.main([__file__])
