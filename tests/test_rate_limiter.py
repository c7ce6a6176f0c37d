"""
Тесты для ограничителя скорости.
"""

import random
import pytest
from datetime import datetime, timedelta

from task_orchestrator.core.rate_limiter import RateLimiter, RateLimitConfig
from task_orchestrator.models.rate_limit import DenialReason
from task_orchestrator.exceptions import ConfigurationError
from task_orchestrator.utils.clock import ManualClock


class TestRateLimitConfig:
    """Тесты для конфигурации ограничителя."""

    def test_default_burst_limit(self):
        """Тест лимита всплесков по умолчанию."""
        assert RateLimitConfig(hourly_limit=10).effective_burst_limit() == 2.5
        assert RateLimitConfig(hourly_limit=100).effective_burst_limit() == 10
        assert RateLimitConfig(hourly_limit=100, burst_limit=3).effective_burst_limit() == 3

    def test_invalid_config(self):
        """Тест валидации конфигурации."""
        with pytest.raises(ConfigurationError) as exc_info:
            RateLimiter(RateLimitConfig(min_delay=10, max_delay=5, daily_limit=-1))

        assert "max_delay" in str(exc_info.value)
        assert "daily_limit" in str(exc_info.value)


class TestRateLimiter:
    """Тесты для класса RateLimiter."""

    def test_fresh_limiter_allows(self, rate_limiter):
        """Тест разрешения без истории."""
        decision = rate_limiter.can_proceed()

        assert decision.allowed
        assert decision.reason is None
        assert rate_limiter.time_until_next_slot() == 0.0
        assert rate_limiter.last_creation_time is None

    def test_daily_limit(self, clock, fast_rate_config):
        """Тест суточного лимита."""
        fast_rate_config.daily_limit = 2
        limiter = RateLimiter(fast_rate_config, clock=clock)

        limiter.record_dispatch()
        limiter.record_dispatch()

        decision = limiter.can_proceed()
        assert not decision.allowed
        assert decision.reason == DenialReason.DAILY_LIMIT
        assert decision.next_available_at == datetime(2024, 1, 2)
        assert decision.wait_time == pytest.approx(12 * 3600)

    def test_slot_taken_at_dispatch(self, clock, fast_rate_config):
        """Тест занятия слота при отправке, а не по результату."""
        fast_rate_config.daily_limit = 1
        limiter = RateLimiter(fast_rate_config, clock=clock)

        limiter.record_dispatch()

        assert limiter.can_proceed().reason == DenialReason.DAILY_LIMIT
        assert limiter.last_creation_time == clock.now()

        clock.advance(5)
        limiter.record_outcome(True)

        assert limiter.get_status().daily.used == 1
        assert limiter.last_creation_time == clock.now() - timedelta(seconds=5)

    def test_outcomes_do_not_take_slots(self, clock, fast_rate_config):
        """Тест: результаты меняют только долю успехов."""
        fast_rate_config.daily_limit = 2
        limiter = RateLimiter(fast_rate_config, clock=clock)

        for _ in range(5):
            limiter.record_outcome(True)

        assert limiter.get_status().daily.used == 0
        assert limiter.get_status().recent_attempts == 5
        assert limiter.can_proceed().allowed

    def test_hourly_limit(self, clock, fast_rate_config):
        """Тест часового лимита и его сброса в начале часа."""
        fast_rate_config.hourly_limit = 3
        fast_rate_config.burst_limit = 100
        limiter = RateLimiter(fast_rate_config, clock=clock)

        for _ in range(3):
            limiter.record_dispatch()

        decision = limiter.can_proceed()
        assert decision.reason == DenialReason.HOURLY_LIMIT
        assert decision.next_available_at == datetime(2024, 1, 1, 13, 0, 0)

        clock.set(datetime(2024, 1, 1, 13, 0, 1))
        assert limiter.can_proceed().allowed
        assert limiter.get_status().daily.used == 3
        assert limiter.get_status().hourly.used == 0

    def test_daily_counter_reset_at_midnight(self, clock, fast_rate_config):
        """Тест сброса суточного счетчика."""
        fast_rate_config.daily_limit = 1
        limiter = RateLimiter(fast_rate_config, clock=clock)

        limiter.record_dispatch()
        assert limiter.can_proceed().reason == DenialReason.DAILY_LIMIT

        clock.set(datetime(2024, 1, 2, 0, 0, 1))
        limiter.reset_expired_windows()

        assert limiter.get_status().daily.used == 0
        assert limiter.can_proceed().allowed

    def test_min_delay(self, clock):
        """Тест минимальной задержки между запусками."""
        config = RateLimitConfig(hourly_limit=100, min_delay=120, max_delay=120)
        limiter = RateLimiter(config, clock=clock)

        limiter.record_dispatch()
        assert limiter.last_creation_time == clock.now()
        clock.advance(30)

        decision = limiter.can_proceed()
        assert decision.reason == DenialReason.MIN_DELAY_NOT_ELAPSED
        assert decision.wait_time == pytest.approx(90)
        assert limiter.time_until_next_slot() == pytest.approx(90)

        clock.advance(90)
        assert limiter.can_proceed().allowed

    def test_burst_limit(self, clock, fast_rate_config):
        """Тест защиты от всплесков."""
        fast_rate_config.burst_limit = 3
        limiter = RateLimiter(fast_rate_config, clock=clock)

        for _ in range(3):
            limiter.record_dispatch()

        decision = limiter.can_proceed()
        assert decision.reason == DenialReason.BURST_LIMIT
        assert decision.wait_time == fast_rate_config.burst_window

        clock.advance(fast_rate_config.burst_window + 1)
        assert limiter.can_proceed().allowed

    def test_low_success_rate_triggers_cooldown(self, clock, fast_rate_config):
        """Тест автоматического охлаждения при низкой доле успехов."""
        limiter = RateLimiter(fast_rate_config, clock=clock)

        for _ in range(9):
            limiter.record_outcome(False)
        assert not limiter.is_in_cooldown()

        limiter.record_outcome(False)

        assert limiter.success_rate == 0.0
        decision = limiter.can_proceed()
        assert not decision.allowed
        assert decision.reason == DenialReason.COOLDOWN_ACTIVE
        assert decision.wait_time == pytest.approx(fast_rate_config.cooldown_period)

    def test_cooldown_precedes_other_checks(self, clock, fast_rate_config):
        """Тест приоритета охлаждения над суточным лимитом."""
        fast_rate_config.daily_limit = 1
        limiter = RateLimiter(fast_rate_config, clock=clock)

        limiter.record_dispatch()
        limiter.trigger_cooldown(60)

        assert limiter.can_proceed().reason == DenialReason.COOLDOWN_ACTIVE

    def test_cooldown_expires(self, clock, rate_limiter):
        """Тест окончания охлаждения."""
        rate_limiter.trigger_cooldown(60)
        assert rate_limiter.is_in_cooldown()
        assert rate_limiter.get_status().in_cooldown

        clock.advance(61)

        assert rate_limiter.can_proceed().allowed
        assert not rate_limiter.is_in_cooldown()
        assert rate_limiter.get_status().cooldown_until is None

    def test_adaptive_delay_bounds(self, clock):
        """Тест границ адаптивной задержки."""
        config = RateLimitConfig(hourly_limit=100, daily_limit=1000, min_delay=100, max_delay=200,
                                 cooldown_min_samples=1000)
        limiter = RateLimiter(config, clock=clock, rng=random.Random(7))

        for index in range(50):
            limiter.record_outcome(index % 3 == 0)
            assert 100 <= limiter.current_delay <= 200

    def test_adaptive_delay_grows_with_failures(self, clock):
        """Тест роста задержки при падении доли успехов."""
        config = RateLimitConfig(hourly_limit=100, min_delay=100, max_delay=200, cooldown_min_samples=1000)
        limiter = RateLimiter(config, clock=clock, rng=random.Random(1))

        limiter.record_outcome(True)
        healthy_delay = limiter.current_delay

        for _ in range(5):
            limiter.record_outcome(False)

        assert limiter.current_delay > healthy_delay

    def test_non_adaptive_delay(self, clock):
        """Тест случайной задержки без адаптации."""
        config = RateLimitConfig(hourly_limit=100, min_delay=10, max_delay=20, adaptive=False)
        limiter = RateLimiter(config, clock=clock, rng=random.Random(3))

        limiter.record_outcome(True)

        assert 10 <= limiter.current_delay <= 20

    def test_success_window_pruning(self, clock, fast_rate_config):
        """Тест скользящего окна доли успехов."""
        limiter = RateLimiter(fast_rate_config, clock=clock)

        limiter.record_outcome(False)
        clock.advance(fast_rate_config.success_window + 1)
        limiter.record_outcome(True)

        assert limiter.success_rate == 1.0
        assert limiter.get_status().recent_attempts == 1

    def test_reset_limits(self, clock, fast_rate_config):
        """Тест административного сброса."""
        fast_rate_config.daily_limit = 1
        limiter = RateLimiter(fast_rate_config, clock=clock)

        limiter.record_dispatch()
        limiter.record_outcome(False)
        limiter.trigger_cooldown()
        limiter.reset_limits()

        status = limiter.get_status()
        assert status.daily.used == 0
        assert not status.in_cooldown
        assert status.success_rate == 1.0
        assert limiter.can_proceed().allowed

    def test_update_config(self, rate_limiter):
        """Тест обновления конфигурации."""
        rate_limiter.update_config(daily_limit=5)
        assert rate_limiter.config.daily_limit == 5

        with pytest.raises(ConfigurationError):
            rate_limiter.update_config(unknown_option=1)

    def test_internal_error_denies(self, rate_limiter, mocker):
        """Тест отказа при внутренней ошибке."""
        mocker.patch.object(rate_limiter, '_evaluate', side_effect=RuntimeError("broken"))

        decision = rate_limiter.can_proceed()

        assert not decision.allowed
        assert decision.reason == DenialReason.LIMITER_ERROR
        assert decision.wait_time == rate_limiter.config.error_wait

    def test_status_snapshot(self, clock, rate_limiter):
        """Тест снимка состояния."""
        for success in (True, False):
            rate_limiter.record_dispatch()
            rate_limiter.record_outcome(success)

        status = rate_limiter.get_status()
        data = status.to_dict()

        assert status.daily.used == 2
        assert status.daily.percentage == pytest.approx(2.0)
        assert status.success_rate == pytest.approx(0.5)
        assert status.next_hourly_reset == clock.now().replace(minute=0, second=0) + timedelta(hours=1)
        assert data['daily_usage']['used'] == 2
        assert data['next_resets']['daily'] == "2024-01-02T00:00:00"


if __name__ == "__main__":
    pytest.main([__file__])
