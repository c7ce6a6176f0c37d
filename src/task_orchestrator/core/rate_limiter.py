"""
Адаптивный ограничитель скорости запуска задач.

Ограничитель решает, можно ли начать новую единицу работы прямо сейчас.
Он ведет суточный и часовой счетчики, скользящее окно последних попыток,
адаптивную задержку между запусками и режим охлаждения (cooldown).
"""

import random
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Deque, Optional, Tuple

from ..models.rate_limit import DenialReason, RateLimitDecision, RateLimitStatus, UsageSnapshot
from ..utils.clock import Clock, SystemClock
from ..utils.logger import get_logger
from ..exceptions import ConfigurationError


logger = get_logger(__name__)


@dataclass
class RateLimitConfig:
    """Конфигурация ограничителя скорости."""
    daily_limit: int = 100
    hourly_limit: int = 10
    min_delay: float = 120.0  # Минимальная задержка между запусками, секунды
    max_delay: float = 600.0  # Максимальная задержка между запусками, секунды
    burst_limit: Optional[float] = None  # По умолчанию min(10, hourly_limit / 4)
    burst_window: float = 300.0  # Окно защиты от всплесков
    cooldown_period: float = 1800.0  # Длительность автоматического охлаждения
    adaptive: bool = True  # Подстраивать задержку под долю успехов
    success_window: float = 3600.0  # Скользящее окно для доли успехов
    cooldown_success_rate: float = 0.3  # Порог доли успехов для охлаждения
    cooldown_min_samples: int = 10  # Минимум попыток в окне для охлаждения
    error_wait: float = 60.0  # Ожидание при внутренней ошибке

    def effective_burst_limit(self) -> float:
        if self.burst_limit is not None:
            return self.burst_limit
        return min(10, self.hourly_limit / 4)

    def validate(self):
        errors = []
        if self.daily_limit < 0:
            errors.append("daily_limit must be >= 0")
        if self.hourly_limit < 0:
            errors.append("hourly_limit must be >= 0")
        if self.min_delay < 0:
            errors.append("min_delay must be >= 0")
        if self.max_delay < self.min_delay:
            errors.append("max_delay must be >= min_delay")
        if self.cooldown_period < 0:
            errors.append("cooldown_period must be >= 0")
        if not 0.0 <= self.cooldown_success_rate <= 1.0:
            errors.append("cooldown_success_rate must be within [0, 1]")
        if errors:
            raise ConfigurationError(f"Rate limit configuration invalid: {'; '.join(errors)}")


class RateLimiter:
    """Ограничитель скорости с адаптивной задержкой и охлаждением."""

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None
    ):
        self.config = config or RateLimitConfig()
        self.config.validate()
        self._clock = clock or SystemClock()
        self._random = rng or random.Random()
        self._lock = threading.RLock()

        now = self._clock.now()
        self._accounts_today = 0
        self._accounts_this_hour = 0
        self._day_opened = now.date()
        self._hour_opened = self._hour_start(now)
        self._last_creation: Optional[datetime] = None
        self._current_delay = self.config.min_delay
        self._success_rate = 1.0
        self._recent_attempts: Deque[Tuple[datetime, bool]] = deque()
        self._recent_dispatches: Deque[datetime] = deque()
        self._cooldown_until: Optional[datetime] = None

        logger.info(f"RateLimiter initialized with config: {self.config}")

    # ------------------------------------------------------------------
    # Проверка разрешения
    # ------------------------------------------------------------------

    def can_proceed(self) -> RateLimitDecision:
        """
        Проверка, можно ли запустить новую задачу сейчас.

        Порядок проверок: охлаждение, суточный лимит, часовой лимит,
        минимальная задержка, защита от всплесков. Любая внутренняя ошибка
        приводит к отказу с фиксированным ожиданием.

        Returns:
            Решение ограничителя
        """
        try:
            with self._lock:
                return self._evaluate(self._clock.now())
        except Exception as e:
            logger.error(f"Rate limit check failed: {e}")
            now = self._clock.now()
            return RateLimitDecision.deny(
                DenialReason.LIMITER_ERROR,
                self.config.error_wait,
                now + timedelta(seconds=self.config.error_wait)
            )

    def _evaluate(self, now: datetime) -> RateLimitDecision:
        self._roll_windows(now)

        if self._cooldown_until is not None:
            remaining = (self._cooldown_until - now).total_seconds()
            if remaining > 0:
                return RateLimitDecision.deny(DenialReason.COOLDOWN_ACTIVE, remaining, self._cooldown_until)
            self._cooldown_until = None
            logger.info("Cooldown period expired")

        if self._accounts_today >= self.config.daily_limit:
            next_day = self._next_day_reset(now)
            return RateLimitDecision.deny(
                DenialReason.DAILY_LIMIT, (next_day - now).total_seconds(), next_day
            )

        if self._accounts_this_hour >= self.config.hourly_limit:
            next_hour = self._next_hour_reset(now)
            return RateLimitDecision.deny(
                DenialReason.HOURLY_LIMIT, (next_hour - now).total_seconds(), next_hour
            )

        if self._last_creation is not None:
            elapsed = (now - self._last_creation).total_seconds()
            if elapsed < self._current_delay:
                wait_time = self._current_delay - elapsed
                return RateLimitDecision.deny(
                    DenialReason.MIN_DELAY_NOT_ELAPSED,
                    wait_time,
                    now + timedelta(seconds=wait_time)
                )

        self._prune_dispatches(now)
        if len(self._recent_dispatches) >= self.config.effective_burst_limit():
            wait_time = self.config.burst_window
            return RateLimitDecision.deny(
                DenialReason.BURST_LIMIT, wait_time, now + timedelta(seconds=wait_time)
            )

        return RateLimitDecision.allow()

    def get_next_available_slot(self) -> datetime:
        """Ближайший момент, когда запуск будет разрешен."""
        decision = self.can_proceed()
        now = self._clock.now()

        if decision.allowed:
            return now
        if decision.next_available_at is not None:
            return decision.next_available_at
        return now + timedelta(seconds=self.config.error_wait)

    def time_until_next_slot(self) -> float:
        """Секунды до ближайшего разрешенного запуска."""
        return max(0.0, (self.get_next_available_slot() - self._clock.now()).total_seconds())

    # ------------------------------------------------------------------
    # Учет попыток
    # ------------------------------------------------------------------

    def record_dispatch(self):
        """
        Учет запуска задачи.

        Слот в суточном и часовом лимитах занимается в момент отправки, а не
        по завершении: следующая проверка can_proceed видит запуск, даже если
        задача еще выполняется.
        """
        with self._lock:
            now = self._clock.now()
            self._roll_windows(now)

            self._accounts_today += 1
            self._accounts_this_hour += 1
            self._last_creation = now

            self._recent_dispatches.append(now)
            self._prune_dispatches(now)

            logger.debug(
                f"Dispatch recorded: daily={self._accounts_today}, hourly={self._accounts_this_hour}"
            )

    def record_outcome(self, success: bool):
        """
        Учет результата запущенной задачи.

        Обновляет долю успехов, задержку и при необходимости включает
        охлаждение. Лимиты не трогает: слот занят в record_dispatch.

        Args:
            success: Успешна ли попытка
        """
        cooldown_needed = False

        with self._lock:
            now = self._clock.now()

            self._recent_attempts.append((now, success))
            self._prune_attempts(now)
            self._update_success_rate()

            if self.config.adaptive:
                self._adjust_delay()
            else:
                self._current_delay = self._random.uniform(self.config.min_delay, self.config.max_delay)

            logger.info(
                f"Attempt recorded: success={success}, daily={self._accounts_today}, "
                f"hourly={self._accounts_this_hour}, success_rate={self._success_rate:.2f}, "
                f"delay={self._current_delay:.1f}s"
            )

            if (self._success_rate < self.config.cooldown_success_rate and
                    len(self._recent_attempts) >= self.config.cooldown_min_samples):
                cooldown_needed = True

        if cooldown_needed:
            logger.warning(
                f"Low success rate detected ({self._success_rate:.2f} over "
                f"{len(self._recent_attempts)} attempts), triggering cooldown"
            )
            self.trigger_cooldown()

    def _prune_attempts(self, now: datetime):
        cutoff = now - timedelta(seconds=self.config.success_window)
        while self._recent_attempts and self._recent_attempts[0][0] <= cutoff:
            self._recent_attempts.popleft()

    def _prune_dispatches(self, now: datetime):
        cutoff = now - timedelta(seconds=self.config.burst_window)
        while self._recent_dispatches and self._recent_dispatches[0] <= cutoff:
            self._recent_dispatches.popleft()

    def _update_success_rate(self):
        if not self._recent_attempts:
            self._success_rate = 1.0
            return

        successful = sum(1 for _, success in self._recent_attempts if success)
        self._success_rate = successful / len(self._recent_attempts)

    def _adjust_delay(self):
        """Пересчет задержки по доле успехов с джиттером."""
        min_delay = self.config.min_delay
        max_delay = self.config.max_delay
        span = max_delay - min_delay

        if self._success_rate >= 0.9:
            delay = min_delay + span * 0.2
        elif self._success_rate >= 0.7:
            delay = min_delay + span * 0.5
        else:
            delay = min_delay + span * 0.8

        delay *= self._random.uniform(0.8, 1.2)
        self._current_delay = max(min_delay, min(max_delay, delay))

    # ------------------------------------------------------------------
    # Административные операции
    # ------------------------------------------------------------------

    def trigger_cooldown(self, duration: Optional[float] = None):
        """
        Включение режима охлаждения.

        Args:
            duration: Длительность в секундах (по умолчанию cooldown_period)
        """
        cooldown = self.config.cooldown_period if duration is None else duration
        with self._lock:
            self._cooldown_until = self._clock.now() + timedelta(seconds=cooldown)
            until = self._cooldown_until

        logger.warning(f"Cooldown triggered for {cooldown:.0f}s (until {until.isoformat()})")

    def reset_limits(self):
        """Сброс всех счетчиков и охлаждения."""
        with self._lock:
            now = self._clock.now()
            self._accounts_today = 0
            self._accounts_this_hour = 0
            self._day_opened = now.date()
            self._hour_opened = self._hour_start(now)
            self._cooldown_until = None
            self._recent_attempts.clear()
            self._recent_dispatches.clear()
            self._success_rate = 1.0
            self._current_delay = self.config.min_delay

        logger.info("Rate limits reset")

    def update_config(self, **overrides):
        """Обновление параметров конфигурации."""
        with self._lock:
            for key, value in overrides.items():
                if not hasattr(self.config, key):
                    raise ConfigurationError(f"Unknown rate limit option: {key}")
                setattr(self.config, key, value)
            self.config.validate()
            self._current_delay = max(self.config.min_delay, min(self.config.max_delay, self._current_delay))

        logger.info(f"Rate limit configuration updated: {overrides}")

    # ------------------------------------------------------------------
    # Границы суток и часов
    # ------------------------------------------------------------------

    def reset_expired_windows(self):
        """Сброс счетчиков, чьи сутки или час уже закончились."""
        with self._lock:
            self._roll_windows(self._clock.now())

    def _roll_windows(self, now: datetime):
        if now.date() != self._day_opened:
            self._accounts_today = 0
            self._day_opened = now.date()
            logger.info("Daily rate limit counter reset")

        hour_start = self._hour_start(now)
        if hour_start != self._hour_opened:
            self._accounts_this_hour = 0
            self._hour_opened = hour_start
            logger.info("Hourly rate limit counter reset")

    @staticmethod
    def _hour_start(now: datetime) -> datetime:
        return now.replace(minute=0, second=0, microsecond=0)

    @staticmethod
    def _next_day_reset(now: datetime) -> datetime:
        return datetime.combine(now.date() + timedelta(days=1), datetime.min.time())

    def _next_hour_reset(self, now: datetime) -> datetime:
        return self._hour_start(now) + timedelta(hours=1)

    # ------------------------------------------------------------------
    # Состояние
    # ------------------------------------------------------------------

    def get_status(self) -> RateLimitStatus:
        """Снимок текущего состояния."""
        with self._lock:
            now = self._clock.now()
            self._roll_windows(now)
            in_cooldown = self._cooldown_until is not None and self._cooldown_until > now

            return RateLimitStatus(
                daily=UsageSnapshot(self._accounts_today, self.config.daily_limit),
                hourly=UsageSnapshot(self._accounts_this_hour, self.config.hourly_limit),
                current_delay=self._current_delay,
                success_rate=self._success_rate,
                recent_attempts=len(self._recent_attempts),
                in_cooldown=in_cooldown,
                cooldown_until=self._cooldown_until if in_cooldown else None,
                next_daily_reset=self._next_day_reset(now),
                next_hourly_reset=self._next_hour_reset(now)
            )

    @property
    def current_delay(self) -> float:
        with self._lock:
            return self._current_delay

    @property
    def success_rate(self) -> float:
        with self._lock:
            return self._success_rate

    @property
    def last_creation_time(self) -> Optional[datetime]:
        with self._lock:
            return self._last_creation

    def is_in_cooldown(self) -> bool:
        with self._lock:
            return self._cooldown_until is not None and self._cooldown_until > self._clock.now()

    def __repr__(self) -> str:
        status = self.get_status()
        return (f"RateLimiter(daily={status.daily.used}/{status.daily.limit}, "
                f"hourly={status.hourly.used}/{status.hourly.limit}, "
                f"delay={status.current_delay:.1f}s, cooldown={status.in_cooldown})")
