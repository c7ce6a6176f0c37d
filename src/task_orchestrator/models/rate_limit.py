"""
Модели ограничителя скорости.
"""

from enum import Enum
from typing import Optional, Dict, Any
from dataclasses import dataclass
from datetime import datetime


class DenialReason(Enum):
    """Причины отказа в запуске."""
    COOLDOWN_ACTIVE = "cooldown-active"
    DAILY_LIMIT = "daily-limit"
    HOURLY_LIMIT = "hourly-limit"
    MIN_DELAY_NOT_ELAPSED = "min-delay-not-elapsed"
    BURST_LIMIT = "burst-limit"
    LIMITER_ERROR = "limiter-error"


@dataclass(frozen=True)
class RateLimitDecision:
    """Решение ограничителя: разрешено или отказ с причиной и временем ожидания."""
    allowed: bool
    reason: Optional[DenialReason] = None
    wait_time: float = 0.0
    next_available_at: Optional[datetime] = None

    @classmethod
    def allow(cls) -> 'RateLimitDecision':
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenialReason, wait_time: float,
             next_available_at: Optional[datetime] = None) -> 'RateLimitDecision':
        return cls(
            allowed=False,
            reason=reason,
            wait_time=max(0.0, wait_time),
            next_available_at=next_available_at,
        )


@dataclass(frozen=True)
class UsageSnapshot:
    used: int
    limit: int

    @property
    def percentage(self) -> float:
        if self.limit <= 0:
            return 100.0
        return self.used / self.limit * 100


@dataclass(frozen=True)
class RateLimitStatus:
    """Снимок состояния ограничителя для административного интерфейса."""
    daily: UsageSnapshot
    hourly: UsageSnapshot
    current_delay: float
    success_rate: float
    recent_attempts: int
    in_cooldown: bool
    cooldown_until: Optional[datetime]
    next_daily_reset: datetime
    next_hourly_reset: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'daily_usage': {
                'used': self.daily.used,
                'limit': self.daily.limit,
                'percentage': self.daily.percentage,
            },
            'hourly_usage': {
                'used': self.hourly.used,
                'limit': self.hourly.limit,
                'percentage': self.hourly.percentage,
            },
            'current_delay': self.current_delay,
            'success_rate': self.success_rate,
            'recent_attempts': self.recent_attempts,
            'in_cooldown': self.in_cooldown,
            'cooldown_until': self.cooldown_until.isoformat() if self.cooldown_until else None,
            'next_resets': {
                'daily': self.next_daily_reset.isoformat(),
                'hourly': self.next_hourly_reset.isoformat(),
            },
        }
