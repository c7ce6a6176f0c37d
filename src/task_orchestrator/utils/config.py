"""
Система конфигурации оркестратора.
"""

import json
import yaml
import os
from typing import Any, Callable, Dict, Optional, Union
from dataclasses import dataclass, asdict, field, fields
from pathlib import Path

from ..core.rate_limiter import RateLimitConfig
from ..core.health_monitor import HealthMonitorConfig
from ..core.orchestrator import OrchestratorConfig
from ..exceptions import ConfigurationError


@dataclass
class Config:
    """Основная конфигурация оркестратора."""

    log_level: str = "INFO"
    log_file: Optional[str] = None
    event_history_size: int = 500

    # Конфигурации компонентов
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    health: HealthMonitorConfig = field(default_factory=HealthMonitorConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Преобразование в словарь."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Config':
        """Создание из словаря."""
        data = dict(data or {})

        orchestrator_data = data.pop('orchestrator', None) or {}
        rate_limit_data = data.pop('rate_limit', None) or {}
        health_data = data.pop('health', None) or {}

        try:
            return cls(
                orchestrator=OrchestratorConfig(**orchestrator_data),
                rate_limit=RateLimitConfig(**rate_limit_data),
                health=HealthMonitorConfig(**health_data),
                **data
            )
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration option: {e}") from e

    def validate(self) -> bool:
        """
        Валидация конфигурации.

        Raises:
            ConfigurationError: Со списком всех найденных проблем
        """
        errors = []

        if self.log_level.upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            errors.append(f"log_level '{self.log_level}' is not a logging level")

        if self.event_history_size < 1:
            errors.append("event_history_size must be >= 1")

        for section in (self.orchestrator, self.rate_limit, self.health):
            try:
                section.validate()
            except ConfigurationError as e:
                errors.append(str(e))

        if errors:
            raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")

        return True

    def update(self, **kwargs) -> 'Config':
        """Обновление конфигурации с новыми значениями."""
        return merge_configs(self, kwargs)


def load_config(file_path: Union[str, Path]) -> Config:
    """
    Загрузка конфигурации из файла.

    Args:
        file_path: Путь к файлу конфигурации (.yaml, .yml или .json)

    Returns:
        Объект конфигурации
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with open(file_path, 'r', encoding='utf-8') as f:
        if file_path.suffix.lower() in ['.yaml', '.yml']:
            data = yaml.safe_load(f)
        elif file_path.suffix.lower() == '.json':
            data = json.load(f)
        else:
            raise ConfigurationError(f"Unsupported configuration file format: {file_path.suffix}")

    config = Config.from_dict(data)
    config.validate()

    return config


def save_config(config: Config, file_path: Union[str, Path], format: str = 'yaml'):
    """
    Сохранение конфигурации в файл.

    Args:
        config: Объект конфигурации
        file_path: Путь к файлу
        format: Формат файла ('yaml' или 'json')
    """
    file_path = Path(file_path)
    data = config.to_dict()

    file_path.parent.mkdir(parents=True, exist_ok=True)

    with open(file_path, 'w', encoding='utf-8') as f:
        if format.lower() == 'yaml':
            yaml.safe_dump(data, f, default_flow_style=False, indent=2)
        elif format.lower() == 'json':
            json.dump(data, f, indent=2, ensure_ascii=False)
        else:
            raise ConfigurationError(f"Unsupported format: {format}")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_section(prefix: str, section_cls) -> Dict[str, Any]:
    """Чтение полей секции из переменных PREFIX_<FIELD>."""
    section: Dict[str, Any] = {}

    for section_field in fields(section_cls):
        raw = os.getenv(f"{prefix}_{section_field.name.upper()}")
        if raw is None or raw == '':
            continue

        default = section_field.default
        parser: Callable[[str], Any]
        if isinstance(default, bool):
            parser = _parse_bool
        elif isinstance(default, int):
            parser = int
        else:
            # float и Optional[float]
            parser = float

        try:
            section[section_field.name] = parser(raw)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {prefix}_{section_field.name.upper()}: {raw!r}"
            ) from e

    return section


def load_config_from_env() -> Config:
    """
    Загрузка конфигурации из переменных окружения.

    Поддерживаются ORCHESTRATOR_LOG_LEVEL, ORCHESTRATOR_LOG_FILE,
    ORCHESTRATOR_EVENT_HISTORY_SIZE и поля секций с префиксами
    ORCHESTRATOR_, RATE_LIMIT_ и HEALTH_ (например RATE_LIMIT_DAILY_LIMIT).

    Returns:
        Объект конфигурации
    """
    config_data: Dict[str, Any] = {}

    if os.getenv('ORCHESTRATOR_LOG_LEVEL'):
        config_data['log_level'] = os.getenv('ORCHESTRATOR_LOG_LEVEL')

    if os.getenv('ORCHESTRATOR_LOG_FILE'):
        config_data['log_file'] = os.getenv('ORCHESTRATOR_LOG_FILE')

    if os.getenv('ORCHESTRATOR_EVENT_HISTORY_SIZE'):
        config_data['event_history_size'] = int(os.getenv('ORCHESTRATOR_EVENT_HISTORY_SIZE'))

    orchestrator_data = _env_section('ORCHESTRATOR', OrchestratorConfig)
    if orchestrator_data:
        config_data['orchestrator'] = orchestrator_data

    rate_limit_data = _env_section('RATE_LIMIT', RateLimitConfig)
    if rate_limit_data:
        config_data['rate_limit'] = rate_limit_data

    health_data = _env_section('HEALTH', HealthMonitorConfig)
    if health_data:
        config_data['health'] = health_data

    return Config.from_dict(config_data)


def create_default_config() -> Config:
    """Создание конфигурации по умолчанию."""
    return Config()


def merge_configs(base_config: Config, override: Union[Config, Dict[str, Any]]) -> Config:
    """
    Объединение двух конфигураций.

    Args:
        base_config: Базовая конфигурация
        override: Конфигурация или словарь с переопределениями; из словаря
            берутся только заданные ключи

    Returns:
        Объединенная конфигурация
    """
    base_dict = base_config.to_dict()
    override_dict = override.to_dict() if isinstance(override, Config) else dict(override)

    # Рекурсивное объединение словарей
    def merge_dicts(base: dict, other: dict) -> dict:
        result = base.copy()
        for key, value in other.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    return Config.from_dict(merge_dicts(base_dict, override_dict))
