"""
Система логирования для оркестратора задач.
"""

import logging
import sys
import threading
from typing import Any, Dict, List, Optional
from pathlib import Path


class OrchestratorFormatter(logging.Formatter):
    """Кастомный форматтер для логов оркестратора."""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)-32s | %(threadName)-15s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record):
        if not hasattr(record, 'threadName'):
            record.threadName = threading.current_thread().name

        # Контекст структурированного логгера
        context = getattr(record, 'context', None)
        message = super().format(record)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            message = f"{message} | {pairs}"
        return message


class MetricsHandler(logging.Handler):
    """
    Обработчик логов для сбора метрик.

    Кроме счетчиков по уровням считает структурированные события
    (task_distributed, task_completed, worker_registered и т.д.).
    """

    def __init__(self):
        super().__init__()
        self._metrics = self._empty_metrics()
        self._lock = threading.Lock()

    @staticmethod
    def _empty_metrics() -> Dict[str, Any]:
        return {
            'total_logs': 0,
            'error_count': 0,
            'warning_count': 0,
            'info_count': 0,
            'debug_count': 0,
            'events': {}
        }

    def emit(self, record):
        with self._lock:
            self._metrics['total_logs'] += 1

            if record.levelno >= logging.ERROR:
                self._metrics['error_count'] += 1
            elif record.levelno >= logging.WARNING:
                self._metrics['warning_count'] += 1
            elif record.levelno >= logging.INFO:
                self._metrics['info_count'] += 1
            elif record.levelno >= logging.DEBUG:
                self._metrics['debug_count'] += 1

            event = getattr(record, 'event', None)
            if event:
                events = self._metrics['events']
                events[event] = events.get(event, 0) + 1

    def get_metrics(self) -> Dict[str, Any]:
        """Получение метрик логов."""
        with self._lock:
            metrics = self._metrics.copy()
            metrics['events'] = dict(self._metrics['events'])
            return metrics

    def reset_metrics(self):
        """Сброс метрик."""
        with self._lock:
            self._metrics = self._empty_metrics()


# Глобальный обработчик метрик
_metrics_handler = MetricsHandler()

# Обработчики, установленные setup_logging; повторный вызов заменяет только их
_installed_handlers: List[logging.Handler] = []

# Шумные сторонние логгеры
QUIET_LOGGERS = ('urllib3', 'requests')


def _install(root_logger: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter):
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    _installed_handlers.append(handler)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    enable_console: bool = True,
    enable_metrics: bool = True,
    log_format: Optional[str] = None
):
    """
    Настройка логирования оркестратора на корневом логгере.

    Обработчики, добавленные предыдущим вызовом, снимаются; чужие
    обработчики корневого логгера не трогаются.

    Args:
        level: Уровень логирования (имя уровня, регистр не важен)
        log_file: Путь к файлу логов; каталог создается при необходимости
        enable_console: Вывод в stdout
        enable_metrics: Подсчет записей в MetricsHandler
        log_format: Формат вместо OrchestratorFormatter
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    while _installed_handlers:
        handler = _installed_handlers.pop()
        root_logger.removeHandler(handler)
        if handler is not _metrics_handler:
            handler.close()

    formatter = logging.Formatter(log_format) if log_format else OrchestratorFormatter()

    if enable_console:
        _install(root_logger, logging.StreamHandler(sys.stdout), numeric_level, formatter)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        _install(root_logger, logging.FileHandler(log_file, encoding='utf-8'), numeric_level, formatter)

    if enable_metrics:
        _install(root_logger, _metrics_handler, logging.DEBUG, formatter)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging_from_config(config, **kwargs):
    """Настройка логирования по общей конфигурации (log_level, log_file)."""
    setup_logging(level=config.log_level, log_file=config.log_file, **kwargs)


def get_logger(name: str) -> logging.Logger:
    """Логгер модуля; вывод настраивается через setup_logging."""
    return logging.getLogger(name)


def get_log_metrics() -> Dict[str, Any]:
    """Получение метрик логов."""
    return _metrics_handler.get_metrics()


def reset_log_metrics():
    """Сброс метрик логов."""
    _metrics_handler.reset_metrics()


class StructuredLogger:
    """Структурированный логгер для событий с контекстом (correlation id, воркер)."""

    def __init__(self, name: str, **context):
        self.logger = get_logger(name)
        self._context: Dict[str, Any] = dict(context)

    def with_context(self, **kwargs) -> 'StructuredLogger':
        """Новый логгер с расширенным контекстом."""
        child = StructuredLogger(self.logger.name, **self._context)
        child._context.update(kwargs)
        return child

    @property
    def context(self) -> Dict[str, Any]:
        return self._context.copy()

    def _log(self, level: str, message: str, data: Dict[str, Any], event: Optional[str] = None):
        if data:
            message += f" | DATA: {data}"
        extra = {'context': self._context.copy(), 'event': event}
        getattr(self.logger, level.lower())(message, extra=extra)

    def log_event(self, event: str, level: str = "INFO", **data):
        """Логирование структурированного события; учитывается в метриках логов."""
        self._log(level, f"EVENT: {event}", data, event=event)

    def log_metric(self, metric_name: str, value: float, unit: str = "", **tags):
        """Логирование метрики."""
        message = f"METRIC: {metric_name}={value}"
        if unit:
            message += f" {unit}"
        if tags:
            message += f" | TAGS: {tags}"

        self.logger.info(message, extra={'context': self._context.copy()})

    def log_error(self, error: Exception, **context):
        """Логирование ошибки с контекстом."""
        merged = {**self._context, **context, 'error_type': type(error).__name__}
        self.logger.error(f"ERROR: {error}", extra={'context': merged}, exc_info=True)

    def info(self, message: str, **data):
        self._log("INFO", message, data)

    def warning(self, message: str, **data):
        self._log("WARNING", message, data)

    def debug(self, message: str, **data):
        self._log("DEBUG", message, data)

    def error(self, message: str, **data):
        self._log("ERROR", message, data)
