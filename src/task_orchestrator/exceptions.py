"""
Исключения для оркестратора задач.
"""


class OrchestratorError(Exception):
    """Базовое исключение для оркестратора."""
    pass


class TaskExecutionError(OrchestratorError):
    """Ошибка выполнения задачи."""
    pass


class TaskTimeoutError(TaskExecutionError):
    """Задача не завершилась за отведенное время."""
    pass


class PayloadGenerationError(OrchestratorError):
    """Генератор не смог подготовить данные задачи."""
    pass


class WorkerError(OrchestratorError):
    """Ошибка воркера."""
    pass


class WorkerNotFoundError(WorkerError):
    """Воркер не зарегистрирован."""
    pass


class WorkerRegistrationError(WorkerError):
    """Ошибка регистрации воркера."""
    pass


class ConfigurationError(OrchestratorError):
    """Ошибка конфигурации."""
    pass


class ValidationError(OrchestratorError):
    """Ошибка валидации."""
    pass
