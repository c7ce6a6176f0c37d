#!/usr/bin/env python3
"""
Запуск примеров оркестратора задач.

Параметры передаются примерам через переменные окружения ORCHESTRATOR_*.
"""

import os
import sys
import argparse
import importlib
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parent.parent

EXAMPLES = {
    "basic": "examples.basic_usage",
    "advanced": "examples.advanced_usage",
}


def main():
    parser = argparse.ArgumentParser(description="Запуск примеров оркестратора задач")
    parser.add_argument("example", choices=sorted(EXAMPLES) + ["all"], help="Пример для запуска")
    parser.add_argument("--config", help="Файл конфигурации YAML/JSON для продвинутого примера")
    parser.add_argument("--endpoint", help="HTTP endpoint для HTTP исполнителя")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Уровень логирования"
    )
    args = parser.parse_args()

    sys.path.insert(0, str(PROJECT_ROOT))
    sys.path.insert(0, str(PROJECT_ROOT / "src"))

    os.environ["ORCHESTRATOR_LOG_LEVEL"] = args.log_level
    if args.config:
        os.environ["ORCHESTRATOR_CONFIG"] = str(Path(args.config).resolve())
    if args.endpoint:
        os.environ["ORCHESTRATOR_ENDPOINT"] = args.endpoint

    names = sorted(EXAMPLES) if args.example == "all" else [args.example]

    for name in names:
        module = importlib.import_module(EXAMPLES[name])
        try:
            module.main()
        except KeyboardInterrupt:
            print("\nПрервано пользователем")
            return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
