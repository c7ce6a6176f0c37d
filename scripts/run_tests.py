#!/usr/bin/env python3
"""
Запуск тестов оркестратора задач.

Примеры:
    python scripts/run_tests.py
    python scripts/run_tests.py --component rate_limiter -x
    python scripts/run_tests.py --coverage --fail-under 85
"""

import sys
import subprocess
import argparse
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Компонент -> модуль тестов
COMPONENTS = {
    "rate_limiter": "tests/test_rate_limiter.py",
    "health": "tests/test_health_monitor.py",
    "orchestrator": "tests/test_orchestrator.py",
    "components": "tests/test_components.py",
}


def build_command(args) -> list:
    cmd = [sys.executable, "-m", "pytest"]

    if args.coverage:
        cmd.extend(["--cov=task_orchestrator", "--cov-report=term-missing"])
        if args.html:
            cmd.append("--cov-report=html")
        if args.fail_under is not None:
            cmd.append(f"--cov-fail-under={args.fail_under}")

    if args.verbose:
        cmd.append("-v")
    if args.exitfirst:
        cmd.append("-x")
    if args.pattern:
        cmd.extend(["-k", args.pattern])

    if args.component:
        cmd.extend(COMPONENTS[name] for name in args.component)
    else:
        cmd.append("tests/")

    return cmd


def main():
    parser = argparse.ArgumentParser(description="Запуск тестов оркестратора задач")
    parser.add_argument(
        "--component",
        choices=sorted(COMPONENTS),
        action="append",
        help="Тестировать только указанный компонент (можно повторять)"
    )
    parser.add_argument("--coverage", action="store_true", help="Измерять покрытие")
    parser.add_argument("--html", action="store_true", help="HTML-отчет о покрытии")
    parser.add_argument("--fail-under", type=int, help="Минимальный процент покрытия")
    parser.add_argument("-k", "--pattern", help="Фильтр тестов по имени")
    parser.add_argument("-x", "--exitfirst", action="store_true", help="Остановиться на первой ошибке")
    parser.add_argument("-v", "--verbose", action="store_true", help="Подробный вывод")

    args = parser.parse_args()
    cmd = build_command(args)

    print(f"Запуск: {' '.join(cmd)}")
    try:
        return subprocess.run(cmd, cwd=PROJECT_ROOT).returncode
    except KeyboardInterrupt:
        print("\nПрервано пользователем")
        return 130


if __name__ == "__main__":
    sys.exit(main())
