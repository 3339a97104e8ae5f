#!/usr/bin/env python3
"""
Code quality checker for the Journal Memories backend.

Runs the project's lint toolchain over ``app/``, ``models/`` and ``tests/``:
1. Ruff (import sorting + linting)
2. Black (code formatting)
3. Pylint (deep code analysis, scored)

Pass ``--fix`` to let Ruff and Black rewrite files instead of only checking.
"""

import argparse
import re
import subprocess
import sys

PYLINT_MIN_SCORE = 9.5
SOURCE_DIRS = ["app/", "models/", "tests/"]


def run_command(cmd: list[str], description: str, is_pylint: bool = False) -> bool:
    """Run a command and return True if successful."""
    print(f"\n{'='*60}")
    print(f"🔍 {description}")
    print(f"Command: {' '.join(cmd)}")
    print("=" * 60)

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as e:
        print(f"💥 Error running {description}: {e}")
        return False

    if result.stdout:
        print("STDOUT:", result.stdout)
    if result.stderr:
        print("STDERR:", result.stderr)

    # Pylint is judged by its score, not its exit code
    if is_pylint and result.stdout:
        score_match = re.search(r"rated at ([\d.]+)/10", result.stdout)
        if score_match:
            score = float(score_match.group(1))
            passed = score >= PYLINT_MIN_SCORE
            print(f"{'✅' if passed else '⚠️'} {description} - Score: {score}/10 (minimum: {PYLINT_MIN_SCORE})")
            return passed

    if result.returncode == 0:
        print(f"✅ {description} - PASSED")
        return True
    print(f"❌ {description} - FAILED (exit code: {result.returncode})")
    return False


def build_checks(fix: bool) -> list[tuple[list[str], str, bool]]:
    ruff = ["ruff", "check", *SOURCE_DIRS] + (["--fix"] if fix else [])
    black = ["python", "-m", "black", *SOURCE_DIRS] + ([] if fix else ["--check"])
    return [
        (ruff, "Ruff - Import sorting and linting", False),
        (black, "Black - Code formatting", False),
        (["python", "-m", "pylint", "app/", "models/", "--score=y"], "Pylint - Code analysis and scoring", True),
    ]


def main():
    """Run all quality checks."""
    parser = argparse.ArgumentParser(description="Journal Memories quality checks")
    parser.add_argument("--fix", action="store_true", help="Apply Ruff and Black fixes")
    args = parser.parse_args()

    print("🚀 Running Journal Memories Quality Checks")

    results = [(description, run_command(cmd, description, is_pylint)) for cmd, description, is_pylint in build_checks(args.fix)]

    print(f"\n{'='*60}")
    print("📊 QUALITY CHECK SUMMARY")
    print("=" * 60)

    for description, success in results:
        print(f"{description}: {'✅ PASSED' if success else '❌ FAILED'}")

    passed = sum(1 for _, success in results if success)
    print(f"\nOverall: {passed}/{len(results)} checks passed")

    if passed == len(results):
        print("🎉 All quality checks passed!")
        sys.exit(0)
    print("⚠️  Some quality checks failed. Please review and fix.")
    sys.exit(1)


if __name__ == "__main__":
    main()
