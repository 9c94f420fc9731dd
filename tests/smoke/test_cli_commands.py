"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


def run_cli_command(args: list[str], timeout: int = 60) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        args: Arguments after 'python -m learner_engine.cli'
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    result = subprocess.run(
        [sys.executable, "-m", "learner_engine.cli", *args],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=timeout,
    )

    return result.returncode, result.stdout, result.stderr


@pytest.fixture
def profile_file(tmp_path):
    path = tmp_path / "profile.json"
    path.write_text(
        json.dumps(
            {
                "userId": "learner-001",
                "overallAbility": 1500,
                "topicAbilities": {"subnetting": 1450},
                "itemHistory": [
                    {"itemId": "q1", "correct": False, "topic": "subnetting"},
                    {"itemId": "q2", "correct": False, "topic": "subnetting", "confidence": 0.2},
                ],
            }
        )
    )
    return path


@pytest.fixture
def pool_file(tmp_path):
    path = tmp_path / "pool.json"
    path.write_text(json.dumps([{"id": f"q{i}", "topic": "subnetting", "difficulty": 1400 + i * 10} for i in range(20)]))
    return path


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        code, stdout, _ = run_cli_command(["--help"])

        assert code == 0
        assert "next-items" in stdout
        assert "predict" in stdout


class TestForecastCommands:
    """Test prediction commands."""

    def test_predict(self):
        code, stdout, _ = run_cli_command(["predict", "1500", "1500"])

        assert code == 0
        assert "0.500" in stdout

    def test_mastery(self):
        code, stdout, _ = run_cli_command(["mastery", "1450", "1500", "-s", "8", "-s", "12", "-s", "10", "-s", "9"])

        assert code == 0
        assert "Sessions:" in stdout
        assert "6" in stdout


class TestRecordCommand:
    """Test answer recording."""

    def test_record_writes_profile(self, profile_file, tmp_path):
        attempt = tmp_path / "attempt.json"
        attempt.write_text(json.dumps({"itemId": "q9", "isCorrect": True, "difficulty": 1450, "topic": "subnetting"}))
        output = tmp_path / "updated.json"

        code, stdout, _ = run_cli_command(
            ["record", str(profile_file), str(attempt), "--review", "--output", str(output)]
        )

        assert code == 0
        assert "Next review of q9 in 1d" in stdout
        updated = json.loads(output.read_text())
        assert updated["topic_abilities"]["subnetting"] == 1472
        assert len(updated["item_history"]) == 3

    def test_record_rejects_bad_attempt(self, profile_file, tmp_path):
        attempt = tmp_path / "attempt.json"
        attempt.write_text(json.dumps({"itemId": "q9", "difficulty": 1450}))

        code, stdout, _ = run_cli_command(["record", str(profile_file), str(attempt)])

        assert code == 1
        assert "Invalid input" in stdout


class TestSelectionCommands:
    """Test selection and review commands."""

    def test_next_items(self, profile_file, pool_file):
        code, stdout, _ = run_cli_command(
            ["next-items", str(profile_file), str(pool_file), "--count", "3", "--seed", "1", "--topic", "subnetting"]
        )

        assert code == 0
        assert "Next 3 questions" in stdout

    def test_next_items_reproducible(self, profile_file, pool_file):
        args = ["next-items", str(profile_file), str(pool_file), "--count", "4", "--seed", "5"]

        assert run_cli_command(args)[1] == run_cli_command(args)[1]

    def test_next_items_empty_pool(self, profile_file, tmp_path):
        empty = tmp_path / "empty.json"
        empty.write_text("[]")

        code, stdout, _ = run_cli_command(["next-items", str(profile_file), str(empty)])

        assert code == 0
        assert "broaden_criteria" in stdout

    def test_next_items_invalid_pool(self, profile_file, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps([{"id": "q1", "difficulty": "hard"}]))

        code, stdout, _ = run_cli_command(["next-items", str(profile_file), str(bad)])

        assert code == 1
        assert "Invalid input" in stdout

    def test_due(self, tmp_path):
        cards = tmp_path / "cards.json"
        cards.write_text(
            json.dumps(
                [
                    {"item_id": "c1", "interval": 6, "next_review_at": "2025-02-20T00:00:00Z"},
                    {"item_id": "c2", "interval": 30, "next_review_at": "2025-04-01T00:00:00Z"},
                ]
            )
        )

        code, stdout, _ = run_cli_command(["due", str(cards), "--now", "2025-03-01T00:00:00Z"])

        assert code == 0
        assert "c1" in stdout
        assert "c2" not in stdout

    def test_gaps(self, profile_file):
        code, stdout, _ = run_cli_command(["gaps", str(profile_file)])

        assert code == 0
        assert "subnetting" in stdout


class TestSimulation:
    """Test the simulation command."""

    def test_simulate(self):
        code, stdout, _ = run_cli_command(["simulate", "--answers", "20", "--seed", "3"])

        assert code == 0
        assert "Estimated ability" in stdout
