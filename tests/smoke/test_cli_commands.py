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
PACK_FILE = PROJECT_ROOT / "data" / "cardiology_pack.json"


def run_cli_command(args: list[str], timeout: int = 30) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        args: Arguments after 'python -m nuquiz'
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    result = subprocess.run(
        [sys.executable, "-m", "nuquiz", *args],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=timeout,
    )

    return result.returncode, result.stdout, result.stderr


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli_command(["--help"])

        assert code == 0, f"Help failed: {stderr}"
        assert "nuquiz" in stdout.lower()
        for command in ("validate", "paths", "preview", "init-db"):
            assert command in stdout


class TestValidate:
    def test_valid_pack(self):
        code, stdout, stderr = run_cli_command(["validate", str(PACK_FILE)])

        assert code == 0, f"validate failed: {stderr}"
        assert "Hierarchy OK" in stdout

    def test_fact_under_topic(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({
            "name": "Broken",
            "nodes": [
                {"id": 1, "parent_id": None, "name": "t", "label": "T", "type": "topic"},
                {"id": 2, "parent_id": 1, "name": "f", "label": "F", "type": "fact"},
            ],
        }))

        code, stdout, _ = run_cli_command(["validate", str(bad)])

        assert code == 1
        assert "fact not allowed under topic" in stdout

    def test_duplicate_ids(self, tmp_path):
        bad = tmp_path / "dupes.json"
        bad.write_text(json.dumps({
            "name": "Dupes",
            "nodes": [
                {"id": 1, "parent_id": None, "name": "t", "label": "T", "type": "topic"},
                {"id": 1, "parent_id": None, "name": "u", "label": "U", "type": "topic"},
            ],
        }))

        code, stdout, _ = run_cli_command(["validate", str(bad)])

        assert code == 1
        assert "duplicate id" in stdout

    def test_missing_file(self, tmp_path):
        code, stdout, _ = run_cli_command(["validate", str(tmp_path / "nope.json")])

        assert code == 1
        assert "File not found" in stdout

    def test_malformed_json(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")

        code, stdout, _ = run_cli_command(["validate", str(bad)])

        assert code == 1
        assert "Invalid content pack" in stdout


class TestPaths:
    def test_lists_attribute_paths(self):
        code, stdout, stderr = run_cli_command(["paths", str(PACK_FILE)])

        assert code == 0, f"paths failed: {stderr}"
        assert "Left-sided CHF | Symptoms" in stdout
        assert "Right-sided CHF | Causes" in stdout


class TestPreview:
    def test_preview_is_reproducible(self):
        args = ["preview", str(PACK_FILE), "--seed", "7", "--count", "2"]

        first = run_cli_command(args)
        second = run_cli_command(args)

        assert first[0] == 0, f"preview failed: {first[2]}"
        assert first[1] == second[1]
        assert "Q1: select all | Left-sided CHF | Symptoms" in first[1]
        assert "Q2:" in first[1]
        assert "Q3:" not in first[1]

    def test_preview_without_pairs(self, tmp_path):
        pack = tmp_path / "topics.json"
        pack.write_text(json.dumps({
            "name": "Topics only",
            "nodes": [{"id": 1, "parent_id": None, "name": "t", "label": "T", "type": "topic"}],
        }))

        code, stdout, _ = run_cli_command(["preview", str(pack)])

        assert code == 1
        assert "No valid category/attribute pairs" in stdout
