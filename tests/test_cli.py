"""Tests for the securestack-referee command line."""

import json

import pytest
from click.testing import CliRunner

from securestack_referee.cli import main
from securestack_referee.config import reset_config


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    """Run every command from an empty directory with default config."""
    monkeypatch.delenv("SECURESTACK_REFEREE_CONFIG", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


class TestAnalyzeCommand:
    """Tests for the analyze command."""

    def test_default_analysis_output(self, runner):
        result = runner.invoke(main, ["analyze"])

        assert result.exit_code == 0
        assert "Architecture Scores" in result.output
        assert "two-way-tie" in result.output
        assert "Assumptions" in result.output

    def test_json_output(self, runner):
        result = runner.invoke(main, [
            "analyze", "--compliance-strictness", "9", "--cost-sensitivity", "9", "-j",
        ])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["conflicts"]["warnings"][0]["rule_id"] == "compliance-cost-conflict"
        assert data["profile"]["compliance_strictness"] == 9
        assert len(data["assumptions"]) == 4

    def test_input_file_with_camel_case_keys(self, runner, tmp_path):
        input_file = tmp_path / "constraints.json"
        input_file.write_text(json.dumps({
            "riskTolerance": 2,
            "userExperiencePriority": 9,
        }), encoding="utf-8")

        result = runner.invoke(main, ["analyze", "-i", str(input_file), "-j"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["conflicts"]["warnings"][0]["rule_id"] == "risk-ux-conflict"

    def test_options_override_input_file(self, runner, tmp_path):
        input_file = tmp_path / "constraints.json"
        input_file.write_text(json.dumps({"costSensitivity": 2}), encoding="utf-8")

        result = runner.invoke(main, ["analyze", "-i", str(input_file), "--cost-sensitivity", "7", "-j"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["profile"]["cost_sensitivity"] == 7

    def test_input_file_snake_case_key_wins(self, runner, tmp_path):
        input_file = tmp_path / "constraints.json"
        input_file.write_text(json.dumps({"risk_tolerance": 3, "riskTolerance": 7}), encoding="utf-8")
        out = tmp_path / "result.json"

        result = runner.invoke(main, ["analyze", "-i", str(input_file), "-j", "-o", str(out)])

        assert result.exit_code == 0
        assert json.loads(out.read_text(encoding="utf-8"))["profile"]["risk_tolerance"] == 3

    def test_input_file_error_names_key_as_written(self, runner, tmp_path):
        input_file = tmp_path / "constraints.json"
        input_file.write_text(json.dumps({"riskTolerance": 15}), encoding="utf-8")

        result = runner.invoke(main, ["analyze", "-i", str(input_file)])

        assert result.exit_code == 1
        assert "riskTolerance must be between 1 and 10" in result.output

    def test_option_replaces_both_file_spellings(self, runner, tmp_path):
        input_file = tmp_path / "constraints.json"
        input_file.write_text(json.dumps({"riskTolerance": 7, "risk_tolerance": 3}), encoding="utf-8")

        result = runner.invoke(main, ["analyze", "-i", str(input_file), "--risk-tolerance", "9", "-j"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["profile"]["risk_tolerance"] == 9

    def test_out_of_range_value_exits_with_error(self, runner):
        result = runner.invoke(main, ["analyze", "--risk-tolerance", "15"])

        assert result.exit_code == 1
        assert "Invalid constraint input" in result.output
        assert "risk_tolerance must be between 1 and 10" in result.output

    def test_results_saved_to_file(self, runner, tmp_path):
        out = tmp_path / "result.json"
        result = runner.invoke(main, ["analyze", "-o", str(out)])

        assert result.exit_code == 0
        assert json.loads(out.read_text(encoding="utf-8"))["tie"]["state"] == "two-way-tie"

    def test_config_option(self, runner, tmp_path):
        config = tmp_path / "tight.yaml"
        config.write_text("tie_thresholds:\n  near_tie_threshold: 0.1\n", encoding="utf-8")

        result = runner.invoke(main, ["analyze", "-c", str(config), "-j"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["tie"]["state"] == "statistical-tie"

    def test_malformed_tables_exit_with_error(self, runner, tmp_path):
        tables = tmp_path / "tables.yaml"
        tables.write_text("- not a mapping\n", encoding="utf-8")

        result = runner.invoke(main, ["analyze", "-t", str(tables)])

        assert result.exit_code == 1
        assert "Reference data error" in result.output


class TestRulesCommand:
    """Tests for the rules command."""

    def test_lists_rules(self, runner):
        result = runner.invoke(main, ["rules"])

        assert result.exit_code == 0
        assert "risk-ux-conflict" in result.output
        assert "high" in result.output


class TestInitConfigCommand:
    """Tests for the init-config command."""

    def test_writes_config(self, runner, tmp_path):
        result = runner.invoke(main, ["init-config"])

        assert result.exit_code == 0
        assert "Configuration saved to" in result.output
        assert (tmp_path / "referee-config.yaml").exists()

    def test_refuses_to_overwrite(self, runner, tmp_path):
        (tmp_path / "referee-config.yaml").write_text("{}\n", encoding="utf-8")

        result = runner.invoke(main, ["init-config"])

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_force_overwrites(self, runner, tmp_path):
        path = tmp_path / "referee-config.yaml"
        path.write_text("{}\n", encoding="utf-8")

        result = runner.invoke(main, ["init-config", "--force"])

        assert result.exit_code == 0
        assert "near_tie_threshold" in path.read_text(encoding="utf-8")


class TestVersion:

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "1.0.0" in result.output
