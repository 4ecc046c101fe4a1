"""
Tests for the stackup command line.
"""

import json
from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from stackup.cli import main
from stackup.errors import StackNotFoundError, UpdateError
from stackup.provider import ValidationResult


class TestCLICommands:
    """Test CLI commands with mocked stacks."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch) -> None:
        for name in ["AWS_REGION", "AWS_DEFAULT_REGION", "AWS_PROFILE", "STACKUP_POLL_INTERVAL", "STACKUP_TIMEOUT"]:
            monkeypatch.delenv(name, raising=False)

    @pytest.fixture
    def runner(self) -> CliRunner:
        return CliRunner()

    @pytest.fixture
    def provider_cls(self, provider):
        with patch("stackup.cli.StackStatusProvider", return_value=provider) as mock_cls:
            yield mock_cls

    @pytest.fixture
    def stack_cls(self, provider_cls):
        with patch("stackup.cli.Stack") as mock_cls:
            mock_cls.return_value.name = "my-stack"
            yield mock_cls

    def invoke(self, runner: CliRunner, args):
        with runner.isolated_filesystem():
            with open("template.json", "w") as f:
                f.write('{"Resources": {}}')
            with open("params.json", "w") as f:
                json.dump([{"ParameterKey": "Env", "ParameterValue": "dev"}], f)
            return runner.invoke(main, args)

    def test_deploy_success(self, runner, stack_cls) -> None:
        """Test a successful deploy."""
        stack_cls.return_value.deploy.return_value = True

        result = self.invoke(runner, ["deploy", "-s", "my-stack", "-t", "template.json", "-p", "params.json"])

        assert result.exit_code == 0
        assert "Stack my-stack deployed" in result.output
        template, parameters = stack_cls.return_value.deploy.call_args[0]
        assert template == '{"Resources": {}}'
        assert [p.key for p in parameters] == ["Env"]

    def test_deploy_failure_prints_diagnosis(self, runner, stack_cls) -> None:
        """Test that a failed deploy exits non-zero with a report."""
        stack = stack_cls.return_value
        stack.deploy.return_value = False
        stack.status.return_value = "ROLLBACK_COMPLETE"

        with patch("stackup.cli.StackDiagnostics") as diagnostics_cls:
            diagnostics_cls.return_value.generate_report.return_value = "REPORT"
            result = self.invoke(runner, ["deploy", "-s", "my-stack", "-t", "template.json"])

        assert result.exit_code == 1
        assert "was not deployed" in result.output
        assert "REPORT" in result.output

    def test_create_and_update(self, runner, stack_cls) -> None:
        stack_cls.return_value.create.return_value = True
        stack_cls.return_value.update.return_value = True

        assert self.invoke(runner, ["create", "-s", "my-stack", "-t", "template.json"]).exit_code == 0
        assert self.invoke(runner, ["update", "-s", "my-stack", "-t", "template.json"]).exit_code == 0

    def test_missing_template(self, runner, stack_cls) -> None:
        result = runner.invoke(main, ["deploy", "-s", "my-stack", "-t", "nope.json"])

        assert result.exit_code != 0
        stack_cls.return_value.deploy.assert_not_called()

    def test_delete(self, runner, stack_cls) -> None:
        stack_cls.return_value.delete.return_value = True

        result = self.invoke(runner, ["delete", "-s", "my-stack"])

        assert result.exit_code == 0
        assert "deleted" in result.output

    def test_delete_missing_stack(self, runner, stack_cls) -> None:
        stack_cls.return_value.delete.return_value = False

        result = self.invoke(runner, ["delete", "-s", "my-stack"])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_delete_failed(self, runner, stack_cls) -> None:
        """Test that UpdateError is reported as an error."""
        stack_cls.return_value.delete.side_effect = UpdateError("my-stack", "DELETE_FAILED")

        result = self.invoke(runner, ["delete", "-s", "my-stack"])

        assert result.exit_code == 1
        assert "Error: Stack my-stack ended in DELETE_FAILED" in result.output

    def test_validate(self, runner, provider_cls, provider) -> None:
        provider.validate_template.return_value = ValidationResult(description="Demo")

        result = self.invoke(runner, ["validate", "-t", "template.json"])

        assert result.exit_code == 0
        assert "Template is valid" in result.output
        assert "Demo" in result.output

    def test_validate_invalid(self, runner, provider_cls, provider) -> None:
        provider.validate_template.return_value = ValidationResult(error_code="ValidationError", message="bad")

        result = self.invoke(runner, ["validate", "-t", "template.json"])

        assert result.exit_code == 1
        assert "ValidationError" in result.output

    def test_status(self, runner, provider_cls, provider) -> None:
        """Test status against the real Stack class."""
        result = self.invoke(runner, ["status", "-s", "my-stack"])

        assert result.exit_code == 0
        assert "Status: CREATE_COMPLETE" in result.output

    def test_status_missing(self, runner, provider_cls, provider) -> None:
        provider.describe_stack.side_effect = StackNotFoundError("my-stack")

        result = self.invoke(runner, ["status", "-s", "my-stack"])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_outputs_json(self, runner, provider_cls, provider, describe) -> None:
        provider.describe_stack.return_value = describe("CREATE_COMPLETE", outputs={"Url": "https://x"})

        result = self.invoke(runner, ["outputs", "-s", "my-stack", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {"Url": "https://x"}

    def test_diagnose_json(self, runner, provider_cls, provider) -> None:
        result = self.invoke(runner, ["diagnose", "-s", "my-stack", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.output)["status"] == "CREATE_COMPLETE"

    def test_global_options(self, runner, provider_cls) -> None:
        """Test that --region and --profile reach the provider."""
        self.invoke(runner, ["--region", "eu-west-1", "--profile", "ops", "status", "-s", "my-stack"])

        provider_cls.assert_called_with(region="eu-west-1", profile="ops")

    def test_bad_config(self, runner, provider_cls) -> None:
        result = runner.invoke(main, ["--config", "missing.yaml", "status", "-s", "my-stack"])

        assert result.exit_code == 1
        assert "Config file not found" in result.output
