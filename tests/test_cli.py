"""Tests for the CLI entry point and its exit codes."""

from unittest.mock import patch

import pytest
import yaml

from mongo_replicaset_sync.cli import main
from mongo_replicaset_sync.exceptions import ConvergenceError, ReplicaSetAPIError

VALID = {"replica_set": {"name": "rs-prod"}, "aws": {"region": "us-east-1"}}


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(VALID))
    return str(path)


def _run_with(config_path, run_side_effect=None, warnings=0):
    """Run main() with a patched Runner whose run() optionally raises or reports warnings."""
    with patch("mongo_replicaset_sync.cli.Runner") as MockRunner:
        def build(config, reporter, dry_run):
            runner = MockRunner.return_value
            runner.reporter = reporter

            def run():
                for n in range(warnings):
                    reporter.warning(f"warning {n}")
                if run_side_effect is not None:
                    raise run_side_effect

            runner.run.side_effect = run
            return runner

        MockRunner.side_effect = build
        code = main(["-c", config_path])
        return code, MockRunner


class TestCLI:
    def test_validate_valid_config(self, config_path):
        assert main(["--validate", "-c", config_path]) == 0

    def test_validate_invalid_config(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"aws": {"region": "us-east-1"}}))
        assert main(["--validate", "-c", str(path)]) == 2

    def test_missing_config_file(self):
        assert main(["-c", "/nonexistent/config.yaml"]) == 2

    def test_clean_run_exits_zero(self, config_path):
        code, MockRunner = _run_with(config_path)
        assert code == 0
        MockRunner.return_value.close.assert_called_once_with()

    def test_warnings_exit_one(self, config_path):
        code, _ = _run_with(config_path, warnings=2)
        assert code == 1

    def test_sync_error_exits_two(self, config_path):
        code, MockRunner = _run_with(config_path, run_side_effect=ConvergenceError("too many", 9), warnings=1)
        assert code == 2
        MockRunner.return_value.close.assert_called_once_with()

    def test_replica_set_error_exits_two(self, config_path):
        code, _ = _run_with(config_path, run_side_effect=ReplicaSetAPIError("hello failed"))
        assert code == 2

    def test_unexpected_error_exits_two(self, config_path):
        code, _ = _run_with(config_path, run_side_effect=KeyError("members"))
        assert code == 2

    def test_dry_run_flag_passed(self, config_path):
        with patch("mongo_replicaset_sync.cli.Runner") as MockRunner:
            MockRunner.return_value.run.return_value = None
            main(["-c", config_path, "--dry-run"])
        assert MockRunner.call_args.kwargs["dry_run"] is True
