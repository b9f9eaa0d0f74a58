"""
Tests for the shell bridge.
"""

import pytest

from core.errors import ShellCommandFailed
from core.logger import ActionType, ActionStatus
from core.shell import COMMAND_NOT_FOUND, ShellBridge, ShellResult


class TestShellBridge:
    """Test ShellBridge."""

    def test_captures_stdout(self):
        result = ShellBridge().run(["echo", "hello"])
        assert result.exit_code == 0
        assert result.stdout == b"hello\n"
        assert result.succeeded

    def test_non_zero_exit_raises(self):
        with pytest.raises(ShellCommandFailed) as excinfo:
            ShellBridge().run(["bash", "-c", "echo boom >&2; exit 3"])
        error = excinfo.value
        assert error.exit_code == 3
        assert error.stderr == "boom"
        assert error.command[0] == "bash"

    def test_non_zero_exit_unchecked(self):
        result = ShellBridge().run(["false"], check=False)
        assert result.exit_code == 1
        assert not result.succeeded
        assert result.ignored

    def test_missing_command(self):
        result = ShellBridge().run(["definitely-not-a-command-xyz"], check=False)
        assert result.exit_code == COMMAND_NOT_FOUND
        assert result.stderr_text

        with pytest.raises(ShellCommandFailed):
            ShellBridge().run(["definitely-not-a-command-xyz"])

    def test_working_directory(self, tmp_path):
        result = ShellBridge().run(["pwd"], cwd=str(tmp_path))
        assert result.stdout_text.strip() == str(tmp_path.resolve())

    def test_script_pipeline(self):
        result = ShellBridge().run_script("printf 'a\\nb\\nc\\n' | wc -l")
        assert result.stdout_text.strip() == "3"

    def test_commands_logged(self, audit_logger):
        shell = ShellBridge(logger=audit_logger)
        shell.run(["true"])
        shell.run(["false"], check=False)

        entries = audit_logger.get_by_action_type(ActionType.EXECUTE)
        assert [e.status for e in entries] == [ActionStatus.EXECUTED.value, ActionStatus.FAILED.value]


class TestShellResult:
    def test_is_immutable(self):
        result = ShellResult(0, b"", b"")
        with pytest.raises(AttributeError):
            result.exit_code = 1

    def test_ignored_defaults_false(self):
        assert ShellResult(0, b"", b"").ignored is False

    def test_success_not_ignored(self):
        assert ShellBridge().run(["true"], check=False).ignored is False
