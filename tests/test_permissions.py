"""
Tests for the tiered permission setter.
"""

import os
import stat

import pytest

from core.errors import ShellCommandFailed
from core.logger import ActionType, ActionStatus
from core.shell import ShellBridge, ShellResult
from modules.fs_bridge import Permission, PermissionCapabilities, PermissionSetter


class RecordingShell(ShellBridge):
    """Shell bridge that records commands instead of running them."""

    def __init__(self, exit_code=0, stderr=b""):
        super().__init__()
        self.exit_code = exit_code
        self.stderr = stderr
        self.commands = []

    def run(self, args, cwd=None, check=True):
        self.commands.append(list(args))
        result = ShellResult(self.exit_code, b"", self.stderr)
        if check and not result.succeeded:
            raise ShellCommandFailed("failed", command=args, exit_code=self.exit_code,
                                     stderr=result.stderr_text)
        return result


def mode_of(path):
    return stat.S_IMODE(os.stat(path).st_mode)


@pytest.fixture
def target(tmp_path):
    path = tmp_path / "target.txt"
    path.write_bytes(b"data")
    os.chmod(path, 0o777)
    return path


NATIVE = PermissionCapabilities(native_chmod=True)
NO_NATIVE = PermissionCapabilities(native_chmod=False)


class TestNativePath:
    """Native chmod is used whenever it is available."""

    def test_sets_symmetric_mode(self, target):
        shell = RecordingShell()
        calls = PermissionSetter(NATIVE, shell=shell).set_permission(target, Permission.from_mode(0o644))
        assert calls == []
        assert mode_of(target) == 0o644
        assert shell.commands == []

    def test_sets_asymmetric_mode(self, target):
        PermissionSetter(NATIVE).set_permission(target, Permission.from_mode(0o750))
        assert mode_of(target) == 0o750

    def test_logged(self, target, audit_logger):
        PermissionSetter(NATIVE, logger=audit_logger).set_permission(target, Permission.from_mode(0o600))
        entries = audit_logger.get_by_action_type(ActionType.PERMISSION)
        assert entries[0].metadata["mode"] == "0600"

    def test_failure_logged_and_raised(self, tmp_path, audit_logger):
        setter = PermissionSetter(NATIVE, logger=audit_logger)
        with pytest.raises(FileNotFoundError):
            setter.set_permission(tmp_path / "missing", Permission.from_mode(0o600))
        assert audit_logger.get_failed_actions()[0].action_type == ActionType.PERMISSION.value


class TestCommandPath:
    """Without native chmod, asymmetric permissions shell out to chmod."""

    def test_asymmetric_uses_chmod_command(self, target):
        shell = RecordingShell()
        calls = PermissionSetter(NO_NATIVE, shell=shell).set_permission(target, Permission.from_mode(0o640))
        assert calls == []
        assert shell.commands == [["chmod", "0640", os.path.realpath(target)]]

    def test_chmod_command_failure_raises(self, target):
        shell = RecordingShell(exit_code=1, stderr=b"chmod: operation not permitted")
        with pytest.raises(ShellCommandFailed):
            PermissionSetter(NO_NATIVE, shell=shell).set_permission(target, Permission.from_mode(0o640))

    def test_real_chmod_command(self, target):
        PermissionSetter(NO_NATIVE).set_permission(target, Permission.from_mode(0o705))
        assert mode_of(target) == 0o705


class TestFallbackPath:
    """Per-attribute calls when group and other match and no native chmod exists."""

    def test_applies_mode(self, target):
        shell = RecordingShell()
        calls = PermissionSetter(NO_NATIVE, shell=shell).set_permission(target, Permission.from_mode(0o644))

        assert mode_of(target) == 0o644
        assert shell.commands == []
        assert [(c.attribute, c.value, c.owner_only) for c in calls] == [
            ("readable", True, False),
            ("writable", False, False),
            ("writable", True, True),
            ("executable", False, False),
        ]

    def test_owner_only_bits(self, target):
        PermissionSetter(NO_NATIVE).set_permission(target, Permission.from_mode(0o700))
        assert mode_of(target) == 0o700

    def test_every_call_marked_ignored(self, target):
        calls = PermissionSetter(NO_NATIVE).set_permission(target, Permission.from_mode(0o755))
        assert calls
        assert all(c.ignored for c in calls)
        assert all(c.succeeded for c in calls)

    def test_failures_are_ignored(self, tmp_path, audit_logger):
        missing = tmp_path / "missing"
        setter = PermissionSetter(NO_NATIVE, logger=audit_logger)

        calls = setter.set_permission(missing, Permission.from_mode(0o555))

        assert calls
        assert not any(c.succeeded for c in calls)
        assert all(c.ignored for c in calls)
        ignored = [e for e in audit_logger.get_recent() if e.status == ActionStatus.IGNORED.value]
        assert len(ignored) == len(calls)


class TestChmod:
    """Test the shell chmod operation."""

    def test_symbolic_recursive(self, tmp_path):
        root = tmp_path / "tree"
        (root / "sub").mkdir(parents=True)
        leaf = root / "sub" / "leaf"
        leaf.write_bytes(b"x")
        os.chmod(leaf, 0o600)

        assert PermissionSetter().chmod(root, "go+r", recursive=True) == 0
        assert mode_of(leaf) == 0o644

    def test_builds_command(self, tmp_path):
        shell = RecordingShell()
        PermissionSetter(shell=shell).chmod(tmp_path, "755", recursive=True)
        PermissionSetter(shell=shell).chmod(tmp_path, "u+x")
        assert shell.commands == [
            ["chmod", "-R", "755", str(tmp_path)],
            ["chmod", "u+x", str(tmp_path)],
        ]

    def test_failure_logged_not_raised(self, tmp_path, audit_logger):
        shell = RecordingShell(exit_code=1, stderr=b"chmod: cannot access")
        setter = PermissionSetter(shell=shell, logger=audit_logger)

        assert setter.chmod(tmp_path / "missing", "644") == 1

        failed = audit_logger.get_failed_actions()
        assert len(failed) == 1
        assert failed[0].result == "chmod: cannot access"


class TestCapabilities:
    def test_probe_override(self):
        assert PermissionCapabilities.probe(False).native_chmod is False
        assert PermissionCapabilities.probe(True).native_chmod is True

    def test_probe_posix(self):
        assert PermissionCapabilities.probe().native_chmod == (os.name == "posix")
