"""
Setting owner, group and other permission bits on local entries.

Three strategies are tried in order, chosen by probing capabilities at call
time:

1. a native chmod call with the numeric mode,
2. the external ``chmod`` command with an octal mode string,
3. per-attribute calls (readable, writable, executable, each for everybody
   or for the owner only).

The third strategy can only express permissions where group and other are
identical, so any other permission always takes the first or second path.
"""

import os
import stat
from dataclasses import dataclass, replace
from typing import List, Optional, Union

from core.logger import AuditLogger, ActionType, ActionStatus
from core.shell import ShellBridge

from .model import FsAction, Permission

_OWNER_BITS = {
    FsAction.READ: stat.S_IRUSR,
    FsAction.WRITE: stat.S_IWUSR,
    FsAction.EXECUTE: stat.S_IXUSR,
}
_ALL_BITS = {
    FsAction.READ: stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH,
    FsAction.WRITE: stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH,
    FsAction.EXECUTE: stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH,
}
_ATTRIBUTE_NAMES = {
    FsAction.READ: "readable",
    FsAction.WRITE: "writable",
    FsAction.EXECUTE: "executable",
}


@dataclass(frozen=True)
class PermissionCapabilities:
    """What the host offers for changing permissions."""
    native_chmod: bool

    @classmethod
    def probe(cls, native_chmod: Optional[bool] = None) -> "PermissionCapabilities":
        """
        Detect capabilities of this host.

        Args:
            native_chmod: Force the native switch instead of probing
        """
        if native_chmod is None:
            native_chmod = os.name == "posix" and hasattr(os, "chmod")
        return cls(native_chmod=native_chmod)


@dataclass(frozen=True)
class AttributeCall:
    """One per-attribute call made by the fallback strategy."""
    attribute: str
    value: bool
    owner_only: bool
    succeeded: bool
    ignored: bool = False


class PermissionSetter:
    """Applies Permission values to local files and directories."""

    def __init__(
        self,
        capabilities: Optional[PermissionCapabilities] = None,
        shell: Optional[ShellBridge] = None,
        logger: Optional[AuditLogger] = None
    ):
        self.capabilities = capabilities if capabilities is not None else PermissionCapabilities.probe()
        self.shell = shell if shell is not None else ShellBridge(logger=logger)
        self.logger = logger

    def set_permission(
        self,
        path: Union[str, os.PathLike],
        permission: Permission
    ) -> List[AttributeCall]:
        """
        Set the permission bits of ``path``.

        Args:
            path: Local file or directory
            permission: Bits to apply

        Returns:
            The attribute calls made by the fallback strategy, each marked
            ignored; an empty list when the native or command path was used

        Raises:
            ShellCommandFailed: If the external chmod command failed
            OSError: If the native chmod call failed
        """
        path = os.fspath(path)
        if permission.group != permission.other or self.capabilities.native_chmod:
            self._exec_set_permission(path, permission)
            return []

        owner = permission.owner
        group = permission.group
        calls = []
        for action in (FsAction.READ, FsAction.WRITE, FsAction.EXECUTE):
            group_has = group.implies(action)
            calls.append(self._set_attribute(path, permission, action, group_has, owner_only=False))
            if owner.implies(action) != group_has:
                calls.append(self._set_attribute(path, permission, action,
                                                 owner.implies(action), owner_only=True))
        return calls

    def _exec_set_permission(self, path: str, permission: Permission) -> None:
        real_path = os.path.realpath(path)
        try:
            if self.capabilities.native_chmod:
                os.chmod(real_path, permission.to_mode())
            else:
                self.shell.run(["chmod", permission.octal(), real_path])
        except OSError as e:
            if self.logger is not None:
                self.logger.log_action(
                    action_type=ActionType.PERMISSION,
                    description=f"Set permission {permission} on {path}",
                    target=path,
                    status=ActionStatus.FAILED,
                    result=str(e),
                    metadata={"mode": permission.octal(), "native": self.capabilities.native_chmod}
                )
            raise

        if self.logger is not None:
            self.logger.log_action(
                action_type=ActionType.PERMISSION,
                description=f"Set permission {permission} on {path}",
                target=path,
                metadata={"mode": permission.octal(), "native": self.capabilities.native_chmod}
            )

    def _set_attribute(
        self,
        path: str,
        permission: Permission,
        action: FsAction,
        value: bool,
        owner_only: bool
    ) -> AttributeCall:
        """Grant or revoke one access bit for the owner or for everybody."""
        bits = (_OWNER_BITS if owner_only else _ALL_BITS)[action]
        try:
            mode = stat.S_IMODE(os.stat(path).st_mode)
            os.chmod(path, (mode | bits) if value else (mode & ~bits))
            succeeded = True
        except OSError:
            succeeded = False

        call = AttributeCall(
            attribute=_ATTRIBUTE_NAMES[action],
            value=value,
            owner_only=owner_only,
            succeeded=succeeded,
        )
        return self.check_return_value(call, path, permission)

    def check_return_value(self, call: AttributeCall, path: str, permission: Permission) -> AttributeCall:
        """
        Inspect the outcome of a fallback call.

        Failures here are deliberately not raised: the call is marked ignored
        and recorded in the audit log as such.
        """
        if self.logger is not None and not call.succeeded:
            self.logger.log_action(
                action_type=ActionType.PERMISSION,
                description=f"Could not make {path} {call.attribute}={call.value}",
                target=path,
                status=ActionStatus.IGNORED,
                metadata={"mode": permission.octal(), "owner_only": call.owner_only}
            )
        return replace(call, ignored=True)

    def chmod(self, path: Union[str, os.PathLike], mode: str, recursive: bool = False) -> int:
        """
        Run ``chmod [-R] <mode> <path>``.

        Accepts symbolic modes such as ``u+x`` or ``go-w``. Failures are
        logged, not raised.

        Returns:
            The exit code of chmod
        """
        path = os.fspath(path)
        args = ["chmod"]
        if recursive:
            args.append("-R")
        args.extend([mode, path])

        result = self.shell.run(args, check=False)
        if not result.succeeded and self.logger is not None:
            self.logger.log_action(
                action_type=ActionType.PERMISSION,
                description=f"Error while changing permission: {path}",
                target=path,
                status=ActionStatus.FAILED,
                result=result.stderr_text
            )
        return result.exit_code
