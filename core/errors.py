"""
Error taxonomy for FsBridge.

Every failure raised by a filesystem operation derives from FsBridgeError,
which is an IOError, and where one fits also from the closest builtin
exception so callers can keep catching FileNotFoundError and friends.
"""

from typing import List, Optional, Sequence


class FsBridgeError(IOError):
    """Base class for all FsBridge failures."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class DestinationExists(FsBridgeError, FileExistsError):
    """The destination is a regular file and overwrite was not allowed."""


class DestinationIsDirectoryWithoutName(FsBridgeError, IsADirectoryError):
    """The destination is a directory and there is no source name to append."""


class DestinationNotDirectory(FsBridgeError, NotADirectoryError):
    """A multi-source copy was pointed at something other than a directory."""


class DestinationMissing(FsBridgeError, FileNotFoundError):
    """A multi-source copy was pointed at a directory that does not exist."""


class SelfCopy(FsBridgeError):
    """The destination is the source itself or lies underneath it."""


class SourceMissing(FsBridgeError, FileNotFoundError):
    """The source is neither a regular file nor a directory."""


class MkdirsFailed(FsBridgeError):
    """A directory could not be created and is not already a directory."""


class UnsafeArchiveEntry(FsBridgeError):
    """An archive member would be written outside the destination directory."""


class ExtractionFailed(FsBridgeError):
    """The tar pipeline exited with a non-zero status."""

    def __init__(self, message: str, path: Optional[str] = None, exit_code: int = -1):
        super().__init__(message, path=path)
        self.exit_code = exit_code


class ReplaceFailed(FsBridgeError):
    """The file could not be renamed onto its target within the retry budget."""


class ReplaceInterrupted(FsBridgeError):
    """The wait between replace attempts was cancelled."""


class ShellCommandFailed(FsBridgeError):
    """An external command exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        command: Sequence[str] = (),
        exit_code: int = -1,
        stderr: str = ""
    ):
        super().__init__(message)
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr


class MultipleCopyFailed(FsBridgeError):
    """One or more sources of a multi-source copy failed.

    The message is every individual failure message, each followed by a
    newline, in the order the sources were attempted.
    """

    def __init__(self, errors: List[BaseException]):
        super().__init__("".join(f"{e}\n" for e in errors))
        self.errors = list(errors)
