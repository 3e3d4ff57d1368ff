"""
Error types raised by envedit.

Every error derives from DotenvEditorError so command-line callers can catch
one type and present the message.
"""

from typing import Optional


class DotenvEditorError(Exception):
    """Base class for all envedit errors."""


class EnvFileNotFoundError(DotenvEditorError):
    """The target file or restore source does not exist."""


class UnableToReadFileError(DotenvEditorError):
    """The file exists but cannot be read."""


class UnableToWriteFileError(DotenvEditorError):
    """The file (or its directory) is not writable."""


class KeyNotFoundError(DotenvEditorError):
    """A setter key was requested that does not exist."""


class NoBackupAvailableError(DotenvEditorError):
    """A restore was requested without a path and no backups exist."""


class InvalidKeyError(DotenvEditorError):
    """A setter key does not match the allowed key syntax."""


class InvalidValueError(DotenvEditorError):
    """
    A setter value could not be parsed.

    Attributes:
        raw: The setter data that failed to parse
        line: Line number of the failing entry, when known
    """

    def __init__(self, message: str, raw: str = "", line: Optional[int] = None):
        super().__init__(message)
        self.raw = raw
        self.line = line

    def __str__(self):
        message = super().__str__()
        if self.line is not None:
            return f"{message} (line {self.line})"
        return message
