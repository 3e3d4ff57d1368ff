"""
envedit - programmatic editor for .env files

Reads .env files into structured entries, edits keys, comments and blank
lines in memory, and writes the result back with backups.
"""

__version__ = "0.1.0"

from .core import parser, formatter, writer, reader, editor
from .core.config import EditorConfig
from .core.editor import DotenvEditor
from .core.entry import Entry, EntryType, ParsedEntry
from .core.exceptions import (
    DotenvEditorError,
    EnvFileNotFoundError,
    InvalidKeyError,
    InvalidValueError,
    KeyNotFoundError,
    NoBackupAvailableError,
    UnableToReadFileError,
    UnableToWriteFileError,
)
from .core.parser import GrammarVersion

__all__ = [
    "parser",
    "formatter",
    "writer",
    "reader",
    "editor",
    "DotenvEditor",
    "EditorConfig",
    "Entry",
    "EntryType",
    "ParsedEntry",
    "GrammarVersion",
    "DotenvEditorError",
    "EnvFileNotFoundError",
    "InvalidKeyError",
    "InvalidValueError",
    "KeyNotFoundError",
    "NoBackupAvailableError",
    "UnableToReadFileError",
    "UnableToWriteFileError",
]
