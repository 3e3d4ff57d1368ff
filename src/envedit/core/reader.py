"""
Reading .env files into entries and keys.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from .entry import Entry, EntryType
from .exceptions import InvalidValueError, UnableToReadFileError
from .parser import Parser, ParserV3


logger = logging.getLogger(__name__)


@dataclass
class KeyInfo:
    """A setter as read from the file."""
    line: int
    export: bool
    value: str
    comment: str


class DotenvReader:
    """
    Reads a .env file through a grammar parser.

    Every call reads the file again, so results reflect what is on disk,
    not pending buffer changes.
    """

    def __init__(self, parser: Optional[Parser] = None):
        self.parser = parser or ParserV3()
        self.file_path: Optional[Path] = None

    def load(self, file_path) -> "DotenvReader":
        self.file_path = Path(file_path) if file_path is not None else None
        return self

    def content(self) -> str:
        """
        Return the raw file content.

        Raises:
            UnableToReadFileError: If the file is missing or unreadable
        """
        self._ensure_readable()
        with open(self.file_path, 'r', encoding='utf-8', newline='') as f:
            return f.read()

    def entries(self, with_parsed_data: bool = False) -> List[Entry]:
        """
        Split the file into entries.

        Args:
            with_parsed_data: Also parse each entry

        Returns:
            List of entries; `parsed` is only set with `with_parsed_data`

        Raises:
            UnableToReadFileError: If the file is missing or unreadable
            InvalidValueError: If a setter is malformed (with `line` set)
        """
        entries = self._read_entries()

        if with_parsed_data:
            for entry in entries:
                entry.parsed = self._parse(entry)

        return entries

    def keys(self) -> Dict[str, KeyInfo]:
        """
        Collect all setters of the file, in file order.

        If a key is repeated the first occurrence is reported.
        """
        keys: Dict[str, KeyInfo] = {}

        for entry in self._read_entries():
            parsed = self._parse(entry)
            if parsed.type == EntryType.SETTER and parsed.key not in keys:
                keys[parsed.key] = KeyInfo(
                    line=entry.line,
                    export=parsed.export,
                    value=parsed.value,
                    comment=parsed.comment,
                )

        return keys

    def _parse(self, entry: Entry):
        try:
            return self.parser.parse_entry(entry.raw)
        except InvalidValueError as exc:
            exc.line = entry.line
            raise

    def _read_entries(self) -> List[Entry]:
        self._ensure_readable()
        try:
            return self.parser.parse_file(self.file_path)
        except (OSError, UnicodeDecodeError) as exc:
            raise UnableToReadFileError(f"Unable to read the file at {self.file_path}.") from exc

    def _ensure_readable(self):
        path = self.file_path
        if path is None or not path.is_file() or not os.access(path, os.R_OK):
            raise UnableToReadFileError(f"Unable to read the file at {path}.")
