"""
In-memory buffer of .env entries and writing it back to disk.

Entries keep their original text until they are modified; modified and new
entries are rendered by the formatter when the buffer is serialized.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from .entry import Entry, EntryType, ParsedEntry
from .exceptions import KeyNotFoundError, UnableToWriteFileError
from .formatter import Formatter


logger = logging.getLogger(__name__)


class DotenvWriter:
    """
    Ordered, mutable collection of entries.

    Keys are expected to be unique, but a hand-edited file may repeat one.
    Updates then target the first matching setter, deletes remove all of
    them.
    """

    def __init__(self, formatter: Optional[Formatter] = None, line_separator: str = os.linesep):
        self.formatter = formatter or Formatter()
        self.line_separator = line_separator
        self._entries: List[Entry] = []

    def set_buffer(self, entries: Iterable[Entry]) -> "DotenvWriter":
        self._entries = list(entries)
        return self

    @property
    def buffer(self) -> List[Entry]:
        return list(self._entries)

    def to_dicts(self) -> List[dict]:
        return [entry.to_dict() for entry in self._entries]

    def __len__(self):
        return len(self._entries)

    def append_empty(self) -> "DotenvWriter":
        self._entries.append(Entry(parsed=ParsedEntry(type=EntryType.EMPTY)))
        return self

    def append_comment(self, comment: str) -> "DotenvWriter":
        parsed = ParsedEntry(type=EntryType.COMMENT, comment=self.formatter.normalise_comment(comment))
        self._entries.append(Entry(parsed=parsed))
        return self

    def append_setter(
        self,
        key: str,
        value: Optional[str] = None,
        comment: Optional[str] = None,
        export: bool = False
    ) -> "DotenvWriter":
        """
        Append a setter at the end of the buffer.

        No duplicate check is made; use `has_setter` first when needed.

        Raises:
            InvalidKeyError: If the key is not valid
        """
        self._entries.append(Entry(parsed=self._make_setter(key, value, comment, export)))
        return self

    def update_setter(
        self,
        key: str,
        value: Optional[str] = None,
        comment: Optional[str] = None,
        export: bool = False
    ) -> "DotenvWriter":
        """
        Replace the value, comment and export flag of an existing setter.

        The setter keeps its position.

        Raises:
            KeyNotFoundError: If no setter has this key
            InvalidKeyError: If the key is not valid
        """
        parsed = self._make_setter(key, value, comment, export)
        entry = self._find(parsed.key)
        entry.parsed = parsed
        entry.raw = None
        return self

    def update_setter_comment(self, key: str, comment: Optional[str] = None) -> "DotenvWriter":
        entry = self._find(key)
        entry.parsed.comment = self.formatter.normalise_comment(comment)
        entry.raw = None
        return self

    def update_setter_export(self, key: str, state: bool = True) -> "DotenvWriter":
        entry = self._find(key)
        entry.parsed.export = bool(state)
        entry.raw = None
        return self

    def delete_setter(self, key: str) -> "DotenvWriter":
        """Remove every setter with this key. Missing keys are ignored."""
        key = self.formatter.normalise_key(key)
        self._entries = [entry for entry in self._entries if not entry.is_setter(key)]
        return self

    def has_setter(self, key: str) -> bool:
        key = self.formatter.normalise_key(key)
        return any(entry.is_setter(key) for entry in self._entries)

    def get_setter(self, key: str) -> Optional[ParsedEntry]:
        key = self.formatter.normalise_key(key)
        for entry in self._entries:
            if entry.is_setter(key):
                return entry.parsed
        return None

    def render(self, entry: Entry) -> str:
        """Render one entry as text."""
        if entry.raw is not None:
            return entry.raw

        parsed = entry.parsed
        if parsed is None:
            return ''

        if parsed.type == EntryType.SETTER:
            return self.formatter.format_setter(parsed.key, parsed.value, parsed.comment, parsed.export)

        if parsed.type == EntryType.COMMENT:
            return self.formatter.format_comment(parsed.comment)

        return ''

    def serialize(self) -> str:
        """
        Render the whole buffer.

        Returns:
            Entries joined by the line separator, with one trailing separator
        """
        lines = [self.render(entry) for entry in self._entries]
        return self.line_separator.join(lines) + self.line_separator

    def save(self, file_path) -> "DotenvWriter":
        """
        Write the buffer to a file.

        Raises:
            UnableToWriteFileError: If the file or its directory is not writable
        """
        path = Path(file_path)
        self._ensure_writable(path)

        try:
            with open(path, 'w', encoding='utf-8', newline='') as f:
                f.write(self.serialize())
        except OSError as exc:
            raise UnableToWriteFileError(f"Unable to write to the file at {path}.") from exc

        logger.debug("Wrote %d entries to %s", len(self._entries), path)
        return self

    def _ensure_writable(self, path: Path):
        if path.is_file():
            writable = os.access(path, os.W_OK)
        else:
            writable = path.parent.is_dir() and os.access(path.parent, os.W_OK)

        if not writable:
            raise UnableToWriteFileError(f"Unable to write to the file at {path}.")

    def _make_setter(self, key, value, comment, export) -> ParsedEntry:
        return ParsedEntry(
            type=EntryType.SETTER,
            export=bool(export),
            key=self.formatter.format_key(key),
            value='' if value is None else str(value),
            comment=self.formatter.normalise_comment(comment),
        )

    def _find(self, key: str) -> Entry:
        key = self.formatter.normalise_key(key)
        for entry in self._entries:
            if entry.is_setter(key):
                return entry
        raise KeyNotFoundError(f"Setter [{key}] not found in the buffer.")
