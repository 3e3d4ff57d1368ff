"""
Entry model for .env files.

An entry is one logical unit of a file: a blank line, a comment, a
KEY=VALUE setter, or an unrecognised line. Multi-line values make a single
entry out of several physical lines.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional


class EntryType(Enum):
    """Kinds of entries in a .env file."""
    EMPTY = "empty"
    COMMENT = "comment"
    SETTER = "setter"
    UNKNOWN = "unknown"


@dataclass
class ParsedEntry:
    """Structured fields of an entry."""
    type: EntryType = EntryType.UNKNOWN
    export: bool = False
    key: str = ""
    value: str = ""  # Unescaped, quotes removed
    comment: str = ""  # Without leading '#'

    def to_dict(self) -> dict:
        data = asdict(self)
        data['type'] = self.type.value
        return data


@dataclass
class Entry:
    """
    A single entry of the buffer.

    `raw` holds the original text while the entry is untouched. It is cleared
    when the entry is modified, so the formatter renders it on save.
    """
    line: Optional[int] = None  # 1-based, None until saved
    raw: Optional[str] = None
    parsed: Optional[ParsedEntry] = None

    @property
    def type(self) -> EntryType:
        return self.parsed.type if self.parsed else EntryType.UNKNOWN

    @property
    def key(self) -> str:
        return self.parsed.key if self.parsed else ""

    def is_setter(self, key: Optional[str] = None) -> bool:
        """Check whether this entry is a setter (optionally for `key`)."""
        if self.type != EntryType.SETTER:
            return False
        return key is None or self.parsed.key == key

    def to_dict(self) -> dict:
        data = {'line': self.line, 'raw_data': self.raw}
        if self.parsed is not None:
            data['parsed_data'] = self.parsed.to_dict()
        return data

    def __repr__(self):
        if self.type == EntryType.SETTER:
            export = "export " if self.parsed.export else ""
            return f"Entry({self.line}, {export}{self.parsed.key}={self.parsed.value!r})"
        return f"Entry({self.line}, {self.type.value}, {repr((self.raw or '')[:20])})"
