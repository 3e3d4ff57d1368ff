"""
Grammar parsers for .env files.

Parsing happens in two steps:

1. Splitting: the file content is cut into entries, one per physical line,
   except that a double-quoted value left open on its line keeps collecting
   the following lines until the quote closes.
2. Entry parsing: each entry is classified (empty, comment, setter, unknown)
   and setter data is run through a character-level state machine that
   separates the value from a trailing comment.

Three grammar versions exist. They share splitting and classification and
only differ in the state machine transitions.
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Tuple

from .entry import Entry, EntryType, ParsedEntry
from .exceptions import InvalidValueError


logger = logging.getLogger(__name__)

LINE_SPLIT_RE = re.compile(r"\r\n|\n|\r")
EXPORT_KEY_RE = re.compile(r"^export[ \t].+$", re.DOTALL)
WHITESPACE_CHARS = " \t\n\r\x0b\x0c"
CONTROL_ESCAPES = {
    'f': '\f',
    'n': '\n',
    'r': '\r',
    't': '\t',
    'v': '\v',
}


class GrammarVersion(Enum):
    """Supported grammar versions, oldest first."""
    V1 = "v1"
    V2 = "v2"
    V3 = "v3"

    @classmethod
    def latest(cls) -> "GrammarVersion":
        return cls.V3

    @classmethod
    def from_compat(cls, library_version: str) -> "GrammarVersion":
        """
        Pick the grammar matching a version of the upstream dotenv library.

        Args:
            library_version: Version string such as "5.4.1" or "v4.0.0"

        Returns:
            V3 for >= 5.0.0, V2 for >= 4.0.0, otherwise V1
        """
        installed = _version_tuple(library_version)
        for minimum, grammar in COMPAT_VERSIONS:
            if installed >= minimum:
                return grammar
        return cls.V1

    @classmethod
    def parse(cls, text: str) -> "GrammarVersion":
        """
        Read a grammar setting: "v1".."v3" or an upstream compat version.

        Raises:
            ValueError: If the text is neither
        """
        normalized = text.strip().lower()
        for grammar in cls:
            if normalized in (grammar.value, grammar.value[1:]):
                return grammar
        if re.match(r"^v?\d+(\.\d+)+", normalized):
            return cls.from_compat(normalized)
        raise ValueError(f"Unknown grammar version: {text!r}")


COMPAT_VERSIONS = [
    ((5, 0, 0), GrammarVersion.V3),
    ((4, 0, 0), GrammarVersion.V2),
    ((3, 3, 0), GrammarVersion.V1),
]


def _version_tuple(version: str) -> Tuple[int, ...]:
    parts = []
    for part in re.sub(r"[a-zA-Z]", "", version).split('.'):
        digits = re.match(r"\d+", part.strip())
        parts.append(int(digits.group(0)) if digits else 0)
    while len(parts) < 3:
        parts.append(0)
    return tuple(parts)


class State(Enum):
    """States of the setter data state machine."""
    INITIAL = 0
    UNQUOTED = 1
    QUOTED = 2  # V1 only: either quote kind
    SINGLE_QUOTED = 3
    DOUBLE_QUOTED = 4
    ESCAPE_SEQUENCE = 5
    WHITESPACE = 6
    COMMENT = 7


# States in which the data may not end
UNTERMINATED_STATES = {
    State.QUOTED,
    State.SINGLE_QUOTED,
    State.DOUBLE_QUOTED,
    State.ESCAPE_SEQUENCE,
}

# (next state, text appended to value, text appended to comment)
Transition = Tuple[State, str, str]


class Parser(ABC):
    """
    Base parser shared by all grammar versions.

    Subclasses implement `transition`, deferring to this class for the
    states every grammar treats the same (unquoted, whitespace, comment).
    """

    version: GrammarVersion

    def __init__(self, line_separator: str = os.linesep):
        self.line_separator = line_separator

    def parse_file(self, file_path) -> List[Entry]:
        """
        Read a file and split it into entries.

        Args:
            file_path: Path of the .env file

        Returns:
            Entries with `line` and `raw` set, not yet parsed
        """
        with open(file_path, 'r', encoding='utf-8', newline='') as f:
            content = f.read()

        entries = self.split_entries(content)
        logger.debug("Split %s into %d entries", file_path, len(entries))
        return entries

    def split_entries(self, content: str) -> List[Entry]:
        """
        Split raw content into entries, joining multi-line values.

        A multi-line entry gets the line number of its first physical line;
        the numbers of the lines it spans are skipped.

        Args:
            content: Raw file content

        Returns:
            Entries with `line` and `raw` set
        """
        lines = LINE_SPLIT_RE.split(content)
        if lines and lines[-1] == '':
            lines.pop()

        entries = []
        block: List[str] = []
        block_start = 0

        for index, line in enumerate(lines):
            started = self.looks_like_multiline_start(line)
            if started and not block:
                block_start = index

            if block or started:
                block.append(line)
                if self.looks_like_multiline_stop(line, started):
                    entries.append(Entry(line=block_start + 1, raw=self.line_separator.join(block)))
                    block = []
                continue

            entries.append(Entry(line=index + 1, raw=line))

        # Quote never closed; parsing the entry reports it
        if block:
            entries.append(Entry(line=block_start + 1, raw=self.line_separator.join(block)))

        return entries

    def looks_like_multiline_start(self, line: str) -> bool:
        """Check if the line opens a double-quoted value it does not close."""
        if '="' not in line:
            return False

        return not self.looks_like_multiline_stop(line, True)

    def looks_like_multiline_stop(self, line: str, started: bool) -> bool:
        """
        Check if the line closes an open double-quoted value.

        Escaped backslashes are dropped first, then unescaped quotes are
        counted. The opening line has seen none yet, a continuation line
        has already seen the opening one.
        """
        if line == '"':
            return True

        seen = 0 if started else 1
        line = line.replace('\\\\', '')

        for previous, char in zip(line, line[1:]):
            if previous != '\\' and char == '"':
                seen += 1

        return seen > 1

    def parse_entry(self, data: str) -> ParsedEntry:
        """
        Parse the raw text of one entry.

        Args:
            data: Raw entry text (possibly spanning several lines)

        Returns:
            ParsedEntry with type, export flag, key, value and comment

        Raises:
            InvalidValueError: If the setter value is malformed
        """
        if self.is_empty(data):
            return ParsedEntry(type=EntryType.EMPTY)

        if self.is_comment(data):
            return ParsedEntry(type=EntryType.COMMENT, comment=self.normalise_comment(data))

        if self.looks_like_setter(data):
            return self.parse_setter(data)

        return ParsedEntry(type=EntryType.UNKNOWN)

    def parse_setter(self, setter: str) -> ParsedEntry:
        key, data = (part.strip() for part in setter.split('=', 1))
        value, comment = self.parse_setter_data(data)

        return ParsedEntry(
            type=EntryType.SETTER,
            export=self.is_export_key(key),
            key=self.normalise_key(key),
            value=value,
            comment=comment,
        )

    def parse_setter_data(self, data: str) -> Tuple[str, str]:
        """
        Separate a setter's value from its trailing comment.

        Args:
            data: Everything after the first '=' (trimmed)

        Returns:
            Tuple of (unescaped value, normalised comment)

        Raises:
            InvalidValueError: On bad escapes, trailing garbage after a
                closing quote, or a missing closing quote
        """
        if data is None or data.strip() == '':
            return '', ''

        state = State.INITIAL
        value = []
        comment = []

        for char in data:
            state, value_part, comment_part = self.transition(state, char, data)
            value.append(value_part)
            comment.append(comment_part)

        if state in UNTERMINATED_STATES:
            raise self.error('a missing closing quote', data)

        return ''.join(value), self.normalise_comment(''.join(comment))

    @abstractmethod
    def transition(self, state: State, char: str, data: str) -> Transition:
        """
        Compute the next state for one character.

        Args:
            state: Current state
            char: Current character
            data: The whole setter data (for quote lookahead)
        """
        if state is State.UNQUOTED:
            if char == '#':
                return State.COMMENT, '', ''
            if char in WHITESPACE_CHARS:
                return State.WHITESPACE, '', ''
            return State.UNQUOTED, char, ''

        if state is State.WHITESPACE:
            if char == '#':
                return State.COMMENT, '', ''
            if char not in WHITESPACE_CHARS:
                raise self.error('unexpected whitespace', data)
            return State.WHITESPACE, '', ''

        if state is State.COMMENT:
            return State.COMMENT, '', char

        raise ValueError(f"{type(self).__name__} has no transition for {state}")

    def normalise_key(self, key: str) -> str:
        return key.replace('export ', '').replace("'", '').replace('"', '').strip()

    def normalise_comment(self, comment: str) -> str:
        return comment.lstrip('# ').rstrip(' ')

    def is_empty(self, data: str) -> bool:
        return data.strip() == ''

    def is_comment(self, data: str) -> bool:
        return data.lstrip().startswith('#')

    def looks_like_setter(self, data: str) -> bool:
        return '=' in data and not data.startswith('=')

    def is_export_key(self, key: str) -> bool:
        return EXPORT_KEY_RE.match(key.strip()) is not None

    def error(self, cause: str, data: str) -> InvalidValueError:
        subject = next((part for part in LINE_SPLIT_RE.split(data) if part), '')
        return InvalidValueError(
            f"Failed to parse dotenv setter value due to {cause}. Failed at [{subject}].",
            raw=data,
        )


class ParserV1(Parser):
    """
    Oldest grammar.

    Single and double quotes are interchangeable: the value closes on the
    same character that opened it, and escapes work inside both.
    """

    version = GrammarVersion.V1

    def transition(self, state: State, char: str, data: str) -> Transition:
        quote = data[0]

        if state is State.INITIAL:
            if char in ('"', "'"):
                return State.QUOTED, '', ''
            if char == '#':
                return State.COMMENT, '', ''
            return State.UNQUOTED, char, ''

        if state is State.QUOTED:
            if char == quote:
                return State.WHITESPACE, '', ''
            if char == '\\':
                return State.ESCAPE_SEQUENCE, '', ''
            return State.QUOTED, char, ''

        if state is State.ESCAPE_SEQUENCE:
            if char == quote or char == '\\':
                return State.QUOTED, char, ''
            if char in CONTROL_ESCAPES:
                return State.QUOTED, CONTROL_ESCAPES[char], ''
            raise self.error('an unexpected escape sequence', data)

        return super().transition(state, char, data)


class ParserV2(Parser):
    """
    Grammar with distinct quote kinds.

    Single-quoted values are literal. Only double-quoted values support
    escape sequences.
    """

    version = GrammarVersion.V2

    def transition(self, state: State, char: str, data: str) -> Transition:
        if state is State.INITIAL:
            if char == "'":
                return State.SINGLE_QUOTED, '', ''
            if char == '"':
                return State.DOUBLE_QUOTED, '', ''
            if char == '#':
                return State.COMMENT, '', ''
            return State.UNQUOTED, char, ''

        if state is State.SINGLE_QUOTED:
            if char == "'":
                return State.WHITESPACE, '', ''
            return State.SINGLE_QUOTED, char, ''

        if state is State.DOUBLE_QUOTED:
            if char == '"':
                return State.WHITESPACE, '', ''
            if char == '\\':
                return State.ESCAPE_SEQUENCE, '', ''
            return State.DOUBLE_QUOTED, char, ''

        if state is State.ESCAPE_SEQUENCE:
            if char in ('"', '\\', '$'):
                return State.DOUBLE_QUOTED, char, ''
            if char in CONTROL_ESCAPES:
                return State.DOUBLE_QUOTED, CONTROL_ESCAPES[char], ''
            raise self.error('an unexpected escape sequence', data)

        return super().transition(state, char, data)


class ParserV3(ParserV2):
    """
    Current grammar.

    Same rules as V2. Values are decoded per code point, so multi-byte
    characters next to escape sequences come through unchanged.
    """

    version = GrammarVersion.V3


PARSERS = {
    GrammarVersion.V1: ParserV1,
    GrammarVersion.V2: ParserV2,
    GrammarVersion.V3: ParserV3,
}


def make_parser(version: GrammarVersion = GrammarVersion.V3, line_separator: str = os.linesep) -> Parser:
    """Create the parser for a grammar version."""
    return PARSERS[version](line_separator=line_separator)


def parse(content: str, version: GrammarVersion = GrammarVersion.V3) -> List[Entry]:
    """
    Parse .env content into fully parsed entries.

    Args:
        content: String content of a .env file
        version: Grammar version to use

    Returns:
        List of entries with `parsed` set

    Raises:
        InvalidValueError: If any setter is malformed
    """
    parser = make_parser(version)
    entries = parser.split_entries(content)
    for entry in entries:
        try:
            entry.parsed = parser.parse_entry(entry.raw)
        except InvalidValueError as exc:
            exc.line = entry.line
            raise
    return entries
