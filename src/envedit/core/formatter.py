"""
Formatting of entries back into .env lines.

Formatting is canonicalising: a formatted setter parses back to the same
fields, but not necessarily to the text it was originally read from.
"""

import re
from typing import Optional

from .exceptions import InvalidKeyError
from .parser import GrammarVersion


KEY_RE = re.compile(r"\A[a-zA-Z0-9_.]+\Z")
NEEDS_QUOTES_RE = re.compile(r"[#\s\"'\\]")
REFERENCE_RE = re.compile(r"\$\{[a-zA-Z0-9_.]+\}")
NEWLINE_RE = re.compile(r"\r\n|\n|\r")


class Formatter:
    """
    Renders keys, values and comments as .env text.

    Args:
        quote_references: Quote values containing a `${NAME}` reference.
            Grammars from V2 on expand references in unquoted values, so
            they must be quoted to stay literal.
    """

    def __init__(self, quote_references: bool = True):
        self.quote_references = quote_references

    def format_key(self, key: str, export: bool = False) -> str:
        """
        Normalise and validate a setter key.

        Args:
            key: Key name, possibly with an `export ` prefix or quotes
            export: Prefix the key with `export `

        Returns:
            The formatted key

        Raises:
            InvalidKeyError: If the key has characters outside [A-Za-z0-9_.]
        """
        key = self.normalise_key(key)

        if not self.is_valid_key(key):
            raise InvalidKeyError(f"There is an invalid setter key. Caught at [{key}].")

        if export:
            key = f"export {key}"

        return key

    def normalise_key(self, key: str) -> str:
        return str(key).replace('export ', '').replace("'", '').replace('"', '').strip()

    def format_comment(self, comment: Optional[str]) -> str:
        """
        Render a comment as `# text`, or "" if there is nothing to write.

        Comments always stay on one line.
        """
        comment = self.normalise_comment(comment)

        return f"# {comment}" if comment else ''

    def normalise_comment(self, comment: Optional[str]) -> str:
        """Strip the leading '#' and surrounding spaces, and join lines."""
        comment = NEWLINE_RE.sub(' ', comment or '')
        return comment.lstrip('# ').rstrip(' ')

    def format_value(self, value: Optional[str], comment: Optional[str] = None) -> str:
        """
        Render a value, quoting only when needed, plus an optional comment.

        Args:
            value: Unescaped value
            comment: Already formatted comment (`# text`) or empty

        Returns:
            Value text ready to follow `KEY=`
        """
        value = '' if value is None else str(value)
        comment = comment or ''
        has_comment = len(comment) > 0

        if (has_comment and not value) or self.needs_quotes(value):
            value = value.replace('\\', '\\\\').replace('"', '\\"')
            value = f'"{value}"'

        return value + (f" {comment}" if has_comment else '')

    def needs_quotes(self, value: str) -> bool:
        if NEEDS_QUOTES_RE.search(value):
            return True
        return self.quote_references and REFERENCE_RE.search(value) is not None

    def format_setter(
        self,
        key: str,
        value: Optional[str] = None,
        comment: Optional[str] = None,
        export: bool = False
    ) -> str:
        """
        Build a full setter line.

        Args:
            key: Key name
            value: Unescaped value
            comment: Comment text (with or without leading '#')
            export: Prefix with `export `

        Returns:
            A line such as `export KEY="some value" # note`
        """
        key = self.format_key(key, export)
        value = self.format_value(value, self.format_comment(comment))

        return f"{key}={value}"

    def is_valid_key(self, key: str) -> bool:
        return KEY_RE.match(key) is not None


def make_formatter(version: GrammarVersion = GrammarVersion.V3) -> Formatter:
    """Create the formatter matching a grammar version."""
    return Formatter(quote_references=version is not GrammarVersion.V1)
