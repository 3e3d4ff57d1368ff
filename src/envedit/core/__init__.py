"""
envedit core modules.

Includes:
- entry: Entry model (empty, comment, setter, unknown)
- parser: Grammar parsers (V1, V2, V3) with multi-line support
- formatter: Rendering keys, values and comments back to text
- writer: Mutable entry buffer and saving
- reader: Reading files into entries and keys
- backup: Timestamped backups
- editor: High-level editor facade
- config: Editor configuration
- exceptions: Error types
"""

from . import exceptions
from . import entry
from . import parser
from . import formatter
from . import writer
from . import reader
from . import backup
from . import config
from . import editor

__all__ = [
    "exceptions",
    "entry",
    "parser",
    "formatter",
    "writer",
    "reader",
    "backup",
    "config",
    "editor",
]
