"""
Editor configuration.

Values come from code or from ENVEDIT_* environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .parser import GrammarVersion


DEFAULT_ENV_FILE = ".env"
DEFAULT_BACKUP_DIR = Path("storage") / "dotenv-editor" / "backups"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


@dataclass
class EditorConfig:
    """
    Settings for DotenvEditor.

    Attributes:
        env_file: File loaded when `load()` gets no path (default: ./.env)
        auto_backup: Back up the file before every save
        backup_path: Backup directory (default: ./storage/dotenv-editor/backups)
        always_create_backup_folder: Create the backup directory up front
        grammar: Grammar version used for reading and formatting
    """
    env_file: Optional[str] = None
    auto_backup: bool = True
    backup_path: Optional[str] = None
    always_create_backup_folder: bool = False
    grammar: GrammarVersion = field(default_factory=GrammarVersion.latest)

    def __post_init__(self):
        if isinstance(self.grammar, str):
            self.grammar = GrammarVersion.parse(self.grammar)

    @property
    def env_file_path(self) -> Path:
        if self.env_file:
            return Path(self.env_file)
        return Path.cwd() / DEFAULT_ENV_FILE

    @property
    def backup_dir(self) -> Path:
        if self.backup_path:
            return Path(self.backup_path)
        return Path.cwd() / DEFAULT_BACKUP_DIR

    @classmethod
    def from_env(cls, **overrides) -> "EditorConfig":
        """
        Build a config from environment variables.

        Recognised variables: ENVEDIT_ENV_FILE, ENVEDIT_AUTO_BACKUP,
        ENVEDIT_BACKUP_PATH, ENVEDIT_ALWAYS_CREATE_BACKUP_FOLDER and
        ENVEDIT_GRAMMAR. Keyword overrides that are not None win.
        """
        grammar = os.getenv("ENVEDIT_GRAMMAR")
        values = {
            'env_file': os.getenv("ENVEDIT_ENV_FILE") or None,
            'auto_backup': _env_bool("ENVEDIT_AUTO_BACKUP", True),
            'backup_path': os.getenv("ENVEDIT_BACKUP_PATH") or None,
            'always_create_backup_folder': _env_bool("ENVEDIT_ALWAYS_CREATE_BACKUP_FOLDER", False),
            'grammar': GrammarVersion.parse(grammar) if grammar else GrammarVersion.latest(),
        }
        values.update({name: value for name, value in overrides.items() if value is not None})
        return cls(**values)
