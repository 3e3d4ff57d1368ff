"""
High-level editor for a single .env file.

Reading methods look at the file on disk. Writing methods change the
in-memory buffer, which `save()` writes back (after a backup when auto
backup is on).
"""

import logging
import shutil
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .backup import BackupInfo, BackupManager
from .config import EditorConfig
from .entry import Entry
from .exceptions import (
    DotenvEditorError,
    EnvFileNotFoundError,
    KeyNotFoundError,
    NoBackupAvailableError,
    UnableToWriteFileError,
)
from .formatter import make_formatter
from .parser import make_parser
from .reader import DotenvReader, KeyInfo
from .writer import DotenvWriter


logger = logging.getLogger(__name__)

SetterData = Union[Mapping[str, Any], Iterable[Mapping[str, Any]]]


class DotenvEditor:
    """
    Editor session bound to one file path and one buffer.

    Args:
        config: Editor settings (defaults to EditorConfig())
        file_path: File to load right away (defaults to config.env_file_path)
    """

    def __init__(self, config: Optional[EditorConfig] = None, file_path=None):
        self.config = config or EditorConfig()
        self.reader = DotenvReader(make_parser(self.config.grammar))
        self.writer = DotenvWriter(make_formatter(self.config.grammar))
        self.backups = BackupManager(self.config.backup_dir)
        self._auto_backup = self.config.auto_backup
        self._changed = False
        self.file_path: Optional[Path] = None

        if self.config.always_create_backup_folder:
            self.backups.create_folder()

        self.load(file_path)

    def load(self, file_path=None, restore_if_not_found: bool = False, restore_path=None) -> "DotenvEditor":
        """
        Load a file into the buffer.

        Args:
            file_path: File to work with (defaults to the configured file)
            restore_if_not_found: Restore the file from a backup if missing
            restore_path: Specific file to restore from (default: latest backup)

        Raises:
            InvalidValueError: If the file has a malformed setter
            NoBackupAvailableError: If restoring and no backup exists
        """
        self._changed = False
        self.writer.set_buffer([])
        self.file_path = Path(file_path) if file_path is not None else self.config.env_file_path
        self.reader.load(self.file_path)

        if self.file_path.is_file():
            self._build_buffer()
            logger.debug("Loaded %s", self.file_path)
            return self

        if restore_if_not_found:
            return self.restore(restore_path)

        logger.debug("%s does not exist yet, starting with an empty buffer", self.file_path)
        return self

    # Reading

    def get_content(self) -> str:
        return self.reader.content()

    def get_entries(self, with_parsed_data: bool = False) -> List[Entry]:
        return self.reader.entries(with_parsed_data)

    def get_keys(self, keys: Optional[Iterable[str]] = None) -> Dict[str, KeyInfo]:
        """
        Get setters from the file.

        Args:
            keys: Only return these keys (all keys when empty)

        Returns:
            Dict of key -> KeyInfo, in file order
        """
        all_keys = self.reader.keys()

        if not keys:
            return all_keys

        wanted = set(keys)
        return {key: info for key, info in all_keys.items() if key in wanted}

    def get_key(self, key: str) -> KeyInfo:
        """
        Get one setter from the file.

        Raises:
            KeyNotFoundError: If the file has no such key
        """
        found = self.get_keys([key])
        if key in found:
            return found[key]

        raise KeyNotFoundError("Requested key not found in your environment file.")

    def get_value(self, key: str) -> str:
        return self.get_key(key).value

    def key_exists(self, key: str) -> bool:
        return key in self.get_keys()

    # Writing

    def has_changed(self) -> bool:
        return self._changed

    def get_buffer(self, as_dict: bool = False) -> Union[List[Entry], List[dict]]:
        if as_dict:
            return self.writer.to_dicts()
        return self.writer.buffer

    def get_buffer_content(self) -> str:
        """Render the buffer as it would be saved."""
        return self.writer.serialize()

    def add_empty(self) -> "DotenvEditor":
        self.writer.append_empty()
        self._changed = True
        return self

    def add_comment(self, comment: str) -> "DotenvEditor":
        self.writer.append_comment(comment)
        self._changed = True
        return self

    def set_keys(self, data: SetterData) -> "DotenvEditor":
        """
        Add or update several setters.

        Accepts either a mapping of key -> value (or key -> setter dict), or
        an iterable of setter dicts with 'key' and optional 'value',
        'comment' and 'export'. Items without a key are skipped.

        For existing keys a `None` comment or export keeps the current one;
        an empty comment clears it.

        Raises:
            InvalidKeyError: If a key is not valid
        """
        for setter in self._normalise_setters(data):
            key = str(setter['key'])
            value = setter.get('value')
            comment = setter.get('comment')
            export = setter.get('export')

            current = self.writer.get_setter(key)
            if current is None:
                self.writer.append_setter(key, value, comment, bool(export))
            else:
                comment = current.comment if comment is None else comment
                export = current.export if export is None else export
                self.writer.update_setter(key, value, comment, bool(export))

            self._changed = True

        return self

    def set_key(self, key: str, value: Optional[str] = None, comment: Optional[str] = None,
                export: Optional[bool] = None) -> "DotenvEditor":
        return self.set_keys([{'key': key, 'value': value, 'comment': comment, 'export': export}])

    def set_setter_comment(self, key: str, comment: Optional[str] = None) -> "DotenvEditor":
        """
        Replace the comment of an existing setter in the buffer.

        Raises:
            KeyNotFoundError: If the buffer has no such key
        """
        self.writer.update_setter_comment(key, comment)
        self._changed = True
        return self

    def clear_setter_comment(self, key: str) -> "DotenvEditor":
        return self.set_setter_comment(key, None)

    def set_export_setter(self, key: str, state: bool = True) -> "DotenvEditor":
        """
        Turn the export prefix of an existing setter on or off.

        Raises:
            KeyNotFoundError: If the buffer has no such key
        """
        self.writer.update_setter_export(key, state)
        self._changed = True
        return self

    def delete_keys(self, keys: Iterable[str]) -> "DotenvEditor":
        for key in keys:
            self.writer.delete_setter(key)
        self._changed = True
        return self

    def delete_key(self, key: str) -> "DotenvEditor":
        return self.delete_keys([key])

    def save(self, rebuild_buffer: bool = True) -> "DotenvEditor":
        """
        Write the buffer to the file.

        Args:
            rebuild_buffer: Reload the buffer from the saved file afterwards

        Raises:
            UnableToWriteFileError: If the file cannot be written
        """
        if self.file_path.is_file() and self._auto_backup:
            self.backup()

        self.writer.save(self.file_path)
        logger.info("Saved %s", self.file_path)

        if rebuild_buffer and self._changed:
            self._build_buffer()

        return self

    # Backups

    def auto_backup(self, on: bool = True) -> "DotenvEditor":
        self._auto_backup = on
        return self

    def is_auto_backup(self) -> bool:
        return self._auto_backup

    def backup(self) -> BackupInfo:
        """
        Back up the current file.

        Raises:
            EnvFileNotFoundError: If the file does not exist
        """
        return self.backups.backup(self.file_path)

    def get_backups(self) -> List[BackupInfo]:
        return self.backups.list_backups()

    def get_latest_backup(self) -> Optional[BackupInfo]:
        return self.backups.latest()

    def restore(self, file_path=None) -> "DotenvEditor":
        """
        Overwrite the current file with a backup and reload the buffer.

        Args:
            file_path: File to restore from (default: latest backup)

        Raises:
            NoBackupAvailableError: If no path is given and there are no backups
            EnvFileNotFoundError: If the source file does not exist
        """
        if file_path is None:
            latest = self.backups.latest()
            if latest is None:
                raise NoBackupAvailableError("There are no available backups!")
            file_path = latest.filepath

        source = Path(file_path)
        if not source.is_file():
            raise EnvFileNotFoundError(f"File does not exist at path {source}")

        try:
            shutil.copyfile(source, self.file_path)
        except OSError as exc:
            raise UnableToWriteFileError(f"Unable to write to the file at {self.file_path}.") from exc

        logger.info("Restored %s from %s", self.file_path, source)
        self._build_buffer()
        return self

    def delete_backups(self, file_paths: Optional[Iterable] = None) -> "DotenvEditor":
        self.backups.delete(file_paths)
        return self

    def delete_backup(self, file_path) -> "DotenvEditor":
        return self.delete_backups([file_path])

    def _build_buffer(self):
        self.writer.set_buffer(self.reader.entries(with_parsed_data=True))
        self._changed = False

    def _normalise_setters(self, data: SetterData) -> Iterable[Mapping[str, Any]]:
        if isinstance(data, Mapping):
            for key, setter in data.items():
                if isinstance(setter, Mapping):
                    yield {'key': key, **setter}
                else:
                    yield {'key': key, 'value': setter}
            return

        for setter in data:
            if not isinstance(setter, Mapping):
                raise DotenvEditorError(f"Setter must be a mapping, got {type(setter).__name__}")
            if 'key' in setter:
                yield setter
