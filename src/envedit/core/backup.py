"""
Timestamped backups of .env files.

Backups are plain copies named `.env.backup_YYYY_MM_DD_HHMMSS` inside the
backup directory.
"""

import logging
import re
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from .exceptions import EnvFileNotFoundError


logger = logging.getLogger(__name__)

BACKUP_FILENAME_PREFIX = ".env.backup_"
BACKUP_FILENAME_SUFFIX = ""
BACKUP_TIMESTAMP_FORMAT = "%Y_%m_%d_%H%M%S"
BACKUP_FILENAME_RE = re.compile(
    "^" + re.escape(BACKUP_FILENAME_PREFIX)
    + r"(\d{4}_\d{2}_\d{2}_\d{6})"
    + re.escape(BACKUP_FILENAME_SUFFIX) + "$"
)


@dataclass
class BackupInfo:
    """A backup file found in the backup directory."""
    filename: str
    filepath: str
    created_at: datetime


def backup_filename(moment: datetime) -> str:
    return f"{BACKUP_FILENAME_PREFIX}{moment.strftime(BACKUP_TIMESTAMP_FORMAT)}{BACKUP_FILENAME_SUFFIX}"


def parse_backup_filename(filename: str) -> Optional[datetime]:
    """
    Extract the creation time from a backup filename.

    Returns:
        The timestamp, or None if the name is not a backup name
    """
    match = BACKUP_FILENAME_RE.match(filename)
    if not match:
        return None

    try:
        return datetime.strptime(match.group(1), BACKUP_TIMESTAMP_FORMAT)
    except ValueError:
        return None


class BackupManager:
    """Creates, lists and deletes backups in one directory."""

    def __init__(self, backup_path):
        self.backup_path = Path(backup_path)

    def create_folder(self):
        self.backup_path.mkdir(parents=True, exist_ok=True)

    def backup(self, file_path, now: Optional[datetime] = None) -> BackupInfo:
        """
        Copy a file into the backup directory.

        Args:
            file_path: File to back up
            now: Timestamp to use (defaults to the current time)

        Returns:
            Info of the created backup

        Raises:
            EnvFileNotFoundError: If the file does not exist
        """
        source = Path(file_path)
        if not source.is_file():
            raise EnvFileNotFoundError(f"File does not exist at path {source}")

        self.create_folder()

        moment = (now or datetime.now()).replace(microsecond=0)
        target = self.backup_path / backup_filename(moment)
        shutil.copyfile(source, target)

        logger.info("Backed up %s to %s", source, target)
        return BackupInfo(filename=target.name, filepath=str(target), created_at=moment)

    def list_backups(self) -> List[BackupInfo]:
        """
        List backups, oldest first.

        Returns:
            Backups found in the directory (empty if it does not exist)
        """
        if not self.backup_path.is_dir():
            return []

        backups = []
        for path in self.backup_path.iterdir():
            created_at = parse_backup_filename(path.name)
            if created_at is None or not path.is_file():
                continue
            backups.append(BackupInfo(filename=path.name, filepath=str(path), created_at=created_at))

        return sorted(backups, key=lambda backup: backup.created_at)

    def latest(self) -> Optional[BackupInfo]:
        backups = self.list_backups()
        return backups[-1] if backups else None

    def delete(self, file_paths: Optional[Iterable] = None) -> List[str]:
        """
        Delete backups.

        Args:
            file_paths: Files to delete; all backups when None

        Returns:
            Paths that were actually deleted
        """
        if file_paths is None:
            file_paths = [backup.filepath for backup in self.list_backups()]

        deleted = []
        for file_path in file_paths:
            path = Path(file_path)
            if path.is_file():
                path.unlink()
                deleted.append(str(path))

        logger.debug("Deleted %d backup(s) from %s", len(deleted), self.backup_path)
        return deleted
