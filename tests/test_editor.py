"""
Tests for the editor facade (DotenvEditor).
"""

import os
import tempfile
from pathlib import Path

import pytest
from envedit.core.config import EditorConfig
from envedit.core.editor import DotenvEditor
from envedit.core.exceptions import (
    DotenvEditorError,
    EnvFileNotFoundError,
    InvalidKeyError,
    KeyNotFoundError,
    NoBackupAvailableError,
)
from envedit.core.parser import GrammarVersion


def text(*lines: str) -> str:
    return os.linesep.join(lines) + os.linesep


def write_env(path: Path, content: str):
    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(content)


def read_env(path: Path) -> str:
    with open(path, encoding='utf-8', newline='') as f:
        return f.read()


def make_editor(tmpdir: str, content: str = None, **options) -> DotenvEditor:
    env = Path(tmpdir) / ".env"
    if content is not None:
        write_env(env, content)
    config = EditorConfig(env_file=str(env), backup_path=str(Path(tmpdir) / "backups"), **options)
    return DotenvEditor(config)


class TestReading:
    """Test reading through the editor."""

    def test_get_keys(self):
        """Keys are read from the file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1", "# note", "export B='two' # b"))

            keys = editor.get_keys()

            assert list(keys) == ["A", "B"]
            assert keys["B"].export is True
            assert keys["B"].comment == "b"
            assert keys["B"].line == 3

    def test_get_keys_filtered(self):
        """Only requested keys are returned, in file order."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1", "B=2", "C=3"))
            assert list(editor.get_keys(["C", "A", "MISSING"])) == ["A", "C"]

    def test_get_value_and_missing_key(self):
        """Missing keys raise KeyNotFoundError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text('NAME="My App"'))

            assert editor.get_value("NAME") == "My App"
            assert editor.key_exists("NAME")
            assert not editor.key_exists("OTHER")
            with pytest.raises(KeyNotFoundError):
                editor.get_value("OTHER")

    def test_reads_file_not_buffer(self):
        """Unsaved changes are not visible to reading methods."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"))
            editor.set_key("B", "2")

            assert not editor.key_exists("B")
            assert editor.get_content() == text("A=1")

    def test_missing_file_starts_empty(self):
        """A missing file gives an empty buffer."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir)

            assert editor.get_buffer() == []
            assert not editor.has_changed()


class TestWriting:
    """Test buffer changes and saving."""

    def test_update_existing_key(self):
        """Updating a key changes only that line."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("APP_NAME=Laravel", "# a comment", "DEBUG=true"))

            editor.set_key("DEBUG", "false").save()

            assert read_env(Path(tmpdir) / ".env") == text("APP_NAME=Laravel", "# a comment", "DEBUG=false")

    def test_new_key_is_appended(self):
        """Unknown keys are added at the end."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"))

            editor.set_key("B", "has space", "new", export=True)

            assert editor.has_changed()
            assert editor.get_buffer_content() == text("A=1", 'export B="has space" # new')

    def test_update_keeps_comment_and_export(self):
        """None comment and export keep the current ones."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("export DEBUG=true # debug flag"))

            editor.set_key("DEBUG", "false")

            assert editor.get_buffer_content() == text("export DEBUG=false # debug flag")

    def test_update_clears_comment(self):
        """An empty comment clears the current one."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("DEBUG=true # debug flag"))

            editor.set_key("DEBUG", "true", "")

            assert editor.get_buffer_content() == text("DEBUG=true")

    def test_set_keys_forms(self):
        """set_keys accepts a mapping or a list of setter dicts."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"))

            editor.set_keys({"A": "2", "B": {"value": "3", "comment": "three"}})
            editor.set_keys([{"key": "C", "value": "4", "export": True}, {"value": "no key"}])

            assert editor.get_buffer_content() == text("A=2", "B=3 # three", "export C=4")

    def test_set_keys_rejects_non_mapping(self):
        """List items must be mappings."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"))
            with pytest.raises(DotenvEditorError):
                editor.set_keys(["A"])

    def test_invalid_key(self):
        """Keys outside [A-Za-z0-9_.] are rejected."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"))
            with pytest.raises(InvalidKeyError):
                editor.set_key("BAD KEY", "x")

    def test_setter_comment_and_export(self):
        """Comments and export flags can be changed on their own."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1", "B=2 # old"))

            editor.set_setter_comment("A", "first").set_export_setter("A")
            editor.clear_setter_comment("B")

            assert editor.get_buffer_content() == text("export A=1 # first", "B=2")

    def test_setter_comment_missing_key(self):
        """Changing a missing setter raises KeyNotFoundError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"))
            with pytest.raises(KeyNotFoundError):
                editor.set_setter_comment("B", "x")
            with pytest.raises(KeyNotFoundError):
                editor.set_export_setter("B")

    def test_delete_keys(self):
        """Deleting removes the setter lines."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1", "# keep", "B=2", "C=3"))

            editor.delete_keys(["A", "C", "MISSING"])

            assert editor.get_buffer_content() == text("# keep", "B=2")

    def test_add_comment_and_empty(self):
        """Comments and blank lines are appended."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"))

            editor.add_empty().add_comment("Section")

            assert editor.get_buffer_content() == text("A=1", "", "# Section")

    def test_get_buffer_as_dict(self):
        """The buffer can be exported as dicts."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"))

            buffer = editor.get_buffer(as_dict=True)

            assert buffer[0]['line'] == 1
            assert buffer[0]['raw_data'] == "A=1"
            assert buffer[0]['parsed_data']['key'] == "A"

    def test_save_creates_file(self):
        """Saving a new buffer creates the file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir)

            editor.set_key("A", "1").save()

            assert read_env(Path(tmpdir) / ".env") == text("A=1")
            assert editor.get_backups() == []

    def test_save_rebuilds_buffer(self):
        """After saving, the buffer reflects the file with line numbers."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"))

            editor.set_key("B", "2").save()

            assert not editor.has_changed()
            assert [entry.line for entry in editor.get_buffer()] == [1, 2]
            assert all(entry.raw is not None for entry in editor.get_buffer())

    def test_save_keeps_buffer_when_not_rebuilding(self):
        """rebuild_buffer=False leaves the modified buffer in place."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"))

            editor.set_key("B", "2").save(rebuild_buffer=False)

            assert editor.has_changed()
            assert editor.get_buffer()[-1].line is None

    def test_v1_grammar(self):
        """The configured grammar controls parsing and formatting."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A='a\\tb'"), grammar=GrammarVersion.V1)

            assert editor.get_value("A") == "a\tb"

            editor.set_key("REF", "${A}")
            assert editor.get_buffer_content().endswith(text("REF=${A}"))


class TestBackups:
    """Test backup and restore through the editor."""

    def test_save_backs_up_existing_file(self):
        """Auto backup copies the old content before writing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"))

            editor.set_key("A", "2").save()

            backups = editor.get_backups()
            assert len(backups) == 1
            assert read_env(Path(backups[0].filepath)) == text("A=1")

    def test_auto_backup_off(self):
        """No backup is made when auto backup is off."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"), auto_backup=False)

            assert not editor.is_auto_backup()
            editor.set_key("A", "2").save()
            assert editor.get_backups() == []

            editor.auto_backup(True)
            assert editor.is_auto_backup()

    def test_backup_missing_file(self):
        """Backing up a missing file raises EnvFileNotFoundError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(EnvFileNotFoundError):
                make_editor(tmpdir).backup()

    def test_always_create_backup_folder(self):
        """The backup folder can be created up front."""
        with tempfile.TemporaryDirectory() as tmpdir:
            make_editor(tmpdir, always_create_backup_folder=True)
            assert (Path(tmpdir) / "backups").is_dir()

    def test_restore_latest(self):
        """Restoring copies the latest backup back and reloads the buffer."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"), auto_backup=False)
            editor.backup()
            editor.set_key("A", "2").save()

            editor.restore()

            assert read_env(Path(tmpdir) / ".env") == text("A=1")
            assert editor.get_buffer_content() == text("A=1")
            assert not editor.has_changed()

    def test_restore_from_path(self):
        """A specific file can be restored."""
        with tempfile.TemporaryDirectory() as tmpdir:
            source = Path(tmpdir) / "other.env"
            write_env(source, text("FROM=other"))
            editor = make_editor(tmpdir, text("A=1"))

            editor.restore(source)

            assert editor.get_value("FROM") == "other"

    def test_restore_without_backups(self):
        """Restoring with no backups raises NoBackupAvailableError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"))
            with pytest.raises(NoBackupAvailableError):
                editor.restore()

    def test_restore_missing_source(self):
        """Restoring from a missing file raises EnvFileNotFoundError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"))
            with pytest.raises(EnvFileNotFoundError):
                editor.restore(Path(tmpdir) / "missing")

    def test_load_restores_missing_file(self):
        """load() can restore a missing file from the latest backup."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir, text("A=1"))
            editor.backup()
            (Path(tmpdir) / ".env").unlink()

            editor.load(restore_if_not_found=True)

            assert editor.get_value("A") == "1"
            assert len(editor.get_buffer()) == 1

    def test_load_restore_without_backups(self):
        """Restoring on load fails when there is nothing to restore."""
        with tempfile.TemporaryDirectory() as tmpdir:
            editor = make_editor(tmpdir)
            with pytest.raises(NoBackupAvailableError):
                editor.load(restore_if_not_found=True)

    def test_delete_backups(self):
        """Backups can be deleted one by one or all at once."""
        with tempfile.TemporaryDirectory() as tmpdir:
            backups = Path(tmpdir) / "backups"
            backups.mkdir()
            first = backups / ".env.backup_2024_01_01_000000"
            second = backups / ".env.backup_2024_02_01_000000"
            write_env(first, text("A=1"))
            write_env(second, text("A=2"))
            editor = make_editor(tmpdir, text("A=3"))

            assert editor.get_latest_backup().filename == second.name

            editor.delete_backup(second)
            assert [info.filename for info in editor.get_backups()] == [first.name]

            editor.delete_backups()
            assert editor.get_backups() == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
