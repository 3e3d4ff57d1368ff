"""
Tests for the entry buffer (DotenvWriter).
"""

import os
import tempfile
from pathlib import Path

import pytest
from envedit.core.entry import EntryType
from envedit.core.exceptions import InvalidKeyError, KeyNotFoundError, UnableToWriteFileError
from envedit.core.formatter import Formatter
from envedit.core.parser import parse
from envedit.core.writer import DotenvWriter


def make_writer(content: str = "") -> DotenvWriter:
    writer = DotenvWriter(Formatter(), line_separator="\n")
    return writer.set_buffer(parse(content))


class TestSerialize:
    """Test rendering the buffer."""

    def test_untouched_content_round_trips(self):
        """Unmodified entries keep their original text."""
        content = "# Header\nKEY = value   # spaced\n\nexport  OTHER='x'\nnot a setter\n"
        assert make_writer(content).serialize() == content

    def test_empty_buffer(self):
        """An empty buffer is a single terminator."""
        assert make_writer().serialize() == "\n"

    def test_default_separator_is_platform(self):
        """Without an explicit separator the platform one is used."""
        writer = DotenvWriter().append_setter("A", "1").append_setter("B", "2")
        assert writer.serialize() == "A=1" + os.linesep + "B=2" + os.linesep

    def test_multiline_entry_preserved(self):
        """Multi-line values are written back as they were read."""
        content = 'KEY="line1\nline2"\nB=2\n'
        writer = DotenvWriter(line_separator="\n").set_buffer(parse(content))
        assert writer.serialize() == content


class TestAppend:
    """Test appending entries."""

    def test_append_setter(self):
        """New setters go to the end without a line number."""
        writer = make_writer("A=1\n").append_setter("B", "two words", "note", True)
        entry = writer.buffer[-1]
        assert entry.line is None
        assert entry.raw is None
        assert entry.parsed.key == "B"
        assert writer.serialize() == 'A=1\nexport B="two words" # note\n'

    def test_append_comment_and_empty(self):
        """Comments and blank lines can be appended."""
        writer = make_writer("A=1\n").append_empty().append_comment("# section")
        assert writer.serialize() == "A=1\n\n# section\n"
        assert writer.buffer[-1].type == EntryType.COMMENT
        assert writer.buffer[-1].parsed.comment == "section"

    def test_append_invalid_key(self):
        """Invalid keys are rejected when appended."""
        with pytest.raises(InvalidKeyError):
            make_writer().append_setter("BAD-KEY", "x")

    def test_append_allows_duplicates(self):
        """The buffer itself does not prevent duplicate keys."""
        writer = make_writer().append_setter("K", "1").append_setter("K", "2")
        assert [entry.parsed.value for entry in writer.buffer if entry.is_setter("K")] == ["1", "2"]


class TestUpdate:
    """Test updating setters."""

    def test_update_in_place(self):
        """Updated setters keep their position and line number."""
        writer = make_writer("A=1\nB=2\nC=3\n").update_setter("B", "changed")
        assert writer.serialize() == "A=1\nB=changed\nC=3\n"
        assert writer.buffer[1].line == 2

    def test_update_missing_key(self):
        """Updating a missing key raises KeyNotFoundError."""
        with pytest.raises(KeyNotFoundError):
            make_writer("A=1\n").update_setter("B", "x")

    def test_update_only_first_duplicate(self):
        """With duplicate keys only the first is updated."""
        writer = make_writer("K=1\nK=2\n").update_setter("K", "new")
        assert writer.serialize() == "K=new\nK=2\n"

    def test_update_comment(self):
        """The comment can be changed alone."""
        writer = make_writer("K=v # old\n").update_setter_comment("K", "new note")
        assert writer.serialize() == "K=v # new note\n"

    def test_clear_comment(self):
        """A None comment clears it."""
        writer = make_writer("K=v # old\n").update_setter_comment("K", None)
        assert writer.serialize() == "K=v\n"

    def test_update_export(self):
        """The export flag can be toggled."""
        writer = make_writer("K=v\n").update_setter_export("K", True)
        assert writer.serialize() == "export K=v\n"
        writer.update_setter_export("K", False)
        assert writer.serialize() == "K=v\n"

    def test_update_export_missing(self):
        """Toggling export on a missing key raises."""
        with pytest.raises(KeyNotFoundError):
            make_writer().update_setter_export("NOPE")


class TestDelete:
    """Test deleting setters."""

    def test_delete(self):
        """The setter is removed, other entries stay."""
        writer = make_writer("# c\nA=1\nB=2\n").delete_setter("A")
        assert writer.serialize() == "# c\nB=2\n"

    def test_delete_missing_is_noop(self):
        """Deleting a missing key does nothing."""
        writer = make_writer("A=1\n").delete_setter("B")
        assert writer.serialize() == "A=1\n"

    def test_delete_removes_all_duplicates(self):
        """Every setter with the key is removed."""
        writer = make_writer("K=1\nX=0\nexport K=2\n").delete_setter("K")
        assert writer.serialize() == "X=0\n"
        assert not writer.has_setter("K")


class TestSave:
    """Test writing to disk."""

    def test_save_writes_file(self):
        """The serialized buffer is written verbatim."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / ".env"
            make_writer("A=1\n").append_setter("B", "2").save(path)

            with open(path, 'r', newline='') as f:
                assert f.read() == "A=1\nB=2\n"

    def test_save_into_missing_directory(self):
        """Saving where the directory does not exist fails cleanly."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "missing" / ".env"
            with pytest.raises(UnableToWriteFileError):
                make_writer("A=1\n").save(path)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
