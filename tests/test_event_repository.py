"""Tests for EventRepository and the text file storage behind it."""
from pathlib import Path

import pytest

from eventbook.event_codec import HEADER
from eventbook.event_repository import EventRepository
from eventbook.event_storage import StorageError

from tests.helpers import dt, make_event


def write_file(path: Path, *lines: str) -> None:
    path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")


class TestLoad:
    """Tests for load() / load_all()."""

    def test_missing_file_is_empty(self, repository, data_file):
        assert repository.load_all() == []
        assert not data_file.exists()

    def test_sorted_by_start_with_stable_ties(self, repository, data_file):
        write_file(
            data_file,
            HEADER,
            "3,Late,,2025-01-01T10:00:00,2025-01-01T11:00:00",
            "2,Tie second id,,2025-01-01T09:00:00,2025-01-01T09:30:00",
            "1,Tie first id,,2025-01-01T09:00:00,2025-01-01T10:00:00",
        )
        assert [e.id for e in repository.load_all()] == [2, 1, 3]

    def test_header_is_optional(self, repository, data_file):
        write_file(data_file, "1,A,,2025-01-01T09:00:00,2025-01-01T10:00:00")
        assert [e.id for e in repository.load_all()] == [1]

    def test_blank_lines_are_skipped(self, repository, data_file):
        write_file(
            data_file,
            HEADER,
            "",
            "1,A,,2025-01-01T09:00:00,2025-01-01T10:00:00",
            "   ",
            "2,B,,2025-01-02T09:00:00,2025-01-02T10:00:00",
        )
        assert [e.id for e in repository.load_all()] == [1, 2]

    def test_crlf_line_endings(self, repository, data_file):
        data_file.write_bytes(
            (HEADER + "\r\n1,A,desc,2025-01-01T09:00:00,2025-01-01T10:00:00\r\n").encode("utf-8")
        )
        events = repository.load_all()
        assert events[0].description == "desc"
        assert events[0].end == dt("2025-01-01T10:00:00")

    def test_corrupt_records_are_skipped_and_reported(self, repository, data_file, capsys):
        write_file(
            data_file,
            HEADER,
            "1,A,,2025-01-01T09:00:00,2025-01-01T10:00:00",
            "2,B,,not-a-date,2025-01-01T10:00:00",
            "3,C,too few fields",
            "4,D,,2025-01-03T09:00:00,2025-01-03T10:00:00",
        )
        result = repository.load()

        assert [e.id for e in result.events] == [1, 4]
        assert result.skipped_count == 2
        assert [err.line_number for err in result.skipped] == [3, 4]
        assert "Skipping corrupted record" in capsys.readouterr().err

    def test_load_is_idempotent(self, repository):
        repository.append(make_event(2, "B", "2025-01-02T09:00:00", "2025-01-02T10:00:00"))
        repository.append(make_event(1, "A", "2025-01-01T09:00:00", "2025-01-01T10:00:00"))
        assert repository.load_all() == repository.load_all()

    def test_unreadable_file_raises_storage_error(self, tmp_path):
        directory = tmp_path / "not-a-file"
        directory.mkdir()
        with pytest.raises(StorageError):
            EventRepository(directory).load_all()


class TestAppend:
    """Tests for append()."""

    def test_header_written_for_new_file(self, repository, data_file):
        repository.append(make_event(1, "A", "2025-01-01T09:00:00", "2025-01-01T10:00:00"))
        assert data_file.read_text(encoding="utf-8") == (
            f"{HEADER}\n1,A,,2025-01-01T09:00:00,2025-01-01T10:00:00\n"
        )

    def test_header_not_repeated(self, repository, data_file):
        repository.append(make_event(1, "A", "2025-01-01T09:00:00", "2025-01-01T10:00:00"))
        repository.append(make_event(2, "B", "2025-01-01T11:00:00", "2025-01-01T12:00:00"))
        lines = data_file.read_text(encoding="utf-8").splitlines()
        assert lines.count(HEADER) == 1
        assert len(lines) == 3

    def test_creates_parent_directories(self, tmp_path):
        repository = EventRepository(tmp_path / "nested" / "dir" / "event.csv")
        repository.append(make_event(1, "A", "2025-01-01T09:00:00", "2025-01-01T10:00:00"))
        assert repository.exists()

    def test_does_not_check_duplicate_ids(self, repository):
        repository.append(make_event(1, "A", "2025-01-01T09:00:00", "2025-01-01T10:00:00"))
        repository.append(make_event(1, "A again", "2025-01-02T09:00:00", "2025-01-02T10:00:00"))
        assert [e.id for e in repository.load_all()] == [1, 1]


class TestNextId:
    """Tests for next_id() and create()."""

    def test_empty_repository_starts_at_one(self, repository):
        assert repository.next_id() == 1

    def test_monotonic_after_append(self, repository):
        first = repository.next_id()
        repository.append(make_event(first, "A", "2025-01-01T09:00:00", "2025-01-01T10:00:00"))
        assert repository.next_id() == first + 1

    def test_uses_highest_id_not_count(self, repository, data_file):
        write_file(
            data_file,
            HEADER,
            "9,A,,2025-01-01T09:00:00,2025-01-01T10:00:00",
            "4,B,,2025-01-02T09:00:00,2025-01-02T10:00:00",
        )
        assert repository.next_id() == 10

    def test_create_assigns_sequential_ids(self, repository):
        a = repository.create("A", "", dt("2025-01-01T09:00:00"), dt("2025-01-01T10:00:00"))
        b = repository.create("B", "note", dt("2025-01-01T08:00:00"), dt("2025-01-01T08:30:00"))
        assert (a.id, b.id) == (1, 2)
        assert repository.get(2) == b


class TestSaveAll:
    """Tests for save_all()."""

    def test_writes_in_caller_order(self, repository, data_file):
        late = make_event(1, "Late", "2025-01-02T09:00:00", "2025-01-02T10:00:00")
        early = make_event(2, "Early", "2025-01-01T09:00:00", "2025-01-01T10:00:00")
        repository.save_all([late, early])
        lines = data_file.read_text(encoding="utf-8").splitlines()
        assert lines[0] == HEADER
        assert [line.split(",")[0] for line in lines[1:]] == ["1", "2"]

    def test_empty_list_leaves_header_only(self, repository, data_file):
        repository.append(make_event(1, "A", "2025-01-01T09:00:00", "2025-01-01T10:00:00"))
        repository.save_all([])
        assert data_file.read_text(encoding="utf-8") == f"{HEADER}\n"

    def test_failed_rewrite_keeps_old_content(self, repository, data_file, monkeypatch):
        repository.append(make_event(1, "A", "2025-01-01T09:00:00", "2025-01-01T10:00:00"))
        before = data_file.read_bytes()

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("eventbook.event_storage.os.replace", broken_replace)
        with pytest.raises(StorageError):
            repository.save_all([])

        assert data_file.read_bytes() == before
        assert sorted(p.name for p in data_file.parent.iterdir() if p.suffix == ".tmp") == []


class TestReplace:
    """Tests for replace()."""

    def test_keeps_id_and_unchanged_fields(self, repository):
        repository.append(make_event(1, "A", "2025-01-01T09:00:00", "2025-01-01T10:00:00", "desc"))
        updated = repository.replace(1, title="A2", end=dt("2025-01-01T11:00:00"))

        assert updated.id == 1
        assert updated.title == "A2"
        assert updated.description == "desc"
        assert repository.load_all() == [updated]

    def test_moving_an_event_keeps_file_chronological(self, repository, data_file):
        repository.append(make_event(1, "A", "2025-01-01T09:00:00", "2025-01-01T10:00:00"))
        repository.append(make_event(2, "B", "2025-01-02T09:00:00", "2025-01-02T10:00:00"))
        repository.replace(1, start=dt("2025-01-03T09:00:00"), end=dt("2025-01-03T10:00:00"))

        lines = data_file.read_text(encoding="utf-8").splitlines()
        assert [line.split(",")[0] for line in lines[1:]] == ["2", "1"]

    def test_missing_id_leaves_file_untouched(self, repository, data_file):
        repository.append(make_event(1, "A", "2025-01-01T09:00:00", "2025-01-01T10:00:00"))
        before = data_file.read_bytes()
        assert repository.replace(99, title="X") is None
        assert data_file.read_bytes() == before


class TestRecordSafety:
    """Values that cannot be written as a single record are refused up front."""

    @pytest.mark.parametrize("title, description", [
        ("Line one\n9,Ghost,,2025-01-02T09:00:00,2025-01-02T10:00:00", ""),
        ("Title", "first\r\nsecond"),
        ("Carriage\rreturn", ""),
    ])
    def test_create_rejects_line_breaks(self, repository, data_file, title, description):
        repository.create("Kept", "", dt("2025-01-01T09:00:00"), dt("2025-01-01T10:00:00"))
        before = data_file.read_bytes()

        with pytest.raises(ValueError):
            repository.create(title, description, dt("2025-01-02T09:00:00"), dt("2025-01-02T10:00:00"))

        assert data_file.read_bytes() == before
        assert repository.load().skipped_count == 0
        assert repository.next_id() == 2

    def test_replace_rejects_line_breaks(self, repository, data_file):
        repository.create("Kept", "", dt("2025-01-01T09:00:00"), dt("2025-01-01T10:00:00"))
        before = data_file.read_bytes()

        with pytest.raises(ValueError):
            repository.replace(1, description="two\nlines")

        assert data_file.read_bytes() == before

    def test_append_rejects_line_breaks(self, repository, data_file):
        with pytest.raises(ValueError):
            repository.append(make_event(1, "A\nB", "2025-01-01T09:00:00", "2025-01-01T10:00:00"))
        assert not data_file.exists()

    def test_create_drops_microseconds(self, repository):
        created = repository.create(
            "A", "", dt("2025-01-01T09:00:00.500000"), dt("2025-01-01T10:00:00.250000")
        )
        assert created.start == dt("2025-01-01T09:00:00")
        assert created.end == dt("2025-01-01T10:00:00")
        assert repository.load_all() == [created]

    def test_replace_drops_microseconds(self, repository):
        repository.create("A", "", dt("2025-01-01T09:00:00"), dt("2025-01-01T10:00:00"))
        updated = repository.replace(1, end=dt("2025-01-01T10:30:00.999999"))
        assert updated.end == dt("2025-01-01T10:30:00")
        assert repository.load_all() == [updated]

    def test_aware_times_are_rejected(self, repository, data_file):
        with pytest.raises(ValueError):
            repository.create("A", "", dt("2025-01-01T09:00:00+01:00"), dt("2025-01-01T10:00:00+01:00"))
        assert not data_file.exists()

        repository.create("B", "", dt("2025-01-01T09:00:00"), dt("2025-01-01T10:00:00"))
        with pytest.raises(ValueError):
            repository.replace(1, start=dt("2025-01-01T08:00:00+00:00"))
        assert [e.title for e in repository.load_all()] == ["B"]
