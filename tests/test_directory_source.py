from __future__ import annotations

import allure
import pytest
from conftest import write_job

from a11y_watch.config import WatchSettings
from a11y_watch.errors import ArchiveError, JobParseError, SourceReadError
from a11y_watch.models import Job, JobFound, NoJob
from a11y_watch.sources.directory import DirectoryJobSource

pytestmark = [
    allure.epic("Job Acquisition"),
    allure.feature("Directory Queue"),
]

JOB = {"id": "j1", "sources": {"sendReportTo": "r"}}


def test_next_job_returns_no_job_for_empty_todo(queue_settings: WatchSettings) -> None:
    queue_settings.directory.todo_dir.mkdir(parents=True)
    source = DirectoryJobSource(queue_settings.directory)

    outcome = source.next_job()

    assert isinstance(outcome, NoJob)
    assert "No job to do" in (outcome.message or "")


def test_next_job_ignores_files_without_job_suffix(queue_settings: WatchSettings) -> None:
    todo = queue_settings.directory.todo_dir
    write_job(todo, "notes.txt", "not a job")
    write_job(todo, "a.json.partial", JOB)
    source = DirectoryJobSource(queue_settings.directory)

    assert isinstance(source.next_job(), NoJob)


def test_next_job_picks_lexicographically_first_file(queue_settings: WatchSettings) -> None:
    todo = queue_settings.directory.todo_dir
    write_job(todo, "b.json", {"id": "second", "sources": {"sendReportTo": "r"}})
    write_job(todo, "a.json", {"id": "first", "sources": {"sendReportTo": "r"}})
    source = DirectoryJobSource(queue_settings.directory)

    outcome = source.next_job()

    assert isinstance(outcome, JobFound)
    assert outcome.job.id == "first"
    assert outcome.job.origin == todo / "a.json"
    assert outcome.job.sources.send_report_to == "r"


def test_next_job_raises_source_read_error_when_todo_missing(
    queue_settings: WatchSettings,
) -> None:
    source = DirectoryJobSource(queue_settings.directory)

    with pytest.raises(SourceReadError, match="Cannot list"):
        source.next_job()


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("{not json", "not valid JSON"),
        ("[1, 2]", "JSON object"),
        ('{"sources": {"sendReportTo": "r"}}', "no id"),
        ('{"id": "j1"}', "no sources"),
        ('{"id": "j1", "sources": {}}', "no report destination"),
    ],
)
def test_next_job_raises_parse_error_for_malformed_files(
    queue_settings: WatchSettings,
    content: str,
    message: str,
) -> None:
    write_job(queue_settings.directory.todo_dir, "bad.json", content)
    source = DirectoryJobSource(queue_settings.directory)

    with pytest.raises(JobParseError, match=message) as excinfo:
        source.next_job()

    assert excinfo.value.location == str(queue_settings.directory.todo_dir / "bad.json")


def test_archive_moves_file_to_done(queue_settings: WatchSettings) -> None:
    path = write_job(queue_settings.directory.todo_dir, "a.json", JOB)
    source = DirectoryJobSource(queue_settings.directory)
    outcome = source.next_job()
    assert isinstance(outcome, JobFound)

    source.archive(outcome.job)

    assert not path.exists()
    assert (queue_settings.directory.done_dir / "a.json").exists()
    assert isinstance(source.next_job(), NoJob)


def test_archive_requires_origin(queue_settings: WatchSettings) -> None:
    source = DirectoryJobSource(queue_settings.directory)

    with pytest.raises(ArchiveError, match="no queue file"):
        source.archive(Job.from_payload(JOB))


def test_archive_fails_when_file_vanished(queue_settings: WatchSettings) -> None:
    path = write_job(queue_settings.directory.todo_dir, "a.json", JOB)
    source = DirectoryJobSource(queue_settings.directory)
    job = Job.from_payload(JOB, origin=path)
    path.unlink()

    with pytest.raises(ArchiveError, match="Cannot move"):
        source.archive(job)


def test_quarantine_moves_unparseable_file_aside(queue_settings: WatchSettings) -> None:
    write_job(queue_settings.directory.todo_dir, "bad.json", "{")
    source = DirectoryJobSource(queue_settings.directory)
    with pytest.raises(JobParseError) as excinfo:
        source.next_job()

    target = source.quarantine(excinfo.value)

    assert target == queue_settings.directory.invalid_dir / "bad.json"
    assert target.exists()
    assert source.list_pending() == []


def test_set_aside_moves_failed_job_out_of_todo(queue_settings: WatchSettings) -> None:
    write_job(queue_settings.directory.todo_dir, "a.json", JOB)
    source = DirectoryJobSource(queue_settings.directory)
    outcome = source.next_job()
    assert isinstance(outcome, JobFound)

    target = source.set_aside(outcome.job)

    assert target == queue_settings.directory.failed_dir / "a.json"
    assert target.exists()
    assert isinstance(source.next_job(), NoJob)


def test_set_aside_job_is_skipped_even_when_move_fails(queue_settings: WatchSettings) -> None:
    path = write_job(queue_settings.directory.todo_dir, "a.json", JOB)
    write_job(queue_settings.directory.todo_dir, "b.json", {**JOB, "id": "j2"})
    queue_settings.directory.failed_dir.write_text("not a directory", "utf-8")
    source = DirectoryJobSource(queue_settings.directory)

    with pytest.raises(SourceReadError, match="Cannot move"):
        source.set_aside(Job.from_payload(JOB, origin=path))

    assert path.exists()
    outcome = source.next_job()
    assert isinstance(outcome, JobFound)
    assert outcome.job.id == "j2"
