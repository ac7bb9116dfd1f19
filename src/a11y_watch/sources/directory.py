"""Filesystem queue source: ``<job_dir>/todo`` in, ``<job_dir>/done`` out."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from a11y_watch.config import DirectorySettings
from a11y_watch.errors import ArchiveError, JobParseError, SourceReadError
from a11y_watch.models import Job, JobFound, NoJob, PollOutcome

logger = logging.getLogger(__name__)


class DirectoryJobSource:
    """Reads job files that submitters drop into the to-do directory."""

    name = "directory"

    def __init__(self, settings: DirectorySettings) -> None:
        self.settings = settings
        self._abandoned: set[Path] = set()

    @property
    def location(self) -> str:
        return str(self.settings.job_dir)

    def list_pending(self) -> list[Path]:
        """Eligible job files in lexicographic filename order.

        Files this source already set aside are never listed again.
        """

        todo_dir = self.settings.todo_dir
        try:
            entries = [entry for entry in todo_dir.iterdir() if entry.is_file()]
        except OSError as error:
            raise SourceReadError(
                f"Cannot list {todo_dir} ({error.strerror or error})",
                location=str(todo_dir),
            ) from error
        return sorted(
            (
                entry
                for entry in entries
                if entry.name.endswith(self.settings.job_suffix) and entry not in self._abandoned
            ),
            key=lambda entry: entry.name,
        )

    def next_job(self) -> PollOutcome:
        """Parse the first pending job file.

        Raises:
            SourceReadError: the to-do directory cannot be listed or the file read.
            JobParseError: the selected file is not a well-formed job.
        """

        pending = self.list_pending()
        if not pending:
            return NoJob(source=self.location, message=f"No job to do in {self.location}")
        path = pending[0]
        try:
            text = path.read_text("utf-8")
        except OSError as error:
            raise SourceReadError(
                f"Cannot read job file {path} ({error.strerror or error})",
                location=str(path),
            ) from error
        except UnicodeDecodeError as error:
            raise JobParseError(
                f"Job file {path} is not UTF-8 text",
                location=str(path),
            ) from error
        return JobFound(source=self.location, job=Job.from_json(text, origin=path))

    def archive(self, job: Job) -> None:
        """Move a completed job file into the done directory."""

        if job.origin is None:
            raise ArchiveError(f"Job {job.id} has no queue file to archive")
        self._move(job.origin, self.settings.done_dir, error_cls=ArchiveError)
        logger.info("Job %s archived in %s", job.id, self.settings.done_dir)

    def set_aside(self, job: Job) -> Path | None:
        """Move a failed job file out of the queue so it is not picked up again."""

        if job.origin is None:
            return None
        target = self._move_aside(job.origin, self.settings.failed_dir)
        if target is not None:
            logger.warning("Moved failed job %s to %s", job.id, target.parent)
        return target

    def quarantine(self, error: JobParseError) -> Path | None:
        """Move an unparseable job file aside so later jobs are not blocked."""

        if error.location is None:
            return None
        source = Path(error.location)
        target = self._move_aside(source, self.settings.invalid_dir)
        if target is not None:
            logger.warning("Moved unparseable job file %s to %s", source.name, target.parent)
        return target

    def _move_aside(self, source: Path, target_dir: Path) -> Path | None:
        # Skipped from now on even when the move fails.
        self._abandoned.add(source)
        if not source.exists():
            return None
        return self._move(source, target_dir, error_cls=SourceReadError)

    @staticmethod
    def _move(
        source: Path,
        target_dir: Path,
        *,
        error_cls: type[ArchiveError | SourceReadError],
    ) -> Path:
        target = target_dir / source.name
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(target))
        except OSError as error:
            raise error_cls(f"Cannot move {source} to {target_dir} ({error})") from error
        return target
