# src/taskmaster/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
import shutil
from pathlib import Path

from ..core.errors import InvalidTasksFileError, StoreIOError
from .task_models import TaskCollection

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".bak"


class TaskStore:
    """
    JSON file task store: { "tasks": [ ... ] }.

    The file is loaded fully on read() and written back fully on write();
    there is no cache between operations.

    Mutation discipline used by callers:
    - backup() right before the first in-place write,
    - write(),
    - discard_backup() once the whole operation committed.
    On failure the backup stays on disk.

    Concurrency:
    - one mutating operation per file at a time is assumed; callers that
      share a file between threads must serialize access themselves.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_path(self) -> Path:
        return self._path.with_name(self._path.name + BACKUP_SUFFIX)

    # ---- public API ----

    def read(self) -> TaskCollection:
        if not self._path.is_file():
            raise InvalidTasksFileError(f"No valid tasks found in {self._path}: file does not exist")
        try:
            raw = json.loads(self._path.read_text("utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise InvalidTasksFileError(f"Failed to read {self._path}: {e}") from e
        except json.JSONDecodeError as e:
            raise InvalidTasksFileError(f"No valid tasks found in {self._path}: {e}") from e

        try:
            collection = TaskCollection.from_dict(raw)
        except InvalidTasksFileError as e:
            raise InvalidTasksFileError(f"No valid tasks found in {self._path}: {e.message}") from e

        logger.debug("TaskStore read path=%s tasks=%d", self._path, len(collection.tasks))
        return collection

    def write(self, collection: TaskCollection) -> None:
        """Atomic overwrite: write a temp sibling, then os.replace()."""
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(
                json.dumps(collection.to_dict(), ensure_ascii=False, indent=2) + "\n",
                "utf-8",
            )
            os.replace(tmp, self._path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise StoreIOError(f"Failed to write {self._path}: {e}") from e
        logger.debug("TaskStore wrote path=%s tasks=%d", self._path, len(collection.tasks))

    def backup(self) -> Path:
        dst = self.backup_path
        try:
            shutil.copyfile(self._path, dst)
        except OSError as e:
            raise StoreIOError(f"Failed to back up {self._path} to {dst}: {e}") from e
        logger.debug("TaskStore backup created %s", dst)
        return dst

    def restore(self, backup_path: str | Path) -> None:
        """Copy the backup over the store file. The backup itself is kept."""
        src = Path(backup_path)
        try:
            shutil.copyfile(src, self._path)
        except OSError as e:
            raise StoreIOError(f"Failed to restore {self._path} from {src}: {e}") from e
        logger.info("TaskStore restored %s from %s", self._path, src)

    def discard_backup(self, backup_path: str | Path) -> None:
        try:
            Path(backup_path).unlink(missing_ok=True)
        except OSError as e:
            raise StoreIOError(f"Failed to remove backup {backup_path}: {e}") from e
        logger.debug("TaskStore backup removed %s", backup_path)
