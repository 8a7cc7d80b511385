"""Progress store: cached access to the persisted UserProgress document."""
import json
import logging
import sqlite3

from exam_review.db import DEFAULT_DB_PATH, init_db, read_value, write_value
from exam_review.errors import StorageUnavailableError, ValidationError
from exam_review.models import UserProgress
from exam_review.schema import validate

logger = logging.getLogger(__name__)

STORAGE_KEY = "exam_review_progress"


class ProgressStore:
    """Owns the in-memory UserProgress and mediates reads/writes to the medium.

    The first ``get()`` after construction or ``reset_cache()`` loads from the
    database; later calls return the cached object. Pass ``db_path=None`` for a
    store with no persistent medium: reads yield an empty aggregate and writes
    only update the cache.
    """

    def __init__(self, db_path: str | None = DEFAULT_DB_PATH, storage_key: str = STORAGE_KEY):
        self.db_path = db_path
        self.storage_key = storage_key
        self._cache: UserProgress | None = None
        self._initialized = False

    def _ensure_medium(self) -> str:
        if self.db_path is None:
            raise StorageUnavailableError("no database configured")
        if not self._initialized:
            try:
                init_db(self.db_path)
            except (OSError, sqlite3.Error) as e:
                raise StorageUnavailableError(f"cannot open {self.db_path}: {e}") from e
            self._initialized = True
        return self.db_path

    def read_raw(self) -> str | None:
        """Return the stored JSON text, or None when nothing has been saved."""
        db_path = self._ensure_medium()
        try:
            return read_value(db_path, self.storage_key)
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"read failed: {e}") from e

    def write_raw(self, text: str) -> None:
        db_path = self._ensure_medium()
        try:
            write_value(db_path, self.storage_key, text)
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"write failed: {e}") from e

    def _load(self) -> UserProgress:
        try:
            raw = self.read_raw()
        except StorageUnavailableError as e:
            logger.warning("Progress storage unavailable, using empty progress: %s", e)
            return UserProgress()
        if not raw:
            return UserProgress()
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, RecursionError) as e:
            logger.error("Stored progress is not valid JSON, using empty progress: %s", e)
            return UserProgress()
        result = validate(data)
        if not result.valid:
            logger.error("Stored progress failed validation, using empty progress: %s", result.error)
            return UserProgress()
        return UserProgress.from_dict(data)

    def get(self) -> UserProgress:
        if self._cache is None:
            self._cache = self._load()
        return self._cache

    def save(self, progress: UserProgress) -> None:
        """Validate and persist *progress*, replacing whatever is stored.

        Raises ValidationError and leaves both cache and medium untouched when
        the data is malformed. An unavailable medium is logged and skipped.
        """
        data = progress.to_dict()
        result = validate(data)
        if not result.valid:
            logger.error("Refusing to save invalid progress: %s", result.error)
            raise ValidationError(result.error)
        self._cache = progress
        try:
            self.write_raw(json.dumps(data))
        except StorageUnavailableError as e:
            logger.warning("Progress not persisted: %s", e)
            return
        logger.info(
            "Saved progress: %d attempts, %d questions",
            len(progress.quiz_attempts), len(progress.question_attempts),
        )

    def reset_cache(self) -> None:
        self._cache = None
        logger.debug("Progress cache reset")
