import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from core.config import DATA_DIR
from core.errors import PersistenceError
from registration.schemas import Registration
from storage.memory import MemoryRegistrationStore

logger = logging.getLogger(__name__)

RECORD_FILENAME = "registration.json"


class LocalRegistrationStore(MemoryRegistrationStore):
    """One JSON document per registration under ``<base>/<id>/registration.json``.

    The in-memory index is rebuilt from disk at start-up; it is only safe for
    a single process owning the directory.
    """

    def __init__(self, base_dir: str | None = None):
        super().__init__()
        self._base = Path(base_dir or DATA_DIR)
        self._base.mkdir(parents=True, exist_ok=True)
        self._load()

    def _record_path(self, record_id: str) -> Path:
        return self._base / record_id / RECORD_FILENAME

    def _load(self) -> None:
        for path in sorted(self._base.glob(f"*/{RECORD_FILENAME}")):
            try:
                record = Registration.model_validate_json(path.read_text(encoding="utf-8"))
            except (OSError, ValidationError) as e:
                logger.error("Skipping unreadable registration document %s: %s", path, e)
                continue
            self._records[record.id] = record
        logger.info("Loaded %d registrations from %s", len(self._records), self._base)

    def _write(self, record: Registration) -> None:
        path = self._record_path(record.id)
        tmp_path = path.with_name(f"{RECORD_FILENAME}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(record.to_document(), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            os.replace(tmp_path, path)
        except OSError as e:
            raise PersistenceError(f"Failed to write registration {record.registration_id}: {e}") from e
