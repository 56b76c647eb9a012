"""
Catalog storage

The filament catalog is a single JSON document on disk. The document is the
sole owner of the data: every read-modify-write must load() the current
on-disk state rather than trust a copy held in memory.

Each write goes to its own temp file next to the target and is moved into
place with os.replace, so a failed or concurrent write never leaves a
partial document behind.

Concurrent writers are NOT isolated by default. Two appends that load the
same document both compute the same next id and the later save() discards
the earlier one (lost update). Set CATALOG_SERIALIZE_WRITES=true to hold a
process-wide lock around each read-modify-write; this does not help across
multiple worker processes.
"""
import json
import os
import tempfile
import threading
from contextlib import contextmanager, suppress
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Union

from pydantic import ValidationError

from app.core.config import settings
from app.exceptions import CatalogStorageError
from app.logging_config import get_logger
from app.schemas.catalog import CatalogDocument

logger = get_logger(__name__)

LOAD_ERROR_MESSAGE = "Could not load filament data. Please try again later."
SAVE_ERROR_MESSAGE = "Could not save filament data. Please try again later."


class CatalogStore:
    """
    Access to the catalog document

    Args:
        path: Location of the JSON document
        serialize_writes: Make write_lock() a real lock instead of a no-op
    """

    def __init__(self, path: Union[str, Path], serialize_writes: bool = False):
        self.path = Path(path)
        self.serialize_writes = serialize_writes
        self._lock = threading.Lock()

    def read_raw(self) -> bytes:
        """Return the document exactly as stored"""
        try:
            return self.path.read_bytes()
        except OSError as e:
            logger.error(f"Failed to read catalog {self.path}: {e}", exc_info=True)
            raise CatalogStorageError(LOAD_ERROR_MESSAGE) from e

    def load(self) -> CatalogDocument:
        """
        Read and validate the document

        Raises:
            CatalogStorageError: file missing or unreadable, invalid JSON,
                or records that do not match the catalog schema
        """
        raw = self.read_raw()
        try:
            data = json.loads(raw.decode("utf-8"))
            return CatalogDocument.model_validate(data)
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Failed to parse catalog {self.path}: {e}", exc_info=True)
            raise CatalogStorageError(LOAD_ERROR_MESSAGE) from e

    def save(self, document: CatalogDocument) -> None:
        """
        Overwrite the document with the given structure

        Output is pretty-printed (2-space indent) with keys in schema order,
        so the file stays diffable and hand-editable.

        Raises:
            CatalogStorageError: if the document could not be written
        """
        text = json.dumps(document.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"
        tmp = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # One temp file per writer; concurrent saves must not share it
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name + ".", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except OSError as e:
            logger.error(f"Failed to write catalog {self.path}: {e}", exc_info=True)
            if tmp is not None:
                with suppress(OSError):
                    os.unlink(tmp)
            raise CatalogStorageError(SAVE_ERROR_MESSAGE) from e

        logger.debug(
            "Catalog saved",
            extra={"path": str(self.path), "filaments": len(document.filaments)},
        )

    @contextmanager
    def write_lock(self) -> Iterator[None]:
        """Guard a load()/save() cycle; a no-op unless serialize_writes is set"""
        if not self.serialize_writes:
            yield
            return
        with self._lock:
            yield


@lru_cache
def get_catalog_store() -> CatalogStore:
    """
    Dependency for getting the catalog store

    Usage in FastAPI endpoints:
        @router.get("/filaments")
        def list_filaments(store: CatalogStore = Depends(get_catalog_store)):
            document = store.load()
    """
    return CatalogStore(
        settings.FILAMENT_DATA_PATH,
        serialize_writes=settings.CATALOG_SERIALIZE_WRITES,
    )
