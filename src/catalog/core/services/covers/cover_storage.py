"""Filesystem storage for book cover images."""

import os
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from loguru import logger

from src.catalog.core.errors import StorageError, ValidationError
from src.catalog.runtime.config.config_data import StorageConfig

COVER_FIELD = "cover"
_CHUNK_SIZE = 64 * 1024


@dataclass
class CoverUpload:
    """An uploaded cover image as received from the client."""

    filename: str
    stream: BinaryIO
    content_type: str | None = None

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lower()


class CoverStorage:
    """Stores cover images under random names inside one directory.

    Files are written to a temporary file in the target directory first and
    renamed into place, so a failed upload never leaves a partial cover.
    """

    def __init__(self, config: StorageConfig) -> None:
        self._directory = Path(config.covers_dir)
        self._max_bytes = config.max_cover_size_mb * 1024 * 1024
        self._allowed_extensions = frozenset(config.allowed_extensions)

    @property
    def directory(self) -> Path:
        return self._directory

    def validate(self, upload: CoverUpload) -> None:
        """Reject files whose extension is not an accepted image type."""
        if upload.extension not in self._allowed_extensions:
            allowed = ", ".join(sorted(self._allowed_extensions))
            raise ValidationError.for_field(
                COVER_FIELD, f"Formato de imagem não suportado. Use: {allowed}."
            )

    def save(self, upload: CoverUpload) -> str:
        """Store an uploaded cover and return its stored name.

        Raises:
            ValidationError: Unsupported extension or file too large.
            StorageError: The file could not be written.
        """
        self.validate(upload)
        name = f"{uuid.uuid4().hex}{upload.extension}"

        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, suffix=".part")
        except OSError as e:
            raise StorageError(f"Could not prepare cover directory: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as target:
                written = self._copy_limited(upload.stream, target)
            os.replace(tmp_path, self._directory / name)
        except ValidationError:
            tmp_path.unlink(missing_ok=True)
            raise
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Could not store cover image: {e}") from e

        logger.info("Stored cover {} ({} bytes)", name, written)
        return name

    def _copy_limited(self, source: BinaryIO, target: BinaryIO) -> int:
        written = 0
        while chunk := source.read(_CHUNK_SIZE):
            written += len(chunk)
            if written > self._max_bytes:
                raise ValidationError.for_field(
                    COVER_FIELD,
                    f"A imagem excede {self._max_bytes // (1024 * 1024)} MB.",
                )
            target.write(chunk)
        if written == 0:
            raise ValidationError.for_field(COVER_FIELD, "A imagem enviada está vazia.")
        return written

    def resolve(self, name: str) -> Path:
        """Absolute path of a stored cover; names never escape the directory."""
        if Path(name).name != name:
            raise StorageError(f"Invalid cover name: {name!r}")
        return (self._directory / name).resolve()

    def exists(self, name: str) -> bool:
        return self.resolve(name).is_file()

    def delete(self, name: str) -> None:
        """Remove a stored cover; a missing file is not an error."""
        try:
            self.resolve(name).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not remove cover {name}: {e}") from e
        logger.info("Removed cover {}", name)

    def discard(self, name: str | None) -> None:
        """Best-effort removal used on rollback and cleanup paths."""
        if name is None:
            return
        try:
            self.delete(name)
        except StorageError as e:
            logger.warning("Leaving orphaned cover behind: {}", e)
