"""Local object store for generated images and narration audio."""

import uuid
from pathlib import Path
from typing import Any

from dreamlity.core.config import Settings
from dreamlity.core.errors import StorageError
from dreamlity.utils.io_utils import safe_file_name


class LocalObjectStore:
    """Stores generated media under a directory served at ``public_base_url``."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the object store.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.root = Path(settings.object_store_path)
        self.base_url = settings.public_base_url.rstrip("/")

    @staticmethod
    def new_file_name(extension: str, prefix: str = "") -> str:
        """Unique file name such as ``audio_<uuid>.mp3``."""
        extension = extension.lstrip(".") or "bin"
        return f"{prefix}{uuid.uuid4()}.{extension}"

    def upload(self, data: bytes, file_name: str, content_type: str, folder: str = "generated") -> str:
        """
        Persist bytes and return the URL they are served at.

        Args:
            data: Object content
            file_name: Target file name (sanitized)
            content_type: MIME type, logged for traceability
            folder: Logical folder (images, audio, ...)

        Returns:
            Public URL of the stored object

        Raises:
            StorageError: If the object cannot be written
        """
        name = safe_file_name(file_name)
        folder = safe_file_name(folder)
        target = self.root / folder / name

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to store {folder}/{name}: {e}") from e

        self.logger.info(f"Stored {content_type} object: {folder}/{name} ({len(data)} bytes)")
        return f"{self.base_url}/{folder}/{name}"
