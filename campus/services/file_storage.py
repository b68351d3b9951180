import logging
import os
import uuid
from fastapi import UploadFile
from typing import Iterable, Optional, Tuple

from campus.core.config.settings import get_settings
from campus.utils.helpers import sanitize_filename

logger = logging.getLogger(__name__)

class FileStorage:
    def __init__(self, upload_dir: Optional[str] = None,
                 allowed_extensions: Optional[Iterable[str]] = None,
                 max_size: Optional[int] = None):
        settings = get_settings()
        self.upload_dir = str(upload_dir or settings.UPLOAD_DIR)
        self.allowed_extensions = {ext.lower() for ext in (allowed_extensions or settings.ALLOWED_EXTENSIONS)}
        self.max_size = max_size or settings.MAX_UPLOAD_SIZE

    def _get_file_extension(self, filename: str) -> str:
        return os.path.splitext(filename)[1].lower()

    def is_allowed_file(self, filename: str) -> bool:
        return self._get_file_extension(filename) in self.allowed_extensions

    def get_path(self, filename: str, subfolder: Optional[str] = None) -> str:
        if subfolder:
            return os.path.join(self.upload_dir, subfolder, filename)
        return os.path.join(self.upload_dir, filename)

    async def save_file(self, file: UploadFile, subfolder: Optional[str] = None) -> Tuple[bool, str, int]:
        """
        Save an uploaded file to the storage system

        Args:
            file: The uploaded file
            subfolder: Optional subfolder within uploads directory

        Returns:
            Tuple of (success, stored filename or error message, size in bytes)
        """
        original = sanitize_filename(file.filename or "")
        if not original or not self.is_allowed_file(original):
            allowed = ", ".join(sorted(self.allowed_extensions))
            return False, f"File type not allowed. Allowed types: {allowed}", 0

        content = await file.read()
        if len(content) > self.max_size:
            return False, f"File too large. Maximum size is {self.max_size // (1024 * 1024)}MB", len(content)
        if not content:
            return False, "File is empty", 0

        # Generate unique filename
        unique_filename = f"{uuid.uuid4().hex}{self._get_file_extension(original)}"

        save_path = os.path.dirname(self.get_path(unique_filename, subfolder))
        os.makedirs(save_path, exist_ok=True)

        try:
            with open(os.path.join(save_path, unique_filename), "wb") as buffer:
                buffer.write(content)
        except OSError as e:
            logger.error("Failed to write upload %s: %s", unique_filename, e)
            return False, "Failed to store file", len(content)

        return True, unique_filename, len(content)

    def delete_file(self, filename: str, subfolder: Optional[str] = None) -> bool:
        """Delete a stored file. Returns False when it was already gone."""
        file_path = self.get_path(filename, subfolder)
        try:
            if os.path.exists(file_path):
                os.remove(file_path)
                return True
            return False
        except OSError as e:
            logger.warning("Failed to delete %s: %s", file_path, e)
            return False

file_storage = FileStorage()
