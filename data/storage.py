"""
Object Storage Module

Uploads generated images to the Supabase blog-images bucket.
"""

from supabase import Client

from config import settings
from utils.exceptions import StorageError
from utils.logger import get_logger

logger = get_logger(__name__)


class ImageStorage:
    """Stores PNG images in a public Supabase storage bucket."""

    def __init__(self, client: Client, bucket: str = settings.STORAGE_BUCKET):
        self.client = client
        self.bucket = bucket

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def upload_png(self, filename: str, data: bytes) -> str:
        """
        Upload PNG bytes. Existing objects are never overwritten.

        Args:
            filename: Object name, unique per upload.
            data: Image bytes.

        Returns:
            str: The object name that was stored.

        Raises:
            StorageError: If the upload is rejected (including name collisions).
        """
        logger.info(f"Uploading to storage bucket: {self.bucket}/{filename}")
        try:
            self._bucket().upload(
                path=filename,
                file=data,
                file_options={"content-type": "image/png", "upsert": "false"},
            )
        except Exception as e:
            raise StorageError(f"Upload of {filename} failed: {e}") from e
        return filename

    def public_url(self, filename: str) -> str:
        """
        Resolve the public URL of a stored object.

        Raises:
            StorageError: If the URL cannot be resolved.
        """
        try:
            url = self._bucket().get_public_url(filename)
        except Exception as e:
            raise StorageError(f"Could not resolve public URL for {filename}: {e}") from e
        if not url:
            raise StorageError(f"Empty public URL for {filename}")
        return url.rstrip("?")
