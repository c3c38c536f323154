"""
Local Image Store

Filesystem storage for uploaded images. Every accepted upload is written
under a freshly generated name, so unrelated entries never overwrite each
other's files and no locking is needed on the shared directory.
"""

import logging
import os
import uuid
from dataclasses import dataclass

from .image_handler import MIME_FORMATS, verify_image, ImageValidationError

logger = logging.getLogger(__name__)

REJECTED_TYPE_MESSAGE = 'Please upload an image in .gif, .jpg/.jpeg, or .png format'

EXTENSIONS = {
    'image/gif': '.gif',
    'image/jpeg': '.jpg',
    'image/png': '.png',
}


class RejectedUploadType(Exception):
    """Raised when an uploaded file is not an accepted image type."""

    def __init__(self, detail=''):
        super().__init__(REJECTED_TYPE_MESSAGE)
        self.detail = detail


@dataclass(frozen=True)
class StoredImage:
    filename: str
    path: str
    mimetype: str
    original_filename: str


class LocalImageStore:
    """Uploaded images on local disk, addressed by filename."""

    def __init__(self, root):
        self.root = root
        os.makedirs(self.root, exist_ok=True)

    def path_for(self, filename):
        # Filenames are generated by us; basename() guards against anything else
        return os.path.join(self.root, os.path.basename(filename))

    def exists(self, filename):
        if not filename:
            return False
        return os.path.isfile(self.path_for(filename))

    def delete(self, filename):
        """
        Delete a stored image. Best-effort: never raises.

        Returns:
            bool: True if a file was removed
        """
        if not filename:
            return False
        path = self.path_for(filename)
        try:
            os.remove(path)
        except FileNotFoundError:
            # Expected on ephemeral disks
            logger.info("Local image already gone: %s", filename)
            return False
        except OSError as e:
            logger.warning("Could not delete local image %s: %s", filename, e)
            return False
        logger.info("Deleted local image: %s", filename)
        return True

    def list_files(self):
        return sorted(
            name for name in os.listdir(self.root)
            if os.path.isfile(os.path.join(self.root, name))
        )

    def accept_upload(self, file_storage, allowed_types):
        """
        Validate and store an uploaded file.

        Args:
            file_storage: werkzeug FileStorage from request.files
            allowed_types: Set of accepted MIME types

        Returns:
            StoredImage for the written file

        Raises:
            RejectedUploadType: If the MIME type is not allowed or the content
                is not a valid image of that type (nothing is left on disk)
        """
        mimetype = (file_storage.mimetype or '').lower()
        if mimetype not in allowed_types or mimetype not in MIME_FORMATS:
            raise RejectedUploadType(f"type {mimetype or 'unknown'} not accepted")

        filename = uuid.uuid4().hex + EXTENSIONS[mimetype]
        path = self.path_for(filename)
        file_storage.save(path)

        try:
            verify_image(path, mimetype)
        except ImageValidationError as e:
            self.delete(filename)
            raise RejectedUploadType(str(e))

        logger.info("Stored upload %r as %s", file_storage.filename, filename)
        return StoredImage(
            filename=filename,
            path=path,
            mimetype=mimetype,
            original_filename=file_storage.filename or '',
        )
