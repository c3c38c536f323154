"""
Image Validation Module

Validates uploaded images to prevent malicious file uploads.
The declared MIME type is checked against what Pillow actually decodes.
"""

try:
    from PIL import Image
    PIL_AVAILABLE = True
except ImportError:
    PIL_AVAILABLE = False


class ImageValidationError(Exception):
    """Raised when an image fails validation."""
    pass


# MIME type -> PIL format name
MIME_FORMATS = {
    'image/gif': 'GIF',
    'image/jpeg': 'JPEG',
    'image/png': 'PNG',
}

# Maximum image dimensions (prevent decompression bombs)
MAX_WIDTH = 8192
MAX_HEIGHT = 8192


def verify_image(path, mimetype):
    """
    Verify that the file at path is a real image of the declared type.

    Args:
        path: Location of the file on disk
        mimetype: MIME type declared by the client

    Raises:
        ImageValidationError: If the file is not a decodable image of that
            type, or its dimensions exceed the limits
    """
    if not PIL_AVAILABLE:
        raise ImageValidationError("PIL/Pillow is not installed. Cannot validate images.")

    expected = MIME_FORMATS.get(mimetype)
    if expected is None:
        raise ImageValidationError(f"Unsupported image type: {mimetype}")

    try:
        with Image.open(path) as img:
            # Detects truncated/fake files without decoding everything
            img.verify()
            fmt = img.format
            width, height = img.size
    except Image.DecompressionBombError:
        raise ImageValidationError("Image appears to be a decompression bomb (too large when decoded)")
    except Exception as e:
        raise ImageValidationError(f"Invalid or corrupted image: {str(e)}")

    if fmt != expected:
        raise ImageValidationError(f"Image content is {fmt}, but was uploaded as {mimetype}")

    if width > MAX_WIDTH or height > MAX_HEIGHT:
        raise ImageValidationError(
            f"Image dimensions too large: {width}x{height}. "
            f"Maximum: {MAX_WIDTH}x{MAX_HEIGHT}"
        )
