# Utility modules for the Recipe Catalogue
from .image_paths import resolve_image_path, ImageResolution
from .image_handler import verify_image, ImageValidationError
from .local_store import LocalImageStore, StoredImage, RejectedUploadType, REJECTED_TYPE_MESSAGE
from .sanitizer import sanitize_text, sanitize_name, sanitize_url, process_text_area
