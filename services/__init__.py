"""
Services Package

Business logic modules for the recipe catalogue.
"""

from .errors import (
    CatalogueError,
    ValidationError,
    MissingImage,
    NameConflict,
    NotFound,
    Unauthorized,
    ReferentialIntegrityFailure,
)

from .mirror import (
    RemoteImageMirror,
    S3ImageMirror,
    DisabledMirror,
    MirroredImage,
    MirrorSyncFailure,
    mirror_from_config,
)

from .tasks import BackgroundTasks

from .image_sync import (
    ImagePlan,
    ImageSyncOrchestrator,
)

from .catalogue import CatalogueEntryService

from .seed import seed_catalogue

__all__ = [
    # Errors
    'CatalogueError',
    'ValidationError',
    'MissingImage',
    'NameConflict',
    'NotFound',
    'Unauthorized',
    'ReferentialIntegrityFailure',
    # Mirror
    'RemoteImageMirror',
    'S3ImageMirror',
    'DisabledMirror',
    'MirroredImage',
    'MirrorSyncFailure',
    'mirror_from_config',
    # Background work
    'BackgroundTasks',
    # Image lifecycle
    'ImagePlan',
    'ImageSyncOrchestrator',
    # Catalogue
    'CatalogueEntryService',
    'seed_catalogue',
]
