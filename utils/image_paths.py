"""
Image Path Resolution

Decides which local image an entry ends up with after a write, given the
image it already had and the file uploaded with the request (if any).
Pure decision logic: nothing here touches the filesystem. Deleting a
replaced file is the orchestrator's job once the write has committed.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ImageResolution:
    local_path: str
    changed: bool


def resolve_image_path(previous, uploaded):
    """
    Resolve the local image path for an entry.

    Args:
        previous: Filename already stored for the entry, or None
        uploaded: StoredImage written during this request, or None

    Returns:
        ImageResolution - local_path is '' only when there is neither a
        previous image nor an upload; changed is True iff an upload is present
    """
    if previous is not None and uploaded is None:
        # Previous image is being kept
        return ImageResolution(local_path=previous, changed=False)
    if previous is not None and uploaded is not None:
        # Image is being replaced
        return ImageResolution(local_path=uploaded.filename, changed=True)
    if uploaded is None:
        # Nothing stored and nothing uploaded - caller decides if that is an error
        return ImageResolution(local_path='', changed=False)
    return ImageResolution(local_path=uploaded.filename, changed=True)
