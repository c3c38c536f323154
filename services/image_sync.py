"""
Image Synchronization

Keeps an entry's local upload, its mirrored cloud copy and its database
row consistent across create, update and delete.

Ordering rules:
    - The row naming the local file is committed before any mirror work
      is dispatched, so a crash leaves a local-only entry, never a
      remote-only one.
    - On replacement the old remote fields are cleared in the same commit,
      so a stale mirror of a different image is never shown.
    - The old remote copy is destroyed only after the new copy has been
      uploaded and attached.
    - Mirror and cleanup failures are logged and leave the entry valid.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from models import db
from utils.image_paths import resolve_image_path
from .errors import MissingImage
from .mirror import MirrorSyncFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImagePlan:
    """Side effects still owed once the entry's write has committed."""
    local_path: str
    changed: bool
    superseded_local: Optional[str] = None
    superseded_remote_id: Optional[str] = None


class ImageSyncOrchestrator:

    def __init__(self, local_store, mirror, tasks, allowed_types):
        self.local_store = local_store
        self.mirror = mirror
        self.tasks = tasks
        self.allowed_types = set(allowed_types)

    # ------------------------------------------------------------------
    # Request-time steps (no network I/O)
    # ------------------------------------------------------------------

    def accept_upload(self, file_storage):
        """
        Store the uploaded file, if one was submitted.

        Returns None when the form carried no file. Raises RejectedUploadType
        for files that are not an accepted image (nothing is kept on disk).
        """
        if file_storage is None or not file_storage.filename:
            return None
        return self.local_store.accept_upload(file_storage, self.allowed_types)

    def resolve(self, previous, stored, remote_available=False):
        """
        Decide the entry's local image.

        Args:
            previous: Filename currently stored for the entry, or None
            stored: StoredImage accepted in this request, or None
            remote_available: True if the entry already has a mirrored copy
                that can be shown in place of a local file

        Raises:
            MissingImage: If no image would remain
        """
        resolution = resolve_image_path(previous or None, stored)
        if not resolution.local_path and not remote_available:
            raise MissingImage()
        return resolution

    def discard(self, stored):
        """Drop a file written for a submission that is being rejected."""
        if stored is None:
            return
        logger.info("Discarding upload %s from rejected submission", stored.filename)
        self.local_store.delete(stored.filename)

    def apply(self, entry, resolution):
        """
        Write the resolved image onto the (uncommitted) entry.

        When the image changes, the remote fields are cleared now because
        they describe the superseded file.
        """
        superseded_local = None
        superseded_remote_id = None
        if resolution.changed:
            if entry.image and entry.image != resolution.local_path:
                superseded_local = entry.image
            if entry.remote_image_id:
                superseded_remote_id = entry.remote_image_id
            entry.clear_remote_image()
        entry.image = resolution.local_path
        return ImagePlan(
            local_path=resolution.local_path,
            changed=resolution.changed,
            superseded_local=superseded_local,
            superseded_remote_id=superseded_remote_id,
        )

    # ------------------------------------------------------------------
    # Post-commit side effects
    # ------------------------------------------------------------------

    def after_commit(self, model, entry_id, plan):
        """
        Carry out a plan once the entry's row is committed.

        Returns the Future of the background mirror job, or None when no
        mirroring was needed.
        """
        if plan.superseded_local:
            self.local_store.delete(plan.superseded_local)

        if not plan.changed or not plan.local_path:
            return None

        if not self.mirror.enabled:
            logger.debug("Mirroring disabled; %s %s stays local-only", model.__name__, entry_id)
            if plan.superseded_remote_id:
                logger.warning(
                    "Mirroring disabled; superseded remote image %s left in place",
                    plan.superseded_remote_id,
                )
            return None

        return self.tasks.submit(
            self._mirror_job, model, entry_id, plan.local_path, plan.superseded_remote_id,
        )

    def after_delete(self, local_filename, remote_id):
        """Clean up the files of an entry whose row has been deleted."""
        futures = []
        if local_filename:
            futures.append(self.tasks.submit(self.local_store.delete, local_filename))
        if remote_id:
            futures.append(self.tasks.submit(self._destroy_remote, remote_id))
        return futures

    # ------------------------------------------------------------------
    # Background jobs
    # ------------------------------------------------------------------

    def _mirror_job(self, model, entry_id, local_filename, superseded_remote_id):
        """Upload, attach, then destroy the superseded copy - strictly in that order."""
        local_path = self.local_store.path_for(local_filename)
        try:
            mirrored = self.mirror.upload(local_path)
        except MirrorSyncFailure as e:
            logger.warning("Mirror upload failed for %s %s: %s", model.__name__, entry_id, e)
            if superseded_remote_id:
                if self._is_current(model, entry_id, local_filename):
                    logger.warning("Superseded remote image %s left in place", superseded_remote_id)
                else:
                    self._destroy_remote(superseded_remote_id)
            return None

        if not self._attach(model, entry_id, local_filename, mirrored):
            # Neither copy is referenced: the row dropped the superseded id
            # when this job was planned
            self._destroy_remote(mirrored.public_id)
            if superseded_remote_id and superseded_remote_id != mirrored.public_id:
                self._destroy_remote(superseded_remote_id)
            return None

        if superseded_remote_id and superseded_remote_id != mirrored.public_id:
            self._destroy_remote(superseded_remote_id)
        return mirrored

    def _is_current(self, model, entry_id, local_filename):
        entry = db.session.get(model, entry_id)
        return entry is not None and entry.image == local_filename

    def _attach(self, model, entry_id, local_filename, mirrored):
        entry = db.session.get(model, entry_id)
        if entry is None:
            logger.info("%s %s was deleted before its mirror finished", model.__name__, entry_id)
            return False
        if entry.image != local_filename:
            logger.info("%s %s image changed before its mirror finished", model.__name__, entry_id)
            return False
        entry.attach_remote_image(mirrored.url, mirrored.public_id)
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning("Could not attach mirror to %s %s: %s", model.__name__, entry_id, e)
            return False
        logger.info("Attached mirror %s to %s %s", mirrored.public_id, model.__name__, entry_id)
        return True

    def _destroy_remote(self, public_id):
        try:
            self.mirror.destroy(public_id)
        except MirrorSyncFailure as e:
            logger.warning("Could not destroy remote image %s: %s", public_id, e)
