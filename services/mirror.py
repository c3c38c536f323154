"""
Remote Image Mirror

Copies local uploads to an S3 bucket and removes them again. Calls here
block; the orchestrator runs them on background workers so a request never
waits on the network.
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import quote

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class MirrorSyncFailure(Exception):
    """Raised when the remote store could not be updated. Never fatal."""
    pass


@dataclass(frozen=True)
class MirroredImage:
    url: str
    public_id: str


class RemoteImageMirror:
    """Interface for a cloud copy of local images."""

    enabled = True

    def upload(self, local_path):
        """Upload the file at local_path. Returns a MirroredImage."""
        raise NotImplementedError

    def destroy(self, public_id):
        """Remove a mirrored copy. Removing a missing copy is not an error."""
        raise NotImplementedError


class DisabledMirror(RemoteImageMirror):
    """Used when no bucket is configured: entries stay local-only."""

    enabled = False

    def upload(self, local_path):
        raise MirrorSyncFailure('Image mirroring is not configured')

    def destroy(self, public_id):
        logger.debug("Mirroring disabled, nothing to destroy for %s", public_id)


CONTENT_TYPES = {
    '.gif': 'image/gif',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
}


class S3ImageMirror(RemoteImageMirror):
    """Mirror backed by an S3 bucket; objects live under a folder prefix."""

    def __init__(self, bucket, folder='catalogue', region=None, public_base_url=None,
                 timeout=10, client=None):
        self.bucket = bucket
        self.folder = folder.strip('/')
        self.region = region
        self.public_base_url = public_base_url.rstrip('/') if public_base_url else None
        if client is None:
            # No automatic retries: a failed or timed-out call is just logged
            client = boto3.client(
                's3',
                region_name=region,
                config=BotoConfig(
                    connect_timeout=timeout,
                    read_timeout=timeout,
                    retries={'max_attempts': 0},
                ),
            )
        self.client = client

    def key_for(self, local_path):
        name = os.path.basename(local_path)
        return f"{self.folder}/{name}" if self.folder else name

    def url_for(self, key):
        if self.public_base_url:
            return f"{self.public_base_url}/{quote(key)}"
        if self.region:
            return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quote(key)}"
        return f"https://{self.bucket}.s3.amazonaws.com/{quote(key)}"

    def upload(self, local_path):
        key = self.key_for(local_path)
        ext = os.path.splitext(local_path)[1].lower()
        extra = {'ContentType': CONTENT_TYPES.get(ext, 'application/octet-stream')}
        try:
            self.client.upload_file(local_path, self.bucket, key, ExtraArgs=extra)
        except (BotoCoreError, ClientError, OSError) as e:
            raise MirrorSyncFailure(f"Upload of {local_path} to s3://{self.bucket}/{key} failed: {e}")
        logger.info("Mirrored %s to s3://%s/%s", local_path, self.bucket, key)
        return MirroredImage(url=self.url_for(key), public_id=key)

    def destroy(self, public_id):
        if not public_id:
            return
        try:
            # S3 delete succeeds for missing keys, so repeats are harmless
            self.client.delete_object(Bucket=self.bucket, Key=public_id)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in ('NoSuchKey', '404'):
                logger.info("Mirrored image already gone: %s", public_id)
                return
            raise MirrorSyncFailure(f"Delete of s3://{self.bucket}/{public_id} failed: {e}")
        except BotoCoreError as e:
            raise MirrorSyncFailure(f"Delete of s3://{self.bucket}/{public_id} failed: {e}")
        logger.info("Destroyed mirrored image s3://%s/%s", self.bucket, public_id)


def mirror_from_config(config):
    """Build the mirror described by the Flask config."""
    bucket = config.get('MIRROR_BUCKET')
    if not bucket:
        logger.info("MIRROR_BUCKET not set; images will be stored locally only")
        return DisabledMirror()
    return S3ImageMirror(
        bucket,
        folder=config.get('MIRROR_FOLDER', 'catalogue'),
        region=config.get('MIRROR_REGION'),
        public_base_url=config.get('MIRROR_PUBLIC_BASE_URL'),
        timeout=config.get('MIRROR_TIMEOUT', 10),
    )
