from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from services.mirror import (
    DisabledMirror, MirrorSyncFailure, S3ImageMirror, mirror_from_config,
)


def client_error(code, operation):
    return ClientError({'Error': {'Code': code, 'Message': code}}, operation)


@pytest.fixture
def s3():
    return MagicMock()


def test_upload_puts_object_under_folder(s3):
    mirror = S3ImageMirror('bucket', folder='catalogue', client=s3)

    mirrored = mirror.upload('/srv/uploads/abc123.png')

    s3.upload_file.assert_called_once_with(
        '/srv/uploads/abc123.png', 'bucket', 'catalogue/abc123.png',
        ExtraArgs={'ContentType': 'image/png'},
    )
    assert mirrored.public_id == 'catalogue/abc123.png'
    assert mirrored.url == 'https://bucket.s3.amazonaws.com/catalogue/abc123.png'


def test_upload_url_uses_region_or_public_base(s3):
    regional = S3ImageMirror('bucket', region='eu-west-1', client=s3)
    assert regional.upload('/x/a.jpg').url == 'https://bucket.s3.eu-west-1.amazonaws.com/catalogue/a.jpg'

    cdn = S3ImageMirror('bucket', public_base_url='https://cdn.example.com/', client=s3)
    assert cdn.upload('/x/a.gif').url == 'https://cdn.example.com/catalogue/a.gif'


def test_upload_failure_raises_mirror_sync_failure(s3):
    s3.upload_file.side_effect = EndpointConnectionError(endpoint_url='https://s3.amazonaws.com')
    with pytest.raises(MirrorSyncFailure):
        S3ImageMirror('bucket', client=s3).upload('/x/a.png')


def test_destroy_deletes_object(s3):
    S3ImageMirror('bucket', client=s3).destroy('catalogue/a.png')
    s3.delete_object.assert_called_once_with(Bucket='bucket', Key='catalogue/a.png')


def test_destroy_missing_object_is_ignored(s3):
    s3.delete_object.side_effect = client_error('NoSuchKey', 'DeleteObject')
    S3ImageMirror('bucket', client=s3).destroy('catalogue/a.png')


def test_destroy_access_denied_raises(s3):
    s3.delete_object.side_effect = client_error('AccessDenied', 'DeleteObject')
    with pytest.raises(MirrorSyncFailure):
        S3ImageMirror('bucket', client=s3).destroy('catalogue/a.png')


def test_mirror_from_config():
    assert isinstance(mirror_from_config({'MIRROR_BUCKET': None}), DisabledMirror)

    mirror = mirror_from_config({
        'MIRROR_BUCKET': 'recipes', 'MIRROR_REGION': 'us-east-1',
        'MIRROR_FOLDER': 'catalogue', 'MIRROR_TIMEOUT': 3,
    })
    assert isinstance(mirror, S3ImageMirror)
    assert mirror.bucket == 'recipes'
    assert mirror.enabled


def test_disabled_mirror_refuses_uploads():
    mirror = DisabledMirror()
    assert not mirror.enabled
    with pytest.raises(MirrorSyncFailure):
        mirror.upload('/x/a.png')
