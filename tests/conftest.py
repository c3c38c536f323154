"""
Shared pytest fixtures: an app built against a temporary SQLite file and
upload folder, with an in-memory stand-in for the S3 mirror.
"""

import io
import os
import sys
import threading

import pytest
from PIL import Image
from werkzeug.datastructures import FileStorage

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app, init_db  # noqa: E402
from models import db  # noqa: E402
from services.mirror import MirroredImage, MirrorSyncFailure, RemoteImageMirror  # noqa: E402

ADMIN_PASSWORD = 'test-secret'


class FakeMirror(RemoteImageMirror):
    """Records calls in order. Clear `gate` to hold uploads until it is set again."""

    def __init__(self):
        self.events = []
        self.remote = {}
        self.fail_uploads = False
        self.gate = threading.Event()
        self.gate.set()
        self._lock = threading.Lock()

    def upload(self, local_path):
        if not self.gate.wait(timeout=10):
            raise MirrorSyncFailure('timed out')
        if self.fail_uploads:
            raise MirrorSyncFailure('mirror unavailable')
        public_id = 'catalogue/' + os.path.basename(local_path)
        url = 'https://mirror.test/' + public_id
        with self._lock:
            self.events.append(('upload', public_id))
            self.remote[public_id] = url
        return MirroredImage(url=url, public_id=public_id)

    def destroy(self, public_id):
        with self._lock:
            self.events.append(('destroy', public_id))
            self.remote.pop(public_id, None)

    @property
    def uploaded(self):
        return [public_id for kind, public_id in self.events if kind == 'upload']

    @property
    def destroyed(self):
        return [public_id for kind, public_id in self.events if kind == 'destroy']


def image_bytes(fmt='PNG', colour=(200, 80, 40)):
    buffer = io.BytesIO()
    Image.new('RGB', (16, 12), colour).save(buffer, fmt)
    return buffer.getvalue()


@pytest.fixture
def mirror():
    return FakeMirror()


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / 'uploads'
    path.mkdir()
    return path


@pytest.fixture
def app(tmp_path, upload_dir, mirror):
    app = create_app('testing', overrides={
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'catalogue.db'}",
        'UPLOAD_FOLDER': str(upload_dir),
        'ADMIN_PASSWORD': ADMIN_PASSWORD,
    }, mirror=mirror)
    with app.app_context():
        init_db()
    yield app
    mirror.gate.set()
    tasks = app.extensions['catalogue_tasks']
    tasks.wait(timeout=10)
    tasks.shutdown()
    with app.app_context():
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield
        db.session.remove()


@pytest.fixture
def service(app, ctx):
    return app.extensions['catalogue']


@pytest.fixture
def settle(app):
    """Wait for background mirror work, then drop cached rows."""
    def _settle():
        assert app.extensions['catalogue_tasks'].wait(timeout=10)
        db.session.expire_all()
    return _settle


@pytest.fixture
def make_upload():
    def _make_upload(filename='cake.png', content_type='image/png', data=None):
        if data is None:
            fmt = {'image/png': 'PNG', 'image/jpeg': 'JPEG', 'image/gif': 'GIF'}.get(content_type, 'PNG')
            data = image_bytes(fmt)
        return FileStorage(stream=io.BytesIO(data), filename=filename, content_type=content_type)
    return _make_upload
