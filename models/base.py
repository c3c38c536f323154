"""
Database Base Module

Creates the SQLAlchemy database instance that all models inherit from,
plus the image columns shared by every catalogue entry.
This is separate to avoid circular imports.
"""

from flask_sqlalchemy import SQLAlchemy

# Create the SQLAlchemy instance
# This will be initialized with the Flask app in app.py
db = SQLAlchemy()


# Remote URL and remote id must be set (or cleared) together
REMOTE_IMAGE_PAIRED = "(remote_image_url = '') = (remote_image_id = '')"


class ImageMixin:
    """
    Image fields shared by Recipe and Category.

    image            - filename of the locally stored upload ('' when none)
    remote_image_url - public URL of the mirrored cloud copy ('' when none)
    remote_image_id  - opaque id used to destroy the mirrored copy ('' when none)
    """
    image = db.Column(db.String(255), nullable=False, default='')
    remote_image_url = db.Column(db.String(500), nullable=False, default='')
    remote_image_id = db.Column(db.String(255), nullable=False, default='')

    @property
    def has_remote_image(self):
        return bool(self.remote_image_url and self.remote_image_id)

    def attach_remote_image(self, url, public_id):
        if not url or not public_id:
            raise ValueError('Remote image needs both a URL and an id')
        self.remote_image_url = url
        self.remote_image_id = public_id

    def clear_remote_image(self):
        self.remote_image_url = ''
        self.remote_image_id = ''
