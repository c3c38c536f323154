"""
Category Model

Contains the Category model used to group recipes.
"""

from .base import db, ImageMixin, REMOTE_IMAGE_PAIRED


class Category(ImageMixin, db.Model):
    """Recipe category with a required display image."""
    __table_args__ = (
        db.CheckConstraint(REMOTE_IMAGE_PAIRED, name='ck_category_remote_image_paired'),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False, index=True)

    def __repr__(self):
        return f'<Category {self.id} {self.name!r}>'
