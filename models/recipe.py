"""
Recipe Models

Contains the Recipe model and the recipe_category association table
linking recipes to the categories they are filed under.
"""

from .base import db, ImageMixin, REMOTE_IMAGE_PAIRED


# Join table - a recipe refers to categories, it does not own them
recipe_category = db.Table(
    'recipe_category',
    db.Column('recipe_id', db.Integer, db.ForeignKey('recipe.id', ondelete='CASCADE'), primary_key=True),
    db.Column('category_id', db.Integer, db.ForeignKey('category.id', ondelete='CASCADE'), primary_key=True),
)


class Recipe(ImageMixin, db.Model):
    """Recipe with its ingredient and step lists, source and categories."""
    __table_args__ = (
        db.CheckConstraint(REMOTE_IMAGE_PAIRED, name='ck_recipe_remote_image_paired'),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False, index=True)
    description = db.Column(db.Text, default='')
    ingredients = db.Column(db.JSON, nullable=False, default=list)  # ordered list of lines
    steps = db.Column(db.JSON, nullable=False, default=list)  # ordered list of lines
    source_link = db.Column(db.String(500), default='')
    source_text = db.Column(db.String(200), default='')
    categories = db.relationship(
        'Category',
        secondary=recipe_category,
        backref=db.backref('recipes', lazy=True, order_by='Recipe.name'),
        lazy=True,
        order_by='Category.name',
    )

    def __repr__(self):
        return f'<Recipe {self.id} {self.name!r}>'
