"""
Models Package

Exports all database models and the db instance for use throughout the application.
"""

from .base import db, ImageMixin

from .category import Category
from .recipe import Recipe, recipe_category

__all__ = [
    'db',
    'ImageMixin',
    'Category',
    'Recipe',
    'recipe_category',
]
