"""
Catalogue Service

CRUD for recipes and categories. Form values are cleaned and validated
here; all image handling is delegated to the ImageSyncOrchestrator.
Errors come back as CatalogueError subclasses for the routes to render.
"""

import hmac
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from constants.validation import MAX_LENGTHS
from models import db, Category, Recipe, recipe_category
from utils.local_store import RejectedUploadType
from utils.sanitizer import sanitize_text, sanitize_name, sanitize_url, process_text_area
from .errors import (
    MissingImage, NameConflict, NotFound, ReferentialIntegrityFailure,
    Unauthorized, ValidationError,
)

logger = logging.getLogger(__name__)


def _getlist(form, key):
    """Multi-value form field as a list (works for MultiDict and plain dicts)."""
    if hasattr(form, 'getlist'):
        return form.getlist(key)
    value = form.get(key)
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


class CatalogueEntryService:

    def __init__(self, images, admin_password):
        self.images = images
        self.admin_password = admin_password

    # ============================================
    # CATEGORIES
    # ============================================

    def list_categories(self):
        return Category.query.order_by(Category.name).all()

    def get_category(self, id):
        return self._get(Category, id)

    def category_recipes(self, id):
        category = self._get(Category, id)
        return Recipe.query.filter(Recipe.categories.contains(category)).order_by(Recipe.name).all()

    def create_category(self, form, upload=None):
        fields, errors = self._category_fields(form)
        return self._create(Category, fields, errors, upload)

    def update_category(self, id, form, upload=None):
        category = self._get(Category, id)
        fields, errors = self._category_fields(form)
        return self._update(category, fields, errors, upload)

    def delete_category(self, id, admin_secret):
        return self._delete(Category, id, admin_secret)

    def _category_fields(self, form):
        errors = []
        name = sanitize_name(form.get('name'), max_length=MAX_LENGTHS['name'])
        if not name:
            errors.append('Category name required')
        return {'name': name}, errors

    # ============================================
    # RECIPES
    # ============================================

    def list_recipes(self):
        return (
            Recipe.query.options(selectinload(Recipe.categories))
            .order_by(Recipe.name)
            .all()
        )

    def get_recipe(self, id):
        return self._get(Recipe, id)

    def create_recipe(self, form, upload=None):
        fields, errors = self._recipe_fields(form)
        return self._create(Recipe, fields, errors, upload)

    def update_recipe(self, id, form, upload=None):
        recipe = self._get(Recipe, id)
        fields, errors = self._recipe_fields(form)
        return self._update(recipe, fields, errors, upload)

    def delete_recipe(self, id, admin_secret):
        return self._delete(Recipe, id, admin_secret)

    def _recipe_fields(self, form):
        errors = []
        name = sanitize_name(form.get('name'), max_length=MAX_LENGTHS['name'])
        if not name:
            errors.append('Recipe name required')

        raw_link = (form.get('source_link') or '').strip()
        source_link = sanitize_url(raw_link[:MAX_LENGTHS['source_link']])
        if raw_link and not source_link:
            errors.append('Source link must be an http(s) URL')

        categories = []
        try:
            category_ids = {int(value) for value in _getlist(form, 'categories') if value != ''}
        except (TypeError, ValueError):
            errors.append('Unknown category selected')
        else:
            if category_ids:
                categories = (
                    Category.query.filter(Category.id.in_(category_ids))
                    .order_by(Category.name)
                    .all()
                )
                if len(categories) != len(category_ids):
                    errors.append('Unknown category selected')

        fields = {
            'name': name,
            'description': sanitize_text(form.get('description'), max_length=MAX_LENGTHS['description']),
            'ingredients': process_text_area(form.get('ingredients')),
            'steps': process_text_area(form.get('steps')),
            'source_link': source_link,
            'source_text': sanitize_text(form.get('source_text'), max_length=MAX_LENGTHS['source_text']),
            'categories': categories,
        }
        return fields, errors

    # ============================================
    # SHARED
    # ============================================

    def counts(self):
        return {
            'recipes': Recipe.query.count(),
            'categories': Category.query.count(),
        }

    def prune_local_uploads(self):
        """
        Delete local image files no entry refers to.

        Returns:
            list of removed filenames
        """
        referenced = set()
        for model in (Category, Recipe):
            referenced.update(image for (image,) in db.session.query(model.image) if image)

        removed = []
        for filename in self.images.local_store.list_files():
            if filename.startswith('.') or filename in referenced:
                continue
            if self.images.local_store.delete(filename):
                removed.append(filename)
        logger.info("Pruned %d orphaned upload(s)", len(removed))
        return removed

    def _get(self, model, id):
        entry = db.session.get(model, id)
        if entry is None:
            raise NotFound(f'{model.__name__} not found')
        return entry

    def _name_taken(self, model, name, exclude_id=None):
        query = model.query.filter(model.name == name)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        return db.session.query(query.exists()).scalar()

    def _accept(self, upload, errors):
        try:
            return self.images.accept_upload(upload), False
        except RejectedUploadType as e:
            logger.info("Rejected upload: %s", e.detail)
            errors.append(str(e))
            return None, True

    def _create(self, model, fields, errors, upload):
        stored, rejected = self._accept(upload, errors)
        resolution = None
        if not rejected:
            try:
                resolution = self.images.resolve(None, stored)
            except MissingImage as e:
                errors.extend(e.errors)

        if errors:
            self.images.discard(stored)
            raise ValidationError(errors)

        if self._name_taken(model, fields['name']):
            self.images.discard(stored)
            raise NameConflict(f'A {model.__name__.lower()} named "{fields["name"]}" already exists')

        entry = model(**fields)
        plan = self.images.apply(entry, resolution)
        db.session.add(entry)
        self._commit_or_conflict(model, fields['name'], stored)

        logger.info("Created %s %s (%s)", model.__name__, entry.id, entry.name)
        self.images.after_commit(model, entry.id, plan)
        return entry

    def _update(self, entry, fields, errors, upload):
        model = type(entry)
        stored, rejected = self._accept(upload, errors)
        resolution = None
        if not rejected:
            try:
                resolution = self.images.resolve(
                    entry.image or None, stored, remote_available=entry.has_remote_image,
                )
            except MissingImage as e:
                errors.extend(e.errors)

        if errors:
            self.images.discard(stored)
            raise ValidationError(errors)

        if self._name_taken(model, fields['name'], exclude_id=entry.id):
            self.images.discard(stored)
            raise NameConflict(f'A {model.__name__.lower()} named "{fields["name"]}" already exists')

        for key, value in fields.items():
            setattr(entry, key, value)
        plan = self.images.apply(entry, resolution)
        self._commit_or_conflict(model, fields['name'], stored)

        logger.info("Updated %s %s (%s)", model.__name__, entry.id, entry.name)
        self.images.after_commit(model, entry.id, plan)
        return entry

    def _commit_or_conflict(self, model, name, stored):
        try:
            db.session.commit()
        except IntegrityError:
            # Lost a race with another request using the same name
            db.session.rollback()
            self.images.discard(stored)
            raise NameConflict(f'A {model.__name__.lower()} named "{name}" already exists')

    def _authorized(self, admin_secret):
        if not admin_secret or not self.admin_password:
            return False
        return hmac.compare_digest(str(admin_secret).encode(), str(self.admin_password).encode())

    def _delete(self, model, id, admin_secret):
        """Delete an entry and every reference to it. Returns the deleted name."""
        if not self._authorized(admin_secret):
            raise Unauthorized('Incorrect admin password')

        entry = self._get(model, id)
        name, local_image, remote_id = entry.name, entry.image, entry.remote_image_id

        try:
            self._remove_references(entry)
            db.session.delete(entry)
            db.session.commit()
        except (SQLAlchemyError, ReferentialIntegrityFailure) as e:
            db.session.rollback()
            logger.error("Delete of %s %s rolled back: %s", model.__name__, id, e)
            if isinstance(e, ReferentialIntegrityFailure):
                raise
            raise ReferentialIntegrityFailure(f'Could not delete {model.__name__.lower()} "{name}"')

        logger.info("Deleted %s %s (%s)", model.__name__, id, name)
        self.images.after_delete(local_image, remote_id)
        return name

    def _remove_references(self, entry):
        if isinstance(entry, Category):
            for recipe in list(entry.recipes):
                recipe.categories.remove(entry)
            db.session.flush()
            column = recipe_category.c.category_id
        else:
            entry.categories = []
            db.session.flush()
            column = recipe_category.c.recipe_id

        remaining = db.session.query(recipe_category).filter(column == entry.id).count()
        if remaining:
            raise ReferentialIntegrityFailure(
                f'{remaining} reference(s) to {type(entry).__name__.lower()} "{entry.name}" remain'
            )
