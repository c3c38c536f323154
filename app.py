import logging
import os
import sqlite3

import click
from flask import (
    Blueprint, Flask, abort, current_app, flash, redirect, render_template,
    request, send_from_directory, url_for,
)
from flask.cli import with_appcontext
from flask_migrate import Migrate
from sqlalchemy import event
from sqlalchemy.engine import Engine

from config import get_config
from models import db, Recipe
from services import (
    BackgroundTasks, CatalogueEntryService, CatalogueError, ImageSyncOrchestrator,
    NameConflict, NotFound, ReferentialIntegrityFailure, Unauthorized, ValidationError,
    mirror_from_config, seed_catalogue,
)
from utils.local_store import LocalImageStore

logger = logging.getLogger(__name__)

migrate = Migrate()

catalogue = Blueprint('catalogue', __name__, url_prefix='/catalogue')


def get_service():
    return current_app.extensions['catalogue']


def image_src(entry):
    """URL to display an entry's image: the mirror first, then the local file."""
    if entry is None:
        return None
    if entry.remote_image_url:
        return entry.remote_image_url
    if entry.image and get_service().images.local_store.exists(entry.image):
        return url_for('catalogue.uploaded_image', filename=entry.image)
    return None


def _form_state():
    """Submitted values for re-rendering a rejected form."""
    return {
        'name': request.form.get('name', ''),
        'description': request.form.get('description', ''),
        'ingredients': request.form.get('ingredients', ''),
        'steps': request.form.get('steps', ''),
        'source_link': request.form.get('source_link', ''),
        'source_text': request.form.get('source_text', ''),
        'categories': request.form.getlist('categories'),
    }


def _entry_form_state(entry):
    """Form values for an existing entry."""
    state = {'name': entry.name}
    if isinstance(entry, Recipe):
        state.update({
            'description': entry.description or '',
            'ingredients': '\n'.join(entry.ingredients or []),
            'steps': '\n'.join(entry.steps or []),
            'source_link': entry.source_link or '',
            'source_text': entry.source_text or '',
            'categories': [str(c.id) for c in entry.categories],
        })
    return state


def _errors_for(error):
    if isinstance(error, ValidationError):
        return error.errors
    return [error.message]


# ============================================
# ROUTES - HOME
# ============================================

@catalogue.route('/')
def index():
    return render_template('index.html', title='Recipe Catalogue', counts=get_service().counts())


@catalogue.route('/uploads/<path:filename>')
def uploaded_image(filename):
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)


# ============================================
# ROUTES - RECIPES
# ============================================

@catalogue.route('/recipes')
def recipe_list():
    return render_template('recipe_list.html', title='All Recipes', recipes=get_service().list_recipes())


@catalogue.route('/recipe/create', methods=['GET', 'POST'])
def recipe_create():
    service = get_service()
    if request.method == 'POST':
        try:
            recipe = service.create_recipe(request.form, request.files.get('image'))
        except (ValidationError, NameConflict) as e:
            return render_template(
                'recipe_form.html', title='Create Recipe', recipe=None, form=_form_state(),
                categories=service.list_categories(), errors=_errors_for(e),
            ), 400
        flash(f'Recipe "{recipe.name}" created!', 'success')
        return redirect(url_for('catalogue.recipe_detail', id=recipe.id))

    return render_template(
        'recipe_form.html', title='Create Recipe', recipe=None, form={},
        categories=service.list_categories(), errors=[],
    )


@catalogue.route('/recipe/<int:id>')
def recipe_detail(id):
    try:
        recipe = get_service().get_recipe(id)
    except NotFound:
        abort(404)
    return render_template('recipe_detail.html', title=recipe.name, recipe=recipe)


@catalogue.route('/recipe/<int:id>/update', methods=['GET', 'POST'])
def recipe_update(id):
    service = get_service()
    try:
        recipe = service.get_recipe(id)
    except NotFound:
        abort(404)

    if request.method == 'POST':
        try:
            recipe = service.update_recipe(id, request.form, request.files.get('image'))
        except (ValidationError, NameConflict) as e:
            return render_template(
                'recipe_form.html', title='Update Recipe', recipe=recipe, form=_form_state(),
                categories=service.list_categories(), errors=_errors_for(e),
            ), 400
        flash(f'Recipe "{recipe.name}" updated!', 'success')
        return redirect(url_for('catalogue.recipe_detail', id=recipe.id))

    return render_template(
        'recipe_form.html', title='Update Recipe', recipe=recipe, form=_entry_form_state(recipe),
        categories=service.list_categories(), errors=[],
    )


@catalogue.route('/recipe/<int:id>/delete', methods=['GET', 'POST'])
def recipe_delete(id):
    service = get_service()
    try:
        recipe = service.get_recipe(id)
    except NotFound:
        abort(404)

    if request.method == 'POST':
        try:
            name = service.delete_recipe(id, request.form.get('admin_password'))
        except Unauthorized as e:
            return render_template('recipe_delete.html', title='Delete Recipe', recipe=recipe, errors=[e.message]), 403
        except ReferentialIntegrityFailure as e:
            return render_template('recipe_delete.html', title='Delete Recipe', recipe=recipe, errors=[e.message]), 500
        flash(f'Recipe "{name}" deleted!', 'success')
        return redirect(url_for('catalogue.recipe_list'))

    return render_template('recipe_delete.html', title='Delete Recipe', recipe=recipe, errors=[])


# ============================================
# ROUTES - CATEGORIES
# ============================================

@catalogue.route('/categories')
def category_list():
    return render_template('category_list.html', title='All Categories', categories=get_service().list_categories())


@catalogue.route('/category/create', methods=['GET', 'POST'])
def category_create():
    if request.method == 'POST':
        try:
            category = get_service().create_category(request.form, request.files.get('image'))
        except (ValidationError, NameConflict) as e:
            return render_template(
                'category_form.html', title='Create Category', category=None,
                form=_form_state(), errors=_errors_for(e),
            ), 400
        flash(f'Category "{category.name}" created!', 'success')
        return redirect(url_for('catalogue.category_detail', id=category.id))

    return render_template('category_form.html', title='Create Category', category=None, form={}, errors=[])


@catalogue.route('/category/<int:id>')
def category_detail(id):
    service = get_service()
    try:
        category = service.get_category(id)
    except NotFound:
        abort(404)
    return render_template(
        'category_detail.html', title=category.name, category=category,
        recipes=service.category_recipes(id),
    )


@catalogue.route('/category/<int:id>/update', methods=['GET', 'POST'])
def category_update(id):
    service = get_service()
    try:
        category = service.get_category(id)
    except NotFound:
        abort(404)

    if request.method == 'POST':
        try:
            category = service.update_category(id, request.form, request.files.get('image'))
        except (ValidationError, NameConflict) as e:
            return render_template(
                'category_form.html', title='Update Category', category=category,
                form=_form_state(), errors=_errors_for(e),
            ), 400
        flash(f'Category "{category.name}" updated!', 'success')
        return redirect(url_for('catalogue.category_detail', id=category.id))

    return render_template(
        'category_form.html', title='Update Category', category=category,
        form=_entry_form_state(category), errors=[],
    )


@catalogue.route('/category/<int:id>/delete', methods=['GET', 'POST'])
def category_delete(id):
    service = get_service()
    try:
        category = service.get_category(id)
    except NotFound:
        abort(404)
    recipes = service.category_recipes(id)

    if request.method == 'POST':
        try:
            name = service.delete_category(id, request.form.get('admin_password'))
        except (Unauthorized, ReferentialIntegrityFailure) as e:
            status = 403 if isinstance(e, Unauthorized) else 500
            return render_template(
                'category_delete.html', title='Delete Category', category=category,
                recipes=recipes, errors=[e.message],
            ), status
        flash(f'Category "{name}" deleted!', 'success')
        return redirect(url_for('catalogue.category_list'))

    return render_template(
        'category_delete.html', title='Delete Category', category=category, recipes=recipes, errors=[],
    )


@catalogue.errorhandler(CatalogueError)
def catalogue_error(e):
    logger.warning("Unhandled catalogue error: %s", e)
    flash(e.message, 'danger')
    return redirect(url_for('catalogue.index'))


# ============================================
# CLI COMMANDS
# ============================================

@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create database tables."""
    init_db()
    click.echo('Database initialized.')


@click.command('seed')
@with_appcontext
def seed_command():
    """Populate the catalogue with sample categories and recipes."""
    categories, recipes = seed_catalogue(get_service().images)
    current_app.extensions['catalogue_tasks'].wait(timeout=60)
    click.echo(f'Seeded {categories} categories and {recipes} recipes.')


@click.command('prune-uploads')
@with_appcontext
def prune_uploads_command():
    """Delete local uploads that no recipe or category refers to."""
    removed = get_service().prune_local_uploads()
    click.echo(f'Removed {len(removed)} orphaned upload(s).')


# ============================================
# APPLICATION FACTORY
# ============================================

def create_app(config_name=None, overrides=None, mirror=None):
    """
    Build the Flask application.

    Args:
        config_name: Key into config.config ('development', 'testing', ...)
        overrides: Optional dict applied on top of the config class
        mirror: Optional RemoteImageMirror (defaults to one built from config)
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    db.init_app(app)
    migrate.init_app(app, db)

    # Create upload folder if it doesn't exist
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

    tasks = BackgroundTasks(max_workers=app.config['MIRROR_WORKERS'])
    images = ImageSyncOrchestrator(
        local_store=LocalImageStore(app.config['UPLOAD_FOLDER']),
        mirror=mirror if mirror is not None else mirror_from_config(app.config),
        tasks=tasks,
        allowed_types=app.config['ALLOWED_IMAGE_TYPES'],
    )
    app.extensions['catalogue_tasks'] = tasks
    app.extensions['catalogue'] = CatalogueEntryService(images, app.config['ADMIN_PASSWORD'])

    app.register_blueprint(catalogue)
    app.add_url_rule('/', 'home', lambda: redirect(url_for('catalogue.index')))
    app.jinja_env.globals['image_src'] = image_src

    app.cli.add_command(init_db_command)
    app.cli.add_command(seed_command)
    app.cli.add_command(prune_uploads_command)

    return app


# ============================================
# INITIALIZE DATABASE
# ============================================

@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    # Enable SQLite foreign key enforcement
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def init_db():
    """Create tables for the current app (use `flask db upgrade` for migrations)."""
    db.create_all()


if __name__ == '__main__':
    app = create_app()
    with app.app_context():
        init_db()
    # host='0.0.0.0' allows access from other devices on the network
    app.run(debug=True, host='0.0.0.0', port=5000, use_reloader=False)
