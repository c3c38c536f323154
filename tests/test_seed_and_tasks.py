import logging

from models import Category, Recipe
from services.seed import seed_catalogue, SAMPLE_CATEGORIES, SAMPLE_RECIPES


def test_seed_creates_categories_then_recipes(service, mirror, settle):
    assert seed_catalogue(service.images) == (len(SAMPLE_CATEGORIES), len(SAMPLE_RECIPES))
    settle()

    favourites = Category.query.filter_by(name='Favourites').one()
    assert [r.name for r in favourites.recipes] == ['Gujarati Dry Mung Beans', 'Sukhe Chole', 'Sushi Rice']
    assert all(r.has_remote_image for r in Recipe.query.all())
    assert len(mirror.uploaded) == len(SAMPLE_CATEGORIES) + len(SAMPLE_RECIPES)


def test_seed_is_idempotent(service, settle):
    seed_catalogue(service.images)
    assert seed_catalogue(service.images) == (0, 0)
    settle()
    assert Category.query.count() == len(SAMPLE_CATEGORIES)


def test_seed_cli_command(app, mirror):
    result = app.test_cli_runner().invoke(args=['seed'])
    assert 'Seeded 4 categories and 3 recipes.' in result.output


def test_prune_cli_command(app, upload_dir):
    (upload_dir / 'orphan.gif').write_bytes(b'x')
    result = app.test_cli_runner().invoke(args=['prune-uploads'])
    assert 'Removed 1 orphaned upload(s).' in result.output
    assert not (upload_dir / 'orphan.gif').exists()


def test_background_failure_is_logged(app, ctx, caplog):
    tasks = app.extensions['catalogue_tasks']

    def explode():
        raise RuntimeError('boom')

    with caplog.at_level(logging.ERROR, logger='services.tasks'):
        future = tasks.submit(explode)
        assert tasks.wait(timeout=5)

    assert future.result() is None
    assert 'Background task explode failed' in caplog.text
