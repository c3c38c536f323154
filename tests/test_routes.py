import io
import os

import pytest
from sqlalchemy.exc import SQLAlchemyError

from models import db, Category, Recipe
from conftest import ADMIN_PASSWORD, image_bytes


def png_field(filename='cake.png'):
    return (io.BytesIO(image_bytes('PNG')), filename, 'image/png')


@pytest.fixture
def category_id(client):
    response = client.post('/catalogue/category/create', data={
        'name': 'Desserts', 'image': png_field(),
    }, content_type='multipart/form-data')
    assert response.status_code == 302
    return int(response.headers['Location'].rstrip('/').rsplit('/', 1)[-1])


def test_home_redirects_to_catalogue(client):
    response = client.get('/')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/catalogue/')


@pytest.mark.parametrize('path', [
    '/catalogue/', '/catalogue/recipes', '/catalogue/categories',
    '/catalogue/recipe/create', '/catalogue/category/create',
])
def test_pages_render(client, path):
    assert client.get(path).status_code == 200


def test_create_category_and_view(app, client, category_id, settle):
    with app.app_context():
        settle()
        category = db.session.get(Category, category_id)
        assert category.image.endswith('.png')
        assert category.remote_image_url.startswith('https://mirror.test/')
        remote_url = category.remote_image_url

    page = client.get(f'/catalogue/category/{category_id}')
    assert page.status_code == 200
    assert b'Desserts' in page.data
    assert remote_url.encode() in page.data


def test_local_image_served_when_not_mirrored(app, client, mirror):
    mirror.fail_uploads = True
    response = client.post('/catalogue/category/create', data={
        'name': 'Desserts', 'image': png_field(),
    }, content_type='multipart/form-data', follow_redirects=True)
    assert response.status_code == 200

    with app.app_context():
        app.extensions['catalogue_tasks'].wait(timeout=10)
        image = Category.query.one().image

    assert f'/catalogue/uploads/{image}'.encode() in response.data
    assert client.get(f'/catalogue/uploads/{image}').status_code == 200


def test_webp_upload_rerenders_form(app, client, upload_dir):
    response = client.post('/catalogue/recipe/create', data={
        'name': 'Sushi Rice',
        'ingredients': '- rice',
        'image': (io.BytesIO(b'RIFF\x00\x00\x00\x00WEBPVP8 '), 'rice.webp', 'image/webp'),
    }, content_type='multipart/form-data')

    assert response.status_code == 400
    assert b'Please upload an image in .gif, .jpg/.jpeg, or .png format' in response.data
    assert b'value="Sushi Rice"' in response.data
    assert os.listdir(upload_dir) == []
    with app.app_context():
        assert Recipe.query.count() == 0


def test_invalid_recipe_keeps_checked_categories(client, category_id):
    response = client.post('/catalogue/recipe/create', data={
        'name': '',
        'categories': [str(category_id)],
        'image': png_field('rice.png'),
    }, content_type='multipart/form-data')

    assert response.status_code == 400
    assert b'Recipe name required' in response.data
    assert b'checked' in response.data


def test_create_recipe_redirects_to_detail(client, category_id):
    response = client.post('/catalogue/recipe/create', data={
        'name': 'Sushi Rice',
        'ingredients': '- 1.5 cups rice\n- 2 tsp sugar',
        'steps': 'Heat\nFold',
        'categories': [str(category_id)],
        'image': png_field('rice.png'),
    }, content_type='multipart/form-data', follow_redirects=True)

    assert response.status_code == 200
    assert b'2 tsp sugar' in response.data
    assert b'Desserts' in response.data


def test_update_form_is_prefilled(client, category_id):
    response = client.get(f'/catalogue/category/{category_id}/update')
    assert response.status_code == 200
    assert b'value="Desserts"' in response.data


def test_update_category_name_only(app, client, category_id):
    response = client.post(f'/catalogue/category/{category_id}/update', data={'name': 'Puddings'},
                           content_type='multipart/form-data')
    assert response.status_code == 302
    with app.app_context():
        assert db.session.get(Category, category_id).name == 'Puddings'


def test_missing_entry_is_404(client):
    assert client.get('/catalogue/recipe/999').status_code == 404
    assert client.get('/catalogue/category/999/update').status_code == 404
    assert client.post('/catalogue/category/999/delete', data={'admin_password': ADMIN_PASSWORD}).status_code == 404


def test_delete_with_wrong_password(app, client, category_id):
    page = client.get(f'/catalogue/category/{category_id}/delete')
    assert page.status_code == 200

    response = client.post(f'/catalogue/category/{category_id}/delete', data={'admin_password': 'nope'})
    assert response.status_code == 403
    assert b'Incorrect admin password' in response.data
    with app.app_context():
        assert db.session.get(Category, category_id) is not None


def test_delete_with_password(app, client, category_id):
    response = client.post(f'/catalogue/category/{category_id}/delete',
                           data={'admin_password': ADMIN_PASSWORD})
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/catalogue/categories')
    with app.app_context():
        assert db.session.get(Category, category_id) is None


def test_failed_delete_rerenders_with_500(app, client, category_id, monkeypatch):
    def failing_commit():
        raise SQLAlchemyError('disk I/O error')

    monkeypatch.setattr(db.session, 'commit', failing_commit)
    response = client.post(f'/catalogue/category/{category_id}/delete',
                           data={'admin_password': ADMIN_PASSWORD})
    monkeypatch.undo()

    assert response.status_code == 500
    assert b'Could not delete category' in response.data
    with app.app_context():
        assert db.session.get(Category, category_id) is not None
