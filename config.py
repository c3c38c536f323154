"""
Application Configuration

Centralizes all Flask and application configuration settings.
"""

import os

# Base directory of the application
BASE_DIR = os.path.dirname(os.path.abspath(__file__))


class Config:
    """Base configuration class."""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-only-change-in-production')

    # SQLAlchemy settings
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///catalogue.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Upload settings
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', os.path.join(BASE_DIR, 'static', 'uploads'))
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max upload
    ALLOWED_IMAGE_TYPES = {'image/gif', 'image/jpeg', 'image/png'}

    # Shared secret required for destructive actions
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'change-me')

    # Cloud mirror (S3). Mirroring is disabled when no bucket is set.
    MIRROR_BUCKET = os.environ.get('MIRROR_BUCKET')
    MIRROR_REGION = os.environ.get('MIRROR_REGION')
    MIRROR_FOLDER = os.environ.get('MIRROR_FOLDER', 'catalogue')
    MIRROR_PUBLIC_BASE_URL = os.environ.get('MIRROR_PUBLIC_BASE_URL')
    MIRROR_TIMEOUT = int(os.environ.get('MIRROR_TIMEOUT', 10))  # seconds
    MIRROR_WORKERS = int(os.environ.get('MIRROR_WORKERS', 4))

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'WARNING')


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    ADMIN_PASSWORD = 'test-secret'
    MIRROR_BUCKET = None
    LOG_LEVEL = 'DEBUG'


# Configuration dictionary for easy access
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(env=None):
    """Return the configuration class for the given environment name."""
    if env is None:
        env = os.environ.get('FLASK_ENV', 'default')
    return config.get(env, config['default'])
