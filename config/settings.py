# config/settings.py
"""
Environment-specific application settings
"""

import os

from config.security import SecurityConfig


class BaseConfig(SecurityConfig):
    """Settings shared by every environment"""

    VERSION = os.environ.get('APP_VERSION', '1.0.0')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE')

    # Database
    DATABASE_URL = os.environ.get('DATABASE_URL') or 'sqlite:///journals.db'
    SLOW_QUERY_THRESHOLD = 1.0
    SLOW_REQUEST_THRESHOLD = 1000

    # Redis (Celery broker and rate limit storage)
    REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
    REDIS_PORT = int(os.environ.get('REDIS_PORT', 6379))

    # Mail service account
    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'smtp.gmail.com')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 587))
    MAIL_TIMEOUT = int(os.environ.get('MAIL_TIMEOUT', 60))
    EMAIL_HOST = os.environ.get('EMAIL_HOST', '')
    EMAIL_HOST_PASSWORD = os.environ.get('EMAIL_HOST_PASSWORD', '')

    # File storage
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', 'public/journals/upload')
    ARCHIVE_FOLDER = os.environ.get('ARCHIVE_FOLDER', 'public/journals/zip')
    ARCHIVE_TTL_SECONDS = int(os.environ.get('ARCHIVE_TTL_SECONDS', 60))
    ARCHIVE_PURGE_INTERVAL = float(os.environ.get('ARCHIVE_PURGE_INTERVAL', 300))

    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'http://localhost:3000').split(',')

    CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL') or f'redis://{REDIS_HOST}:{REDIS_PORT}/2'
    CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND') or CELERY_BROKER_URL
    CELERY_TASK_ALWAYS_EAGER = False


class DevelopmentConfig(BaseConfig):
    FLASK_ENV = 'development'
    DEBUG = True
    LOG_LEVEL = 'DEBUG'
    SESSION_COOKIE_SECURE = False
    RATELIMIT_STORAGE_URI = 'memory://'


class TestingConfig(BaseConfig):
    FLASK_ENV = 'testing'
    TESTING = True
    SECRET_KEY = 'testing-secret-key'
    DATABASE_URL = 'sqlite://'
    SESSION_COOKIE_SECURE = False
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = 'memory://'
    CELERY_TASK_ALWAYS_EAGER = True
    EMAIL_HOST = 'journals@example.org'
    EMAIL_HOST_PASSWORD = 'not-a-real-password'


class ProductionConfig(BaseConfig):
    FLASK_ENV = 'production'
    DEBUG = False
