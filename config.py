import logging
import os
import secrets
from urllib.parse import urlparse

from dotenv import load_dotenv

from errors import ConfigurationError

load_dotenv()

logger = logging.getLogger(__name__)


def _generated_secret():
    logger.warning("SECRET_KEY is not set; using a per-process random key. Sessions will not survive a restart.")
    return secrets.token_hex(32)


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///rental.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Never derived from the database credentials
    SECRET_KEY = os.environ.get('SECRET_KEY') or _generated_secret()
    DB_PASSWORD = os.environ.get('DB_PASSWORD')

    GOOGLE_CLIENT_ID = os.environ.get('GOOGLE_CLIENT_ID')
    GOOGLE_CLIENT_SECRET = os.environ.get('GOOGLE_CLIENT_SECRET')
    GOOGLE_CALLBACK_URL = os.environ.get('GOOGLE_CALLBACK_URL')

    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'smtp.gmail.com')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 587))
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_USE_TLS = os.environ.get('MAIL_USE_TLS', 'true').lower() == 'true'
    CONTACT_RECIPIENT = os.environ.get('CONTACT_RECIPIENT') or MAIL_USERNAME

    PAYMENT_API_URL = os.environ.get('PAYMENT_API_URL', 'http://localhost:4000/api')
    OUTBOUND_TIMEOUT = float(os.environ.get('OUTBOUND_TIMEOUT', 10))

    MAX_IMAGE_BYTES = int(os.environ.get('MAX_IMAGE_BYTES', 5 * 1024 * 1024))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SECRET_KEY = 'test-7f3c9a1e5b2d4f6a8c0e'
    DB_PASSWORD = 'postgres-password'
    GOOGLE_CLIENT_ID = 'test-client-id'
    GOOGLE_CLIENT_SECRET = 'test-client-secret'
    GOOGLE_CALLBACK_URL = None
    MAIL_USERNAME = 'portal@example.com'
    MAIL_PASSWORD = 'mail-password'
    CONTACT_RECIPIENT = 'portal@example.com'
    PAYMENT_API_URL = 'http://payments.test/api'
    OUTBOUND_TIMEOUT = 2
    LOG_LEVEL = 'DEBUG'


def database_password(config):
    """Password of the configured database, from DB_PASSWORD or the URL itself."""
    if config.get('DB_PASSWORD'):
        return config['DB_PASSWORD']
    uri = config.get('SQLALCHEMY_DATABASE_URI') or ''
    try:
        return urlparse(uri).password
    except ValueError:
        return None


def validate_secret_key(config):
    secret = config.get('SECRET_KEY')
    if not secret or len(secret) < 16:
        raise ConfigurationError("SECRET_KEY must be at least 16 characters")
    if secret == database_password(config):
        raise ConfigurationError("SECRET_KEY must not reuse the database password")
