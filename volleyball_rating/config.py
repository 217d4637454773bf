import os

basedir = os.path.abspath(os.path.dirname(__file__))


def _env_bool(name, default=False):
    raw = os.environ.get(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in {'1', 'true', 'yes', 'on'}


def _env_int(name, default):
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _env_float(name, default):
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except (TypeError, ValueError):
        return default


def _normalize_database_url(raw_url):
    if not raw_url:
        return raw_url
    if raw_url.startswith('postgres://'):
        return raw_url.replace('postgres://', 'postgresql://', 1)
    return raw_url


class BaseConfig:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-prod')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_EXPIRATION_HOURS = 24
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    CORS_ALLOWED_ORIGINS = os.environ.get('CORS_ALLOWED_ORIGINS', '*')
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE', 'threading')

    TELEGRAM_BOT_TOKEN = os.environ.get('TELEGRAM_BOT_TOKEN', '')
    TELEGRAM_API_URL = os.environ.get('TELEGRAM_API_URL', 'https://api.telegram.org')
    TELEGRAM_TIMEOUT_SECONDS = _env_float('TELEGRAM_TIMEOUT_SECONDS', 10.0)
    TELEGRAM_WEBHOOK_SECRET = os.environ.get('TELEGRAM_WEBHOOK_SECRET', '')
    CHAT_ID = os.environ.get('CHAT_ID', '')
    APP_URL = os.environ.get('APP_URL', 'https://volleyball-rating.vercel.app')
    BOT_USERNAME = os.environ.get('BOT_USERNAME', 'volleyball_rating_bot')
    BOT_LONG_POLLING = _env_bool('BOT_LONG_POLLING', False)

    MIN_PLAYERS_COUNT = _env_int('MIN_PLAYERS_COUNT', 12)
    POLL_PIN_DELAY_SECONDS = _env_float('POLL_PIN_DELAY_SECONDS', 5.0)
    CRON_SECRET = os.environ.get('CRON_SECRET', '')
    TIMEZONE = os.environ.get('TIMEZONE', '')
    INIT_DATA_MAX_AGE_SECONDS = _env_int('INIT_DATA_MAX_AGE_SECONDS', 24 * 60 * 60)


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    BOT_LONG_POLLING = _env_bool('BOT_LONG_POLLING', True)
    SQLALCHEMY_DATABASE_URI = _normalize_database_url(
        os.environ.get(
            'DATABASE_URL',
            'sqlite:///' + os.path.join(basedir, '..', 'volleyball_dev.db')
        )
    )


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    TELEGRAM_BOT_TOKEN = 'test-bot-token'
    TELEGRAM_WEBHOOK_SECRET = ''
    CHAT_ID = '-1001234567890'
    CRON_SECRET = ''
    TIMEZONE = ''
    MIN_PLAYERS_COUNT = 12
    POLL_PIN_DELAY_SECONDS = 5.0
    BOT_LONG_POLLING = False


class ProductionConfig(BaseConfig):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = _normalize_database_url(os.environ.get('DATABASE_URL'))


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}
