import logging

from flask import Flask, current_app, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_socketio import SocketIO
from flask_cors import CORS
from sqlalchemy import inspect, text
from volleyball_rating.config import config

db = SQLAlchemy()
socketio = SocketIO()

_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _parse_allowed_origins(raw_origins):
    if not raw_origins:
        return '*'

    if isinstance(raw_origins, (list, tuple, set)):
        cleaned = [origin for origin in raw_origins if origin]
        return cleaned or '*'

    raw_text = str(raw_origins).strip()
    if not raw_text or raw_text == '*':
        return '*'

    origins = [origin.strip() for origin in raw_text.split(',') if origin.strip()]
    return origins or '*'


def _configure_logging(level_name):
    level = getattr(logging, str(level_name or 'INFO').upper(), logging.INFO)
    logging.basicConfig(level=level, format=_LOG_FORMAT)


def _run_lightweight_migrations():
    """Add roster/voting uniqueness guards to databases created before them."""
    inspector = inspect(db.engine)
    table_names = inspector.get_table_names()
    if 'user' not in table_names:
        return

    user_columns = {col['name'] for col in inspector.get_columns('user')}
    voting_columns = {col['name'] for col in inspector.get_columns('voting')} if 'voting' in table_names else set()
    with db.engine.begin() as connection:
        if 'chat_id' not in user_columns:
            connection.execute(text(
                'ALTER TABLE "user" ADD COLUMN chat_id BIGINT'
            ))
        if 'language_code' not in user_columns:
            connection.execute(text(
                'ALTER TABLE "user" ADD COLUMN language_code VARCHAR(16)'
            ))

        if 'voting' in table_names:
            if 'message_id' not in voting_columns:
                connection.execute(text(
                    'ALTER TABLE voting ADD COLUMN message_id BIGINT'
                ))
            # Keep only the newest ACTIVE voting per schedule
            connection.execute(text(
                "UPDATE voting SET state = 'CLOSED' WHERE state = 'ACTIVE' AND id NOT IN ("
                "  SELECT MAX(id) FROM voting WHERE state = 'ACTIVE' GROUP BY game_schedule_id"
                ")"
            ))
            connection.execute(text(
                'CREATE UNIQUE INDEX IF NOT EXISTS uq_voting_active_schedule '
                "ON voting (game_schedule_id) WHERE state = 'ACTIVE'"
            ))

        if 'voting_player' in table_names:
            connection.execute(text(
                'DELETE FROM voting_player WHERE id NOT IN ('
                '  SELECT MIN(id) FROM voting_player GROUP BY voting_id, player_id'
                ')'
            ))
            connection.execute(text(
                'CREATE UNIQUE INDEX IF NOT EXISTS uq_voting_player_voting_user '
                'ON voting_player (voting_id, player_id)'
            ))
            connection.execute(text(
                'CREATE INDEX IF NOT EXISTS ix_voting_player_voting_created '
                'ON voting_player (voting_id, created_at)'
            ))


def get_telegram_client():
    return current_app.extensions['telegram']


def get_task_runner():
    return current_app.extensions['task_runner']


def create_app(config_name='development'):
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    _configure_logging(app.config.get('LOG_LEVEL'))

    allowed_origins = _parse_allowed_origins(app.config.get('CORS_ALLOWED_ORIGINS', '*'))
    if str(config_name).strip().lower() == 'production':
        secret_key = str(app.config.get('SECRET_KEY') or '').strip()
        if not secret_key or secret_key == 'dev-secret-key-change-in-prod':
            raise RuntimeError('SECRET_KEY must be set to a non-default value in production')
        if allowed_origins == '*':
            raise RuntimeError('CORS_ALLOWED_ORIGINS must be explicitly set in production')
        if not str(app.config.get('TELEGRAM_BOT_TOKEN') or '').strip():
            raise RuntimeError('TELEGRAM_BOT_TOKEN must be set in production')

    db.init_app(app)
    socketio.init_app(
        app,
        cors_allowed_origins=allowed_origins,
        async_mode=app.config.get('SOCKETIO_ASYNC_MODE', 'threading'),
    )
    CORS(app, resources={r'/api/*': {'origins': allowed_origins}})

    from volleyball_rating.telegram import TelegramClient
    from volleyball_rating.tasks import DelayedTaskRunner

    app.extensions['telegram'] = TelegramClient(
        app.config.get('TELEGRAM_BOT_TOKEN', ''),
        api_url=app.config.get('TELEGRAM_API_URL'),
        timeout=app.config.get('TELEGRAM_TIMEOUT_SECONDS', 10.0),
    )
    app.extensions['task_runner'] = DelayedTaskRunner()

    from volleyball_rating.routes.auth import auth_bp
    from volleyball_rating.routes.bot import bot_bp
    from volleyball_rating.routes.cron import cron_bp
    from volleyball_rating.routes.ratings import ratings_bp
    from volleyball_rating.routes.schedules import schedules_bp
    from volleyball_rating.routes.scores import scores_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(bot_bp, url_prefix='/api/bot')
    app.register_blueprint(cron_bp, url_prefix='/api/cron')
    app.register_blueprint(ratings_bp, url_prefix='/api')
    app.register_blueprint(schedules_bp, url_prefix='/api')
    app.register_blueprint(scores_bp, url_prefix='/api/scores')

    @app.errorhandler(405)
    def _method_not_allowed(_err):
        return jsonify({'error': 'Method not allowed'}), 405

    with app.app_context():
        from volleyball_rating import models  # noqa: F401
        db.create_all()
        _run_lightweight_migrations()

    return app
