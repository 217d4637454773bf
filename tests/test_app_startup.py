"""Tests for app startup helpers, production guards and schema upgrades."""
import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from volleyball_rating.app import _parse_allowed_origins, _run_lightweight_migrations, create_app, db
from volleyball_rating.config import ProductionConfig, _normalize_database_url
from volleyball_rating.models import Voting, VotingPlayer
from volleyball_rating.tasks import DelayedTaskRunner


def test_parse_allowed_origins():
    assert _parse_allowed_origins('') == '*'
    assert _parse_allowed_origins('*') == '*'
    assert _parse_allowed_origins('https://a.example.com, https://b.example.com') == [
        'https://a.example.com', 'https://b.example.com',
    ]
    assert _parse_allowed_origins(['https://a.example.com', '']) == ['https://a.example.com']


def test_normalize_database_url():
    assert _normalize_database_url('postgres://u:p@h/db') == 'postgresql://u:p@h/db'
    assert _normalize_database_url('sqlite:///x.db') == 'sqlite:///x.db'


def test_production_requires_secret_key(monkeypatch):
    monkeypatch.setattr(ProductionConfig, 'SECRET_KEY', 'dev-secret-key-change-in-prod')
    with pytest.raises(RuntimeError, match='SECRET_KEY'):
        create_app('production')


def test_production_requires_explicit_origins(monkeypatch):
    monkeypatch.setattr(ProductionConfig, 'SECRET_KEY', 'a-real-secret')
    monkeypatch.setattr(ProductionConfig, 'CORS_ALLOWED_ORIGINS', '*')
    with pytest.raises(RuntimeError, match='CORS_ALLOWED_ORIGINS'):
        create_app('production')


def test_production_requires_bot_token(monkeypatch):
    monkeypatch.setattr(ProductionConfig, 'SECRET_KEY', 'a-real-secret')
    monkeypatch.setattr(ProductionConfig, 'CORS_ALLOWED_ORIGINS', 'https://app.example.com')
    monkeypatch.setattr(ProductionConfig, 'TELEGRAM_BOT_TOKEN', '')
    with pytest.raises(RuntimeError, match='TELEGRAM_BOT_TOKEN'):
        create_app('production')


def test_migrations_are_idempotent(app):
    _run_lightweight_migrations()
    _run_lightweight_migrations()


def test_migrations_close_duplicate_active_votings(app, make_schedule):
    schedule = make_schedule()
    db.session.execute(text('DROP INDEX uq_voting_active_schedule'))
    for poll_id in ('old', 'new'):
        db.session.execute(text(
            "INSERT INTO voting (game_schedule_id, poll_id, chat_id, game_time, state) "
            "VALUES (:schedule_id, :poll_id, '-100', '2026-10-19 20:30:00', 'ACTIVE')"
        ), {'schedule_id': schedule.id, 'poll_id': poll_id})
    db.session.commit()

    _run_lightweight_migrations()
    db.session.expire_all()

    states = {v.poll_id: v.state for v in Voting.query.all()}
    assert states == {'old': 'CLOSED', 'new': 'ACTIVE'}


def test_migrations_dedupe_legacy_roster_table(app, make_schedule, make_voting, make_user):
    voting = make_voting(make_schedule())
    make_user(1)
    db.session.execute(text('DROP TABLE voting_player'))
    db.session.execute(text(
        'CREATE TABLE voting_player (id INTEGER PRIMARY KEY, voting_id INTEGER NOT NULL, '
        'player_id BIGINT NOT NULL, created_at DATETIME NOT NULL)'
    ))
    for _ in range(2):
        db.session.execute(text(
            "INSERT INTO voting_player (voting_id, player_id, created_at) "
            "VALUES (:voting_id, 1, '2026-10-17 18:00:00')"
        ), {'voting_id': voting.id})
    db.session.commit()

    _run_lightweight_migrations()

    assert VotingPlayer.query.filter_by(voting_id=voting.id).count() == 1
    with pytest.raises(IntegrityError):
        db.session.add(VotingPlayer(voting_id=voting.id, player_id=1))
        db.session.commit()
    db.session.rollback()


def test_create_app_leaves_exit_hooks_to_entry_points(monkeypatch):
    registered = []
    monkeypatch.setattr('atexit.register', lambda fn, *args, **kwargs: registered.append(fn))

    create_app('testing')

    assert not [fn for fn in registered if isinstance(getattr(fn, '__self__', None), DelayedTaskRunner)]
