from datetime import datetime, timedelta

import pytest
from volleyball_rating.app import create_app, db
from volleyball_rating.telegram import TelegramError


class FakeTelegram:
    """Records Bot API calls; methods listed in ``failing`` raise TelegramError."""

    def __init__(self):
        self.calls = []
        self.failing = set()
        self.updates = []
        self._next_message_id = 100

    def _record(self, method, **kwargs):
        if method in self.failing:
            raise TelegramError(method, 'simulated failure')
        self.calls.append((method, kwargs))

    def send_poll(self, chat_id, question, options, is_anonymous=False):
        self._record('send_poll', chat_id=chat_id, question=question,
                     options=list(options), is_anonymous=is_anonymous)
        self._next_message_id += 1
        return {'message_id': self._next_message_id, 'poll': {'id': f'poll-{self._next_message_id}'}}

    def pin_chat_message(self, chat_id, message_id, disable_notification=False):
        self._record('pin_chat_message', chat_id=chat_id, message_id=message_id)
        return True

    def send_message(self, chat_id, text, reply_markup=None):
        self._record('send_message', chat_id=chat_id, text=text, reply_markup=reply_markup)
        return {'message_id': 1}

    def answer_inline_query(self, inline_query_id, results, cache_time=0):
        self._record('answer_inline_query', inline_query_id=inline_query_id, results=results)
        return True

    def get_updates(self, offset=None, timeout=30):
        self._record('get_updates', offset=offset, timeout=timeout)
        batch, self.updates = self.updates, []
        return batch

    def delete_webhook(self, drop_pending_updates=False):
        self._record('delete_webhook', drop_pending_updates=drop_pending_updates)
        return True

    def calls_to(self, method):
        return [kwargs for name, kwargs in self.calls if name == method]

    @property
    def messages(self):
        return [kwargs['text'] for kwargs in self.calls_to('send_message')]


class RecordingTaskRunner:
    """Collects scheduled tasks; tests run them explicitly."""

    def __init__(self):
        self.scheduled = []

    def schedule(self, delay_seconds, fn, *args, name=None, **kwargs):
        self.scheduled.append((delay_seconds, fn, args, kwargs))

    def run_pending(self):
        pending, self.scheduled = self.scheduled, []
        for _delay, fn, args, kwargs in pending:
            fn(*args, **kwargs)

    def cancel_all(self):
        count = len(self.scheduled)
        self.scheduled = []
        return count


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def telegram(app):
    fake = FakeTelegram()
    app.extensions['telegram'] = fake
    return fake


@pytest.fixture
def task_runner(app):
    runner = RecordingTaskRunner()
    app.extensions['task_runner'] = runner
    return runner


@pytest.fixture
def make_user(app):
    from volleyball_rating.models import User

    def _make(user_id, username=..., first_name=None, admin=False):
        user = User(
            id=user_id,
            username=f'player{user_id}' if username is ... else username,
            first_name=first_name or f'Player{user_id}',
            admin=admin,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def sample_location(app):
    from volleyball_rating.models import GameLocation
    location = GameLocation(name='Olimp', address='1 Sport St', google_link='https://maps.example/olimp')
    db.session.add(location)
    db.session.commit()
    return location


@pytest.fixture
def make_schedule(app, sample_location):
    from volleyball_rating.models import GameSchedule

    def _make(**overrides):
        data = {
            'day_of_week': 'MONDAY',
            'time': '20:30:00',
            'duration_minutes': 120,
            'location_id': sample_location.id,
            'voting_in_advance_days': 2,
            'voting_time': '18:00:00',
            'players_count': 14,
            'state': 'ACTIVE',
        }
        data.update(overrides)
        schedule = GameSchedule(**data)
        db.session.add(schedule)
        db.session.commit()
        return schedule
    return _make


@pytest.fixture
def make_voting(app):
    from volleyball_rating.models import Voting

    def _make(schedule, poll_id='poll-1', state='ACTIVE', game_time=None, chat_id='-1001234567890'):
        voting = Voting(
            game_schedule_id=schedule.id if hasattr(schedule, 'id') else schedule,
            poll_id=poll_id,
            chat_id=chat_id,
            game_time=game_time or datetime(2026, 10, 19, 20, 30),
            state=state,
        )
        db.session.add(voting)
        db.session.commit()
        return voting
    return _make


@pytest.fixture
def add_roster(app):
    """Put players on a voting's roster in the given join order."""
    from volleyball_rating.models import VotingPlayer

    def _add(voting, player_ids):
        base = datetime(2026, 10, 17, 18, 0)
        for offset, player_id in enumerate(player_ids):
            db.session.add(VotingPlayer(
                voting_id=voting.id, player_id=player_id,
                created_at=base + timedelta(seconds=offset),
            ))
        db.session.commit()
    return _add


@pytest.fixture
def auth_headers(app):
    from volleyball_rating.auth_utils import generate_token

    def _headers(user):
        token = generate_token(user.id)
        return {'Authorization': f'Bearer {token}', 'Content-Type': 'application/json'}
    return _headers
