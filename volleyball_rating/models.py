from sqlalchemy import text
from volleyball_rating.app import db
from volleyball_rating.time_utils import utcnow_naive


class DayOfWeek:
    MONDAY = 'MONDAY'
    TUESDAY = 'TUESDAY'
    WEDNESDAY = 'WEDNESDAY'
    THURSDAY = 'THURSDAY'
    FRIDAY = 'FRIDAY'
    SATURDAY = 'SATURDAY'
    SUNDAY = 'SUNDAY'

    # Sunday-based numbering, as used by the voting-day arithmetic.
    NUMBERS = {
        SUNDAY: 0, MONDAY: 1, TUESDAY: 2, WEDNESDAY: 3,
        THURSDAY: 4, FRIDAY: 5, SATURDAY: 6,
    }
    ALL = tuple(NUMBERS)

    @classmethod
    def to_number(cls, day):
        return cls.NUMBERS[str(day).strip().upper()]

    @staticmethod
    def of(moment):
        """Sunday-based day number of a datetime/date."""
        return (moment.weekday() + 1) % 7


class ScheduleState:
    ACTIVE = 'ACTIVE'
    INACTIVE = 'INACTIVE'
    ALL = (ACTIVE, INACTIVE)


class VotingState:
    ACTIVE = 'ACTIVE'
    CLOSED = 'CLOSED'


class User(db.Model):
    """Telegram user; the primary key is the Telegram user id."""
    id = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    first_name = db.Column(db.String(255), nullable=False, default='')
    last_name = db.Column(db.String(255), nullable=True)
    username = db.Column(db.String(255), nullable=True)
    photo_url = db.Column(db.String(500), nullable=True)
    language_code = db.Column(db.String(16), nullable=True)
    admin = db.Column(db.Boolean, default=False, nullable=False)
    chat_id = db.Column(db.BigInteger, nullable=True)
    last_auth = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())
    updated_at = db.Column(db.DateTime, default=lambda: utcnow_naive(),
                           onupdate=lambda: utcnow_naive())

    def public_dict(self):
        return {
            'id': self.id, 'first_name': self.first_name,
            'last_name': self.last_name, 'username': self.username,
            'photo_url': self.photo_url,
        }

    def to_dict(self):
        data = self.public_dict()
        data.update({
            'admin': bool(self.admin),
            'language_code': self.language_code,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        })
        return data


class GameLocation(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    address = db.Column(db.String(500), default='')
    google_link = db.Column(db.String(500), default='')
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())

    def to_dict(self):
        return {
            'id': self.id, 'name': self.name, 'address': self.address,
            'google_link': self.google_link,
        }


class GameSchedule(db.Model):
    """Recurring weekly game template that spawns votings."""
    id = db.Column(db.Integer, primary_key=True)
    day_of_week = db.Column(db.String(10), nullable=False)
    time = db.Column(db.String(8), nullable=False)  # HH:MM:SS
    duration_minutes = db.Column(db.Integer, nullable=False, default=120)
    location_id = db.Column(db.Integer, db.ForeignKey('game_location.id'), nullable=True)
    voting_in_advance_days = db.Column(db.Integer, nullable=False, default=1)
    voting_time = db.Column(db.String(8), nullable=False)  # HH:MM:SS
    players_count = db.Column(db.Integer, nullable=False, default=14)
    state = db.Column(db.String(10), nullable=False, default=ScheduleState.ACTIVE)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())

    location = db.relationship('GameLocation', backref='schedules')

    def to_dict(self):
        return {
            'id': self.id,
            'day_of_week': self.day_of_week,
            'time': self.time,
            'duration_minutes': self.duration_minutes,
            'location_id': self.location_id,
            'voting_in_advance_days': self.voting_in_advance_days,
            'voting_time': self.voting_time,
            'players_count': self.players_count,
            'state': self.state,
            'location': self.location.to_dict() if self.location else None,
        }


class Voting(db.Model):
    """One attendance poll spawned from a schedule. ACTIVE -> CLOSED, once."""
    id = db.Column(db.Integer, primary_key=True)
    game_schedule_id = db.Column(db.Integer, db.ForeignKey('game_schedule.id'), nullable=False)
    poll_id = db.Column(db.String(64), nullable=False, unique=True)
    chat_id = db.Column(db.String(64), nullable=False)
    message_id = db.Column(db.BigInteger, nullable=True)
    game_time = db.Column(db.DateTime, nullable=False)
    state = db.Column(db.String(10), nullable=False, default=VotingState.ACTIVE)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())

    __table_args__ = (
        db.Index(
            'uq_voting_active_schedule', 'game_schedule_id', unique=True,
            sqlite_where=text("state = 'ACTIVE'"),
            postgresql_where=text("state = 'ACTIVE'"),
        ),
        db.Index('ix_voting_state', 'state'),
    )

    schedule = db.relationship('GameSchedule', backref='votings')

    def to_dict(self):
        return {
            'id': self.id,
            'game_schedule_id': self.game_schedule_id,
            'poll_id': self.poll_id,
            'chat_id': self.chat_id,
            'message_id': self.message_id,
            'game_time': self.game_time.isoformat() if self.game_time else None,
            'state': self.state,
        }


class VotingPlayer(db.Model):
    """Roster entry; created_at order decides starters vs substitutes."""
    id = db.Column(db.Integer, primary_key=True)
    voting_id = db.Column(db.Integer, db.ForeignKey('voting.id'), nullable=False)
    player_id = db.Column(db.BigInteger, db.ForeignKey('user.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive(), nullable=False)

    __table_args__ = (
        db.UniqueConstraint('voting_id', 'player_id', name='uq_voting_player_voting_user'),
        db.Index('ix_voting_player_voting_created', 'voting_id', 'created_at'),
    )

    player = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'voting_id': self.voting_id,
            'player_id': self.player_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Vote(db.Model):
    """Pairwise "who plays better" comparison. Append-only."""
    id = db.Column(db.Integer, primary_key=True)
    voter_id = db.Column(db.BigInteger, db.ForeignKey('user.id'), nullable=False)
    player_a = db.Column(db.BigInteger, db.ForeignKey('user.id'), nullable=False)
    player_b = db.Column(db.BigInteger, db.ForeignKey('user.id'), nullable=False)
    winner_id = db.Column(db.BigInteger, nullable=True)  # null = don't know
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())

    __table_args__ = (
        db.Index('ix_vote_voter', 'voter_id'),
    )

    def to_dict(self):
        return {
            'id': self.id, 'voter_id': self.voter_id,
            'player_a': self.player_a, 'player_b': self.player_b,
            'winner_id': self.winner_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Point(db.Model):
    """A single rally won by the left or right team."""
    id = db.Column(db.Integer, primary_key=True)
    winner = db.Column(db.String(5), nullable=False)  # left, right
    type = db.Column(db.String(16), nullable=False, default='unspecified')
    player_id = db.Column(db.BigInteger, db.ForeignKey('user.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive(), nullable=False)

    __table_args__ = (
        db.Index('ix_point_created', 'created_at'),
    )

    def to_dict(self):
        return {
            'id': self.id, 'winner': self.winner, 'type': self.type,
            'player_id': self.player_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
