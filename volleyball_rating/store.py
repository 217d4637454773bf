"""Keyed CRUD over the voting tables, injected into the voting services."""
import logging

from sqlalchemy.exc import IntegrityError
from volleyball_rating.app import db
from volleyball_rating.models import (
    GameLocation, GameSchedule, ScheduleState, User, Voting, VotingPlayer,
    VotingState,
)
from volleyball_rating.time_utils import utcnow_naive

logger = logging.getLogger(__name__)


class VotingStore:
    def __init__(self, session=None):
        self.session = session or db.session

    # Schedules and locations

    def active_schedules(self):
        return (
            GameSchedule.query
            .filter_by(state=ScheduleState.ACTIVE)
            .order_by(GameSchedule.id.asc())
            .all()
        )

    def get_schedule(self, schedule_id):
        return self.session.get(GameSchedule, schedule_id)

    def get_location(self, location_id):
        if location_id is None:
            return None
        return self.session.get(GameLocation, location_id)

    def locations_by_id(self):
        return {location.id: location for location in GameLocation.query.all()}

    # Votings

    def active_votings(self):
        return (
            Voting.query
            .filter_by(state=VotingState.ACTIVE)
            .order_by(Voting.id.asc())
            .all()
        )

    def get_voting_by_poll_id(self, poll_id):
        if not poll_id:
            return None
        return Voting.query.filter_by(poll_id=str(poll_id)).first()

    def create_voting(self, schedule_id, poll_id, chat_id, game_time, message_id=None):
        voting = Voting(
            game_schedule_id=schedule_id,
            poll_id=str(poll_id),
            chat_id=str(chat_id),
            message_id=message_id,
            game_time=game_time,
            state=VotingState.ACTIVE,
        )
        self.session.add(voting)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return voting

    def close_voting(self, voting):
        voting.state = VotingState.CLOSED
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return voting

    # Roster

    def voting_players(self, voting_id):
        """Roster in join order; ties on created_at fall back to insert order."""
        return (
            VotingPlayer.query
            .filter_by(voting_id=voting_id)
            .order_by(VotingPlayer.created_at.asc(), VotingPlayer.id.asc())
            .all()
        )

    def add_voting_player(self, voting_id, player_id):
        """Append a player; returns (entry, created).

        A concurrent duplicate resolves to the existing row with created False.
        """
        entry = VotingPlayer(voting_id=voting_id, player_id=player_id, created_at=utcnow_naive())
        self.session.add(entry)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            existing = VotingPlayer.query.filter_by(
                voting_id=voting_id, player_id=player_id
            ).first()
            if existing is None:
                raise
            logger.info('Player %s already in roster of voting %s', player_id, voting_id)
            return existing, False
        except Exception:
            self.session.rollback()
            raise
        return entry, True

    def delete_voting_player(self, entry):
        """Remove a roster entry; returns the number of rows deleted (0 or 1)."""
        deleted = VotingPlayer.query.filter_by(id=entry.id).delete()
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return deleted

    # Users

    def get_user(self, user_id):
        if user_id is None:
            return None
        return self.session.get(User, user_id)

    def users_by_ids(self, user_ids):
        """Users in the order of ``user_ids``; unknown ids are skipped."""
        ids = list(user_ids)
        if not ids:
            return []
        found = {user.id: user for user in User.query.filter(User.id.in_(ids)).all()}
        return [found[user_id] for user_id in ids if user_id in found]

    def upsert_telegram_user(self, payload, commit=True):
        """Create or refresh a user from a Telegram ``User`` object."""
        try:
            user_id = int(payload.get('id'))
        except (AttributeError, TypeError, ValueError):
            return None

        user = self.session.get(User, user_id)
        if user is None:
            user = User(id=user_id)
            self.session.add(user)
        user.first_name = str(payload.get('first_name') or user.first_name or '')
        if 'last_name' in payload:
            user.last_name = payload.get('last_name') or None
        if 'username' in payload:
            user.username = payload.get('username') or None
        if 'photo_url' in payload:
            user.photo_url = payload.get('photo_url') or None
        if 'language_code' in payload:
            user.language_code = payload.get('language_code') or None
        if commit:
            try:
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise
        return user
