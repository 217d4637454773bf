"""Voting lifecycle: open a poll for a due schedule, close it on game day.

A voting is ACTIVE from the moment its poll is posted until the game day, when
the final roster is announced and the voting becomes CLOSED for good.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from volleyball_rating.app import db
from volleyball_rating.models import VotingState
from volleyball_rating.services import notifications
from volleyball_rating.services.schedule import compute_game_time, find_schedule_to_start_voting
from volleyball_rating.telegram import TelegramError
from volleyball_rating.time_utils import is_same_day

logger = logging.getLogger(__name__)


class VotingManager:
    def __init__(self, store, messenger, task_runner, chat_id, pin_delay_seconds=5.0):
        self.store = store
        self.messenger = messenger
        self.task_runner = task_runner
        self.chat_id = chat_id
        self.pin_delay_seconds = pin_delay_seconds

    def open_due_voting(self, now):
        """Open the voting of the first schedule due at ``now``, if any."""
        schedules = self.store.active_schedules()
        active_by_schedule = {
            voting.game_schedule_id: voting for voting in self.store.active_votings()
        }
        schedule = find_schedule_to_start_voting(now, schedules, active_by_schedule)
        if schedule is None:
            logger.info('No game schedule due for voting at %s', now.isoformat(timespec='minutes'))
            return None
        logger.info('Game schedule %s is due for voting', schedule.id)
        return self.open_voting(schedule, now)

    def open_voting(self, schedule, now):
        """Post the poll, queue the pin, then record the ACTIVE voting.

        A failed poll send raises TelegramError and nothing is recorded. If the
        insert fails after the poll went out, the poll is left untracked.
        """
        game_time = compute_game_time(now, schedule)
        location = self.store.get_location(schedule.location_id)
        question = notifications.poll_question(schedule, location, game_time)

        message = self.messenger.send_poll(
            self.chat_id, question, notifications.POLL_OPTIONS, is_anonymous=False,
        )
        message_id = message['message_id']
        poll_id = message['poll']['id']

        self.task_runner.schedule(
            self.pin_delay_seconds, self._pin_poll, self.chat_id, message_id,
            name=f'pin_poll_{poll_id}',
        )

        try:
            voting = self.store.create_voting(
                schedule_id=schedule.id,
                poll_id=poll_id,
                chat_id=self.chat_id,
                game_time=game_time,
                message_id=message_id,
            )
        except SQLAlchemyError:
            logger.exception(
                'Poll %s was posted but its voting for schedule %s could not be saved',
                poll_id, schedule.id,
            )
            raise
        logger.info('Opened voting %s for schedule %s (game at %s)',
                    voting.id, schedule.id, game_time.isoformat())
        return voting

    def _pin_poll(self, chat_id, message_id):
        self.messenger.pin_chat_message(chat_id, message_id)

    def close_due_votings(self, now):
        """Announce and close every ACTIVE voting whose game is today.

        Each voting is handled on its own; a failure is logged and does not
        stop the others. Returns the ids of the votings that were closed.
        """
        due = [v for v in self.store.active_votings() if is_same_day(now, v.game_time)]
        closed = []
        for voting in due:
            try:
                if self.notify_and_close(voting):
                    closed.append(voting.id)
            except SQLAlchemyError:
                db.session.rollback()
                logger.exception('Failed to close voting %s', voting.id)
        return closed

    def notify_and_close(self, voting):
        if voting.state != VotingState.ACTIVE:
            return False
        schedule = self.store.get_schedule(voting.game_schedule_id)
        if schedule is None:
            logger.warning('Schedule %s of voting %s not found', voting.game_schedule_id, voting.id)
            return False

        roster = self.store.voting_players(voting.id)[:schedule.players_count]
        users = self.store.users_by_ids([entry.player_id for entry in roster])
        try:
            self.messenger.send_message(voting.chat_id, notifications.roster_message(voting, users))
        except TelegramError:
            logger.exception('Failed to announce roster of voting %s', voting.id)

        self.store.close_voting(voting)
        logger.info('Closed voting %s with %d player(s)', voting.id, len(users))
        return True
