"""Keep a voting's roster in sync with Telegram poll answers.

The roster is ordered by join time: the first ``players_count`` entries are
starters, the rest are substitutes. Newcomers always join at the end. Once the
voting is CLOSED (game day), roster changes are announced in the chat, and a
starter who leaves is replaced by the first substitute.
"""
import logging

from volleyball_rating.models import VotingState
from volleyball_rating.services import notifications
from volleyball_rating.telegram import TelegramError

logger = logging.getLogger(__name__)

IGNORED = 'ignored'
NOT_FOUND = 'not_found'
JOINED = 'joined'
LEFT = 'left'


def parse_poll_answer(payload):
    """(poll_id, user payload, option_ids) or None when the shape is off."""
    if not isinstance(payload, dict):
        return None
    poll_id = payload.get('poll_id')
    user = payload.get('user')
    option_ids = payload.get('option_ids')
    if not poll_id or not isinstance(user, dict) or not isinstance(option_ids, list):
        return None
    try:
        int(user.get('id'))
    except (TypeError, ValueError):
        return None
    return str(poll_id), user, option_ids


class PollAnswerHandler:
    def __init__(self, store, messenger, min_players_count):
        self.store = store
        self.messenger = messenger
        self.min_players_count = min_players_count

    def handle(self, payload):
        parsed = parse_poll_answer(payload)
        if parsed is None:
            logger.warning('Ignoring malformed poll answer: %r', payload)
            return IGNORED
        poll_id, user_payload, option_ids = parsed
        user_id = int(user_payload['id'])
        voted_to_play = notifications.PLAYING_OPTION_INDEX in option_ids

        voting = self.store.get_voting_by_poll_id(poll_id)
        if voting is None:
            logger.info('Voting for poll %s not found', poll_id)
            return NOT_FOUND
        schedule = self.store.get_schedule(voting.game_schedule_id)
        if schedule is None:
            logger.warning('Schedule %s of voting %s not found', voting.game_schedule_id, voting.id)
            return NOT_FOUND

        voting_players = self.store.voting_players(voting.id)
        game_players = voting_players[:schedule.players_count]
        already_voted = next((p for p in voting_players if p.player_id == user_id), None)
        already_playing = any(p.player_id == user_id for p in game_players)

        if voted_to_play and already_voted is None:
            user = self.store.upsert_telegram_user(user_payload)
            logger.info('Adding user %s to voting %s', user_id, voting.id)
            _entry, created = self.store.add_voting_player(voting.id, user_id)
            if not created:
                return IGNORED
            if voting.state == VotingState.CLOSED:
                self._announce_join(voting.chat_id, user, len(game_players) + 1, schedule.players_count)
            return JOINED

        if not voted_to_play and already_voted is not None:
            user = self.store.get_user(user_id) or self.store.upsert_telegram_user(user_payload)
            logger.info('Removing user %s from voting %s', user_id, voting.id)
            if not self.store.delete_voting_player(already_voted):
                logger.info('User %s already left voting %s', user_id, voting.id)
                return IGNORED
            if already_playing and voting.state == VotingState.CLOSED:
                self._announce_leave(voting.chat_id, user, voting_players, game_players)
            return LEFT

        return IGNORED

    def _announce_join(self, chat_id, user, game_players_after_joining, players_count):
        required = self.min_players_count
        if game_players_after_joining < required:
            text = notifications.one_in_warning(user, required, game_players_after_joining)
        elif game_players_after_joining == required:
            text = notifications.one_in_safe(user)
        elif game_players_after_joining <= players_count:
            text = notifications.one_in(user)
        else:
            return
        self._send(chat_id, text)

    def _announce_leave(self, chat_id, user, voting_players, game_players):
        required = self.min_players_count
        game_players_after_leaving = len(game_players) - 1
        voting_players_after_leaving = len(voting_players) - 1
        if game_players_after_leaving < required:
            text = notifications.one_out_warning(user, required, game_players_after_leaving)
        elif game_players_after_leaving < voting_players_after_leaving:
            # first substitute of the roster as it was before leaving
            substitute = voting_players[len(game_players)]
            user_in = self.store.get_user(substitute.player_id)
            if user_in is None:
                logger.warning('Substitute %s not found', substitute.player_id)
                text = notifications.one_out(user)
            else:
                text = notifications.one_out_one_in(user, user_in)
        else:
            text = notifications.one_out(user)
        self._send(chat_id, text)

    def _send(self, chat_id, text):
        try:
            self.messenger.send_message(chat_id, text)
        except TelegramError:
            logger.exception('Failed to send roster notice to chat %s', chat_id)
