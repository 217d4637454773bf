"""Route a Telegram update to the handler for its kind."""
import logging

from volleyball_rating.services import notifications
from volleyball_rating.services.poll_answers import PollAnswerHandler
from volleyball_rating.store import VotingStore
from volleyball_rating.telegram import TelegramError
from volleyball_rating.time_utils import utcnow_naive

logger = logging.getLogger(__name__)


def _handle_message(message, messenger, config):
    text = str(message.get('text') or '')
    chat_id = (message.get('chat') or {}).get('id')
    if chat_id is None:
        return 'ignored'
    if str(chat_id) == str(config.get('CHAT_ID')):
        return 'ignored'
    if not text.startswith('/start'):
        return 'ignored'

    logger.info('Received /start from chat %s', chat_id)
    reply_text, markup = notifications.start_reply(config.get('APP_URL'))
    try:
        messenger.send_message(chat_id, reply_text, reply_markup=markup)
    except TelegramError:
        logger.exception('Failed to answer /start in chat %s', chat_id)
    return 'start'


def _handle_inline_query(inline_query, messenger, config):
    query_id = inline_query.get('id')
    if not query_id:
        return 'ignored'
    result_id = int(utcnow_naive().timestamp() * 1000)
    results = notifications.inline_launch_results(config.get('BOT_USERNAME'), result_id)
    try:
        messenger.answer_inline_query(query_id, results, cache_time=0)
    except TelegramError:
        logger.exception('Failed to answer inline query %s', query_id)
    return 'inline_query'


def dispatch_update(update, messenger, config, store=None):
    """Handle one update; returns a short label of what was done."""
    if not isinstance(update, dict):
        return 'ignored'

    if update.get('poll_answer') is not None:
        handler = PollAnswerHandler(
            store or VotingStore(), messenger, config.get('MIN_PLAYERS_COUNT', 12),
        )
        return handler.handle(update['poll_answer'])

    message = update.get('message')
    if isinstance(message, dict):
        return _handle_message(message, messenger, config)

    inline_query = update.get('inline_query')
    if isinstance(inline_query, dict):
        return _handle_inline_query(inline_query, messenger, config)

    return 'ignored'
