"""Time-driven voting triggers: open polls every minute, close them daily."""
import hmac
import logging

from flask import Blueprint, request, jsonify, current_app
from volleyball_rating.app import get_task_runner, get_telegram_client
from volleyball_rating.auth_utils import normalize_bearer_token
from volleyball_rating.services.voting import VotingManager
from volleyball_rating.store import VotingStore
from volleyball_rating.telegram import TelegramError
from volleyball_rating.time_utils import local_now

logger = logging.getLogger(__name__)

cron_bp = Blueprint('cron', __name__)


def _cron_authorized():
    secret = str(current_app.config.get('CRON_SECRET') or '')
    if not secret:
        return True
    provided = normalize_bearer_token(request.headers.get('Authorization', ''))
    return hmac.compare_digest(secret, provided)


def _voting_manager():
    return VotingManager(
        VotingStore(),
        get_telegram_client(),
        get_task_runner(),
        chat_id=current_app.config.get('CHAT_ID'),
        pin_delay_seconds=current_app.config.get('POLL_PIN_DELAY_SECONDS', 5.0),
    )


@cron_bp.route('/voting/post', methods=['GET'])
def post_voting():
    """Open the voting of a schedule due this minute."""
    if not _cron_authorized():
        return jsonify({'error': 'Unauthorized'}), 401

    now = local_now(current_app.config.get('TIMEZONE'))
    try:
        voting = _voting_manager().open_due_voting(now)
    except TelegramError as exc:
        logger.error('Could not post voting poll: %s', exc)
        return jsonify({'error': 'Failed to post poll'}), 502

    return jsonify({'voting': voting.to_dict() if voting else None})


@cron_bp.route('/voting/notify', methods=['GET'])
def notify_voting():
    """Announce the final roster of today's games and close their votings."""
    if not _cron_authorized():
        return jsonify({'error': 'Unauthorized'}), 401

    now = local_now(current_app.config.get('TIMEZONE'))
    closed = _voting_manager().close_due_votings(now)
    return jsonify({'closed': closed})
