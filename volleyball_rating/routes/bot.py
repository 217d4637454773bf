"""Telegram webhook."""
import hmac
import logging

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError
from volleyball_rating.app import db, get_telegram_client
from volleyball_rating.services.bot_updates import dispatch_update

logger = logging.getLogger(__name__)

bot_bp = Blueprint('bot', __name__)


def _secret_token_matches():
    expected = str(current_app.config.get('TELEGRAM_WEBHOOK_SECRET') or '')
    if not expected:
        return True
    provided = str(request.headers.get('X-Telegram-Bot-Api-Secret-Token') or '')
    return hmac.compare_digest(expected, provided)


@bot_bp.route('/webhook', methods=['POST'])
def webhook():
    if not _secret_token_matches():
        return jsonify({'error': 'Invalid secret token'}), 403

    update = request.get_json(silent=True)
    if not isinstance(update, dict):
        logger.warning('Ignoring non-JSON webhook body')
        return 'ok', 200

    try:
        outcome = dispatch_update(update, get_telegram_client(), current_app.config)
    except SQLAlchemyError:
        # 5xx makes Telegram deliver the update again
        db.session.rollback()
        logger.exception('Failed to store update %s', update.get('update_id'))
        return jsonify({'error': 'Storage error'}), 500

    logger.debug('Update %s handled: %s', update.get('update_id'), outcome)
    return 'ok', 200
