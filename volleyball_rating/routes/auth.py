from flask import Blueprint, request, jsonify, current_app
from volleyball_rating.app import db
from volleyball_rating.auth_utils import generate_token, login_required, verify_init_data
from volleyball_rating.store import VotingStore
from volleyball_rating.time_utils import utcnow_naive

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/telegram', methods=['POST'])
def telegram_login():
    """Exchange Mini App initData for an API token."""
    data = request.get_json(silent=True) or {}
    init_data = data.get('init_data') or data.get('initData')
    if not init_data:
        return jsonify({'error': 'init_data is required'}), 400

    telegram_user, error = verify_init_data(
        init_data,
        current_app.config.get('TELEGRAM_BOT_TOKEN', ''),
        max_age_seconds=current_app.config.get('INIT_DATA_MAX_AGE_SECONDS'),
    )
    if error:
        return jsonify({'error': error}), 401

    user = VotingStore().upsert_telegram_user(telegram_user, commit=False)
    if user is None:
        return jsonify({'error': 'Invalid user payload'}), 401
    user.last_auth = utcnow_naive()
    db.session.commit()
    return jsonify({'token': generate_token(user.id), 'user': user.to_dict()})


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify({'user': request.current_user.to_dict()})
