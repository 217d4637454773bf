import hashlib
import hmac
import json
import time
from functools import wraps
from urllib.parse import parse_qsl

from flask import request, jsonify, current_app
import jwt
from volleyball_rating.app import db
from volleyball_rating.models import User


def generate_token(user_id):
    """Generate a JWT token for a user."""
    from datetime import datetime, timedelta, timezone
    payload = {
        'user_id': user_id,
        'exp': datetime.now(timezone.utc) + timedelta(
            hours=current_app.config.get('JWT_EXPIRATION_HOURS', 24)
        ),
    }
    return jwt.encode(payload, current_app.config['SECRET_KEY'], algorithm='HS256')


def normalize_bearer_token(raw_token):
    token = str(raw_token or '').strip()
    if token.startswith('Bearer '):
        token = token.split(' ', 1)[1].strip()
    return token


def _decode_user_from_token(token):
    normalized = normalize_bearer_token(token)
    if not normalized:
        return None, 'Authentication required'
    try:
        payload = jwt.decode(
            normalized, current_app.config['SECRET_KEY'], algorithms=['HS256']
        )
        user = db.session.get(User, payload['user_id'])
        if not user:
            return None, 'User not found'
        return user, None
    except jwt.ExpiredSignatureError:
        return None, 'Token expired'
    except jwt.InvalidTokenError:
        return None, 'Invalid token'


def init_data_hash(data_check_string, bot_token):
    """Mini App signature: HMAC(HMAC('WebAppData', token), data_check_string)."""
    secret = hmac.new(b'WebAppData', bot_token.encode('utf-8'), hashlib.sha256).digest()
    return hmac.new(secret, data_check_string.encode('utf-8'), hashlib.sha256).hexdigest()


def verify_init_data(init_data, bot_token, max_age_seconds=None, now=None):
    """Validate Telegram Mini App ``initData``.

    Returns (telegram_user_dict, None) on success, (None, error) otherwise.
    """
    if not init_data or not bot_token:
        return None, 'Missing init data'
    fields = dict(parse_qsl(str(init_data), keep_blank_values=True))
    received_hash = fields.pop('hash', '')
    if not received_hash:
        return None, 'Missing init data hash'

    data_check_string = '\n'.join(f'{key}={fields[key]}' for key in sorted(fields))
    expected = init_data_hash(data_check_string, bot_token)
    if not hmac.compare_digest(expected, received_hash):
        return None, 'Invalid init data signature'

    if max_age_seconds:
        try:
            auth_date = int(fields.get('auth_date', 0))
        except (TypeError, ValueError):
            return None, 'Invalid auth date'
        current = now if now is not None else time.time()
        if current - auth_date > max_age_seconds:
            return None, 'Init data expired'

    try:
        user = json.loads(fields.get('user') or '')
    except ValueError:
        return None, 'Invalid user payload'
    if not isinstance(user, dict) or 'id' not in user:
        return None, 'Invalid user payload'
    return user, None


def login_required(f):
    """Decorator to require authentication on a route."""
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get('Authorization', '')
        token = normalize_bearer_token(auth_header)
        user, error = _decode_user_from_token(token)
        if error:
            return jsonify({'error': error}), 401
        request.current_user = user
        return f(*args, **kwargs)
    return decorated


def admin_required(f):
    """Decorator to require an authenticated admin user on a route."""
    @wraps(f)
    @login_required
    def decorated(*args, **kwargs):
        if not getattr(request.current_user, 'admin', False):
            return jsonify({'error': 'Admin access required'}), 403
        return f(*args, **kwargs)
    return decorated
