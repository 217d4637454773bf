"""Live score of the day's game, built from rally points."""
from datetime import date

from flask import Blueprint, request, jsonify, current_app
from volleyball_rating.app import db, socketio
from volleyball_rating.auth_utils import login_required
from volleyball_rating.models import Point, User
from volleyball_rating.services.scores import (
    POINT_TYPES, SIDES, calculate_scores, day_statistics, player_statistics,
)
from volleyball_rating.time_utils import local_day_bounds_utc, local_now, utc_to_local

scores_bp = Blueprint('scores', __name__)

_RECENT_POINTS_LIMIT = 1000


def _tz():
    return current_app.config.get('TIMEZONE')


def _today():
    return local_now(_tz()).date()


def _points_for_day(day):
    start, end = local_day_bounds_utc(day, _tz())
    return (
        Point.query
        .filter(Point.created_at >= start, Point.created_at < end)
        .order_by(Point.created_at.asc(), Point.id.asc())
        .all()
    )


def _scores_payload(day):
    return calculate_scores(_points_for_day(day), local_now(_tz()))


def _parse_day(raw_value):
    try:
        return date.fromisoformat(str(raw_value))
    except ValueError:
        return None


def _broadcast_scores():
    socketio.emit('scores_update', _scores_payload(_today()))


@scores_bp.route('/today', methods=['GET'])
def get_today_scores():
    return jsonify(_scores_payload(_today()))


@scores_bp.route('/dates', methods=['GET'])
def get_available_dates():
    """Days with recorded points, newest first; today is always listed."""
    rows = (
        db.session.query(Point.created_at)
        .order_by(Point.created_at.desc())
        .limit(_RECENT_POINTS_LIMIT)
        .all()
    )
    days = {_today().isoformat()}
    days.update(utc_to_local(row.created_at, _tz()).date().isoformat() for row in rows)
    return jsonify({'dates': sorted(days, reverse=True)})


@scores_bp.route('/<day>', methods=['GET'])
def get_scores_for_day(day):
    parsed = _parse_day(day)
    if parsed is None:
        return jsonify({'error': 'Invalid date, expected YYYY-MM-DD'}), 400
    return jsonify(_scores_payload(parsed))


@scores_bp.route('/<day>/statistics', methods=['GET'])
def get_day_statistics(day):
    parsed = _parse_day(day)
    if parsed is None:
        return jsonify({'error': 'Invalid date, expected YYYY-MM-DD'}), 400
    points = _points_for_day(parsed)
    players = player_statistics(points)
    users = {
        user.id: user
        for user in User.query.filter(User.id.in_([row['player_id'] for row in players])).all()
    } if players else {}
    for row in players:
        user = users.get(row['player_id'])
        row['player'] = user.public_dict() if user else None
    return jsonify({'day': day_statistics(points), 'players': players})


@scores_bp.route('/points', methods=['POST'])
@login_required
def add_point():
    data = request.get_json(silent=True) or {}
    winner = str(data.get('winner') or '').strip().lower()
    if winner not in SIDES:
        return jsonify({'error': 'winner must be left or right'}), 400
    point_type = str(data.get('type') or 'unspecified').strip().lower()
    if point_type not in POINT_TYPES:
        return jsonify({'error': 'Invalid point type'}), 400

    player_id = data.get('player_id')
    if player_id is not None and not db.session.get(User, player_id):
        return jsonify({'error': 'Player not found'}), 404

    point = Point(winner=winner, type=point_type, player_id=player_id)
    db.session.add(point)
    db.session.commit()
    _broadcast_scores()
    return jsonify({'point': point.to_dict()}), 201


@scores_bp.route('/points/last', methods=['DELETE'])
@login_required
def undo_last_point():
    """Remove today's most recent point."""
    points = _points_for_day(_today())
    if not points:
        return jsonify({'error': 'No points recorded today'}), 404
    last = points[-1]
    db.session.delete(last)
    db.session.commit()
    _broadcast_scores()
    return jsonify({'message': 'Point removed', 'point_id': last.id})
