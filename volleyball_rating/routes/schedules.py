"""Admin management of game locations and recurring schedules."""
from flask import Blueprint, request, jsonify
from volleyball_rating.app import db
from volleyball_rating.auth_utils import admin_required
from volleyball_rating.models import DayOfWeek, GameLocation, GameSchedule, ScheduleState, Voting
from volleyball_rating.time_utils import parse_time_of_day

schedules_bp = Blueprint('schedules', __name__)

_MAX_ADVANCE_DAYS = 6
_MAX_PLAYERS = 100
_MAX_DURATION_MINUTES = 24 * 60


def _normalize_time(raw_value):
    try:
        hour, minute = parse_time_of_day(raw_value)
    except (TypeError, ValueError):
        return None
    return f'{hour:02d}:{minute:02d}:00'


def _bounded_int(raw_value, low, high):
    if isinstance(raw_value, bool):
        return None
    try:
        value = int(raw_value)
    except (TypeError, ValueError):
        return None
    if value < low or value > high:
        return None
    return value


def _apply_schedule_fields(schedule, data, partial=False):
    """Validate and copy request fields; returns an error message or None."""
    if 'day_of_week' in data or not partial:
        day = str(data.get('day_of_week') or '').strip().upper()
        if day not in DayOfWeek.ALL:
            return 'Invalid day_of_week'
        schedule.day_of_week = day

    for field in ('time', 'voting_time'):
        if field in data or not partial:
            normalized = _normalize_time(data.get(field))
            if not normalized:
                return f'Invalid {field}, expected HH:MM'
            setattr(schedule, field, normalized)

    int_fields = (
        ('duration_minutes', 1, _MAX_DURATION_MINUTES),
        ('voting_in_advance_days', 0, _MAX_ADVANCE_DAYS),
        ('players_count', 1, _MAX_PLAYERS),
    )
    for field, low, high in int_fields:
        if field in data or not partial:
            value = _bounded_int(data.get(field), low, high)
            if value is None:
                return f'{field} must be between {low} and {high}'
            setattr(schedule, field, value)

    if 'location_id' in data or not partial:
        location_id = data.get('location_id')
        if location_id is not None and not db.session.get(GameLocation, location_id):
            return 'Location not found'
        schedule.location_id = location_id

    if 'state' in data:
        state = str(data.get('state') or '').strip().upper()
        if state not in ScheduleState.ALL:
            return 'Invalid state'
        schedule.state = state
    return None


@schedules_bp.route('/schedules', methods=['GET'])
def list_schedules():
    schedules = GameSchedule.query.order_by(GameSchedule.id.asc()).all()
    return jsonify({'schedules': [s.to_dict() for s in schedules]})


@schedules_bp.route('/schedules', methods=['POST'])
@admin_required
def create_schedule():
    data = request.get_json(silent=True) or {}
    schedule = GameSchedule(state=ScheduleState.ACTIVE)
    error = _apply_schedule_fields(schedule, data)
    if error:
        return jsonify({'error': error}), 400
    db.session.add(schedule)
    db.session.commit()
    return jsonify({'schedule': schedule.to_dict()}), 201


@schedules_bp.route('/schedules/<int:schedule_id>', methods=['PUT', 'PATCH'])
@admin_required
def update_schedule(schedule_id):
    schedule = db.session.get(GameSchedule, schedule_id)
    if not schedule:
        return jsonify({'error': 'Schedule not found'}), 404
    data = request.get_json(silent=True) or {}
    error = _apply_schedule_fields(schedule, data, partial=True)
    if error:
        db.session.rollback()
        return jsonify({'error': error}), 400
    db.session.commit()
    return jsonify({'schedule': schedule.to_dict()})


@schedules_bp.route('/schedules/<int:schedule_id>', methods=['DELETE'])
@admin_required
def delete_schedule(schedule_id):
    schedule = db.session.get(GameSchedule, schedule_id)
    if not schedule:
        return jsonify({'error': 'Schedule not found'}), 404
    if Voting.query.filter_by(game_schedule_id=schedule_id).first():
        return jsonify({'error': 'Schedule has votings; set it INACTIVE instead'}), 409
    db.session.delete(schedule)
    db.session.commit()
    return jsonify({'message': 'Schedule deleted'})


@schedules_bp.route('/locations', methods=['GET'])
def list_locations():
    locations = GameLocation.query.order_by(GameLocation.name.asc()).all()
    return jsonify({'locations': [loc.to_dict() for loc in locations]})


@schedules_bp.route('/locations', methods=['POST'])
@admin_required
def create_location():
    data = request.get_json(silent=True) or {}
    name = str(data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Name is required'}), 400
    location = GameLocation(
        name=name,
        address=str(data.get('address') or '').strip(),
        google_link=str(data.get('google_link') or '').strip(),
    )
    db.session.add(location)
    db.session.commit()
    return jsonify({'location': location.to_dict()}), 201


@schedules_bp.route('/locations/<int:location_id>', methods=['PUT', 'PATCH'])
@admin_required
def update_location(location_id):
    location = db.session.get(GameLocation, location_id)
    if not location:
        return jsonify({'error': 'Location not found'}), 404
    data = request.get_json(silent=True) or {}
    if 'name' in data:
        name = str(data.get('name') or '').strip()
        if not name:
            return jsonify({'error': 'Name is required'}), 400
        location.name = name
    for field in ('address', 'google_link'):
        if field in data:
            setattr(location, field, str(data.get(field) or '').strip())
    db.session.commit()
    return jsonify({'location': location.to_dict()})


@schedules_bp.route('/locations/<int:location_id>', methods=['DELETE'])
@admin_required
def delete_location(location_id):
    location = db.session.get(GameLocation, location_id)
    if not location:
        return jsonify({'error': 'Location not found'}), 404
    if GameSchedule.query.filter_by(location_id=location_id).first():
        return jsonify({'error': 'Location is used by a schedule'}), 409
    db.session.delete(location)
    db.session.commit()
    return jsonify({'message': 'Location deleted'})
