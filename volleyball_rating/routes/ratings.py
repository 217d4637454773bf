from flask import Blueprint, request, jsonify
from volleyball_rating.app import db
from volleyball_rating.auth_utils import login_required
from volleyball_rating.models import User, Vote
from volleyball_rating.services.rating import calculate_ratings, pick_vote_pair

ratings_bp = Blueprint('ratings', __name__)


def _parse_player_id(raw_value):
    if isinstance(raw_value, bool):
        return None
    try:
        value = int(raw_value)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


@ratings_bp.route('/ratings', methods=['GET'])
def get_ratings():
    """Rating of every player, best first."""
    users = User.query.order_by(User.id.asc()).all()
    votes = Vote.query.all()
    return jsonify({'ratings': calculate_ratings(users, votes)})


@ratings_bp.route('/votes/pair', methods=['GET'])
@login_required
def get_vote_pair():
    """Two other players for the current user to compare."""
    voter_id = request.current_user.id
    player_ids = [row.id for row in db.session.query(User.id).all()]
    compared = [
        (row.player_a, row.player_b)
        for row in db.session.query(Vote.player_a, Vote.player_b).filter(Vote.voter_id == voter_id)
    ]
    pair = pick_vote_pair(voter_id, player_ids, compared)
    if pair is None:
        return jsonify({'pair': None})

    users = {user.id: user for user in User.query.filter(User.id.in_(pair)).all()}
    return jsonify({'pair': {
        'player_a': users[pair[0]].public_dict(),
        'player_b': users[pair[1]].public_dict(),
    }})


@ratings_bp.route('/votes', methods=['POST'])
@login_required
def submit_vote():
    data = request.get_json(silent=True) or {}
    player_a = _parse_player_id(data.get('player_a'))
    player_b = _parse_player_id(data.get('player_b'))
    if not player_a or not player_b:
        return jsonify({'error': 'player_a and player_b are required'}), 400
    if player_a == player_b:
        return jsonify({'error': 'Players must differ'}), 400

    raw_winner = data.get('winner_id')
    winner_id = None
    if raw_winner is not None:
        winner_id = _parse_player_id(raw_winner)
        if winner_id not in (player_a, player_b):
            return jsonify({'error': 'winner_id must be one of the compared players'}), 400

    known = {row.id for row in db.session.query(User.id).filter(User.id.in_([player_a, player_b]))}
    if known != {player_a, player_b}:
        return jsonify({'error': 'Player not found'}), 404

    vote = Vote(
        voter_id=request.current_user.id,
        player_a=player_a, player_b=player_b, winner_id=winner_id,
    )
    db.session.add(vote)
    db.session.commit()
    return jsonify({'vote': vote.to_dict()}), 201
