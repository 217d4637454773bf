"""Live volleyball score from the day's rally points.

Rules: a set is won at 25 points or more with a lead of at least two, the
match at three sets. The team that wins a rally serves next; the left team
serves first in every set.
"""

SET_POINTS = 25
MIN_LEAD = 2
SETS_TO_WIN = 3

LEFT = 'left'
RIGHT = 'right'
SIDES = (LEFT, RIGHT)
POINT_TYPES = ('ace', 'attack', 'block', 'error', 'unspecified')


def is_set_over(left_score, right_score):
    return (
        (left_score >= SET_POINTS or right_score >= SET_POINTS)
        and abs(left_score - right_score) >= MIN_LEAD
    )


def is_deuce(left_score, right_score):
    return left_score == right_score and left_score >= SET_POINTS - 1


def is_set_point(left_score, right_score):
    """One more rally could end the set."""
    leader, trailer = max(left_score, right_score), min(left_score, right_score)
    return leader >= SET_POINTS - 1 and leader - trailer >= 1


def set_winner(left_score, right_score):
    if not is_set_over(left_score, right_score):
        return None
    return LEFT if left_score > right_score else RIGHT


def _iso(value):
    return value.isoformat() if hasattr(value, 'isoformat') else value


def _point_field(point, name):
    if isinstance(point, dict):
        return point.get(name)
    return getattr(point, name, None)


def calculate_scores(points, now):
    """Current set and match summary for a list of Point rows/dicts.

    Args:
        points: The day's rally points, in any order.
        now: Timestamp used for start/end when there are no points yet.

    Returns:
        {'sets': {...}, 'totals': {...}, 'points': [...]} with the points
        sorted by created_at.
    """
    ordered = sorted(points, key=lambda p: (_point_field(p, 'created_at'), _point_field(p, 'id') or 0))
    if not ordered:
        stamp = _iso(now)
        return {
            'sets': {
                'set_idx': 1, 'left_score': 0, 'right_score': 0,
                'is_finished': False, 'set_winner': None,
                'set_start': stamp, 'set_end': stamp, 'serving_team': LEFT,
            },
            'totals': {
                'match_idx': 1, 'left_sets': 0, 'right_sets': 0,
                'match_winner': None, 'match_start': stamp, 'match_end': stamp,
            },
            'points': [],
        }

    left_score = right_score = 0
    left_sets = right_sets = 0
    set_idx = 1
    serving = LEFT
    set_start = set_end = _point_field(ordered[0], 'created_at')

    for point in ordered:
        winner = _point_field(point, 'winner')
        created_at = _point_field(point, 'created_at')
        if winner == LEFT:
            left_score += 1
        else:
            right_score += 1
        serving = winner if winner in SIDES else serving
        set_end = created_at

        finished = set_winner(left_score, right_score)
        if finished:
            if finished == LEFT:
                left_sets += 1
            else:
                right_sets += 1
            left_score = right_score = 0
            set_idx += 1
            set_start = created_at
            serving = LEFT

    match_winner = None
    if left_sets >= SETS_TO_WIN:
        match_winner = LEFT
    elif right_sets >= SETS_TO_WIN:
        match_winner = RIGHT

    return {
        'sets': {
            'set_idx': set_idx,
            'left_score': left_score,
            'right_score': right_score,
            'is_finished': is_set_over(left_score, right_score),
            'set_winner': set_winner(left_score, right_score),
            'set_start': _iso(set_start),
            'set_end': _iso(set_end),
            'serving_team': serving,
        },
        'totals': {
            'match_idx': 1,
            'left_sets': left_sets,
            'right_sets': right_sets,
            'match_winner': match_winner,
            'match_start': _iso(_point_field(ordered[0], 'created_at')),
            'match_end': _iso(_point_field(ordered[-1], 'created_at')),
        },
        'points': [p.to_dict() if hasattr(p, 'to_dict') else dict(p) for p in ordered],
    }


def day_statistics(points):
    """Totals of one day: per point type, per side, first/last rally."""
    stats = {f'{kind}_points': 0 for kind in POINT_TYPES}
    stats.update({'left_points': 0, 'right_points': 0, 'total_points': 0,
                  'first_rally_at': None, 'last_rally_at': None})
    stamps = []
    for point in points:
        kind = _point_field(point, 'type') or 'unspecified'
        if kind in POINT_TYPES:
            stats[f'{kind}_points'] += 1
        winner = _point_field(point, 'winner')
        if winner in SIDES:
            stats[f'{winner}_points'] += 1
        stats['total_points'] += 1
        stamps.append(_point_field(point, 'created_at'))
    if stamps:
        stats['first_rally_at'] = _iso(min(stamps))
        stats['last_rally_at'] = _iso(max(stamps))
    return stats


def player_statistics(points):
    """Per-player counts by point type, best scorers first (errors excluded)."""
    per_player = {}
    for point in points:
        player_id = _point_field(point, 'player_id')
        if player_id is None:
            continue
        row = per_player.setdefault(player_id, {
            'player_id': player_id, **{kind: 0 for kind in POINT_TYPES}, 'total': 0,
        })
        kind = _point_field(point, 'type') or 'unspecified'
        if kind in POINT_TYPES:
            row[kind] += 1
        if kind != 'error':
            row['total'] += 1
    return sorted(per_player.values(), key=lambda row: (-row['total'], row['error'], row['player_id']))
