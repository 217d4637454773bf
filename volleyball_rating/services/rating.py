"""
Player rating from pairwise "who plays better" votes.

Key design decisions:
- Model: Bradley-Terry. Each player has a strength p; the chance that A is
  judged better than B is p_A / (p_A + p_B). Strengths are the maximum
  likelihood fit over the whole vote set, so the result does not depend on
  the order votes were cast in.
- Prior: every player gets one virtual win and one virtual loss against a
  baseline player of strength 1. This keeps unbeaten or winless players
  finite and leaves players with no resolved votes exactly at the baseline.
- "Don't know" votes (no winner) are stored but carry no evidence.
- Scale: strengths are mapped onto familiar Elo numbers,
  R = 1200 + 400 * log10(p), so that expected_score(R_A, R_B) reproduces
  the Bradley-Terry win probability.
- Fit: cyclic minorization-maximization (Hunter, 2004) per connected group
  of players, with the group level re-solved after every pass. Sums are taken
  with math.fsum over sorted keys so repeated runs agree bit for bit.
"""
import math
import random

DEFAULT_RATING = 1200.0
RATING_SCALE = 400.0
PRIOR_GAMES = 1.0  # virtual wins (and losses) against the baseline
MAX_ITERATIONS = 2000
RESCALE_ITERATIONS = 50
TOLERANCE = 1e-6  # rating points


def expected_score(rating, opponent_rating):
    """Probability that a player with ``rating`` is judged better.

    E = 1 / (1 + 10^((opponent - rating) / 400))
    """
    return 1.0 / (1.0 + math.pow(10, (opponent_rating - rating) / RATING_SCALE))


def strength_to_rating(strength):
    return DEFAULT_RATING + RATING_SCALE * math.log10(strength)


def collect_results(votes):
    """Fold resolved votes into win counts and per-pair game counts.

    Args:
        votes: Iterable of objects/dicts with player_a, player_b, winner_id.

    Returns:
        (wins, games). wins maps player id to resolved wins, games maps a
        sorted (id, id) pair to the number of resolved comparisons.
    """
    wins = {}
    games = {}
    for vote in votes:
        player_a = _field(vote, 'player_a')
        player_b = _field(vote, 'player_b')
        winner = _field(vote, 'winner_id')
        if winner is None or player_a is None or player_b is None:
            continue
        if player_a == player_b or winner not in (player_a, player_b):
            continue
        pair = (min(player_a, player_b), max(player_a, player_b))
        games[pair] = games.get(pair, 0) + 1
        wins[winner] = wins.get(winner, 0) + 1
        wins.setdefault(player_b if winner == player_a else player_a, 0)
    return wins, games


def _comparison_groups(ids, opponents):
    """Connected groups of players linked by resolved comparisons."""
    seen = set()
    groups = []
    for pid in ids:
        if pid in seen or not opponents[pid]:
            continue
        seen.add(pid)
        stack = [pid]
        group = []
        while stack:
            current = stack.pop()
            group.append(current)
            for opp, _count in opponents[current]:
                if opp not in seen:
                    seen.add(opp)
                    stack.append(opp)
        groups.append(sorted(group))
    return groups


def _rescale_group(strengths, group):
    """Scale a group by the factor that best fits the prior.

    Comparisons inside a group only fix strength ratios; the common level is
    pinned by the prior alone. Solving for it directly (Newton on log c of
    sum((1 - c*p) / (1 + c*p)) = 0) removes the slowest MM direction.
    """
    log_factor = 0.0
    for _ in range(RESCALE_ITERATIONS):
        factor = math.exp(log_factor)
        scaled = [factor * strengths[pid] for pid in group]
        slope = math.fsum((1.0 - s) / (1.0 + s) for s in scaled)
        curvature = math.fsum(2.0 * s / (1.0 + s) ** 2 for s in scaled)
        step = max(-1.0, min(1.0, slope / curvature))
        log_factor += step
        if abs(step) < 1e-15:
            break
    if log_factor:
        factor = math.exp(log_factor)
        for pid in group:
            strengths[pid] *= factor


def fit_strengths(player_ids, wins, games, max_iterations=MAX_ITERATIONS):
    """Bradley-Terry strengths for ``player_ids`` given the folded results.

    Players without resolved comparisons keep strength 1. The rest are fitted
    group by group with cyclic MM updates, each pass followed by a rescale of
    every group. Stops once no rating moves by TOLERANCE points in a pass.
    """
    ids = sorted(set(player_ids) | set(wins))
    linked = {pid: {} for pid in ids}
    for (first, second), count in games.items():
        linked[first][second] = count
        linked[second][first] = count
    opponents = {pid: sorted(linked[pid].items()) for pid in ids}
    numerators = {pid: wins.get(pid, 0) + PRIOR_GAMES for pid in ids}
    prior_weight = 2.0 * PRIOR_GAMES

    strengths = {pid: 1.0 for pid in ids}
    groups = _comparison_groups(ids, opponents)
    fitted = [pid for group in groups for pid in group]
    for _ in range(max_iterations):
        previous = {pid: strengths[pid] for pid in fitted}
        for pid in fitted:
            p = strengths[pid]
            terms = [count / (p + strengths[opp]) for opp, count in opponents[pid]]
            terms.append(prior_weight / (p + 1.0))
            strengths[pid] = numerators[pid] / math.fsum(terms)
        for group in groups:
            _rescale_group(strengths, group)
        delta = max(
            (RATING_SCALE * abs(math.log10(strengths[pid] / previous[pid])) for pid in fitted),
            default=0.0,
        )
        if delta < TOLERANCE:
            break
    return strengths


def calculate_ratings(players, votes):
    """Rate every player from the full vote history.

    Args:
        players: User rows (or dicts) with id, first_name, last_name,
            username, photo_url.
        votes: All Vote rows.

    Returns:
        List of dicts ordered by rating descending (ties by id).
    """
    wins, games = collect_results(votes)
    player_list = list(players)
    strengths = fit_strengths([_field(p, 'id') for p in player_list], wins, games)

    rated = []
    for player in player_list:
        pid = _field(player, 'id')
        rated.append({
            'id': pid,
            'first_name': _field(player, 'first_name'),
            'last_name': _field(player, 'last_name'),
            'username': _field(player, 'username'),
            'photo_url': _field(player, 'photo_url'),
            'rating': strength_to_rating(strengths.get(pid, 1.0)),
        })
    rated.sort(key=lambda row: (-row['rating'], row['id']))
    return rated


def pick_vote_pair(voter_id, player_ids, compared_pairs, rng=None):
    """Random pair of other players, preferring ones the voter hasn't compared.

    Returns a (player_a, player_b) tuple, or None with fewer than two
    candidates.
    """
    rng = rng or random
    candidates = sorted({pid for pid in player_ids if pid != voter_id})
    if len(candidates) < 2:
        return None
    seen = {(min(a, b), max(a, b)) for a, b in compared_pairs}
    fresh = [
        (a, b)
        for i, a in enumerate(candidates)
        for b in candidates[i + 1:]
        if (a, b) not in seen
    ]
    if fresh:
        pair = rng.choice(fresh)
    else:
        pair = tuple(rng.sample(candidates, 2))
    if rng.random() < 0.5:
        pair = (pair[1], pair[0])
    return pair


def _field(item, name):
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)
