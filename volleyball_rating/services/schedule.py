"""Decide which recurring schedule opens its voting at a given minute.

A schedule's voting opens ``voting_in_advance_days`` before the game day at
``voting_time``. The check is an exact minute match, so the open trigger is
expected to run once per minute; a missed minute is not caught up later.
"""
from datetime import timedelta

from volleyball_rating.models import DayOfWeek
from volleyball_rating.time_utils import parse_time_of_day, strip_seconds, time_string


def voting_day_of_week(schedule):
    """Sunday-based day number on which the schedule's voting opens."""
    game_day = DayOfWeek.to_number(schedule.day_of_week)
    return (game_day + 7 - schedule.voting_in_advance_days) % 7


def find_schedule_to_start_voting(now, schedules, active_votings_by_schedule):
    """First schedule whose voting should open at ``now``, or None."""
    current_time = time_string(now)
    today = DayOfWeek.of(now)
    for schedule in schedules:
        if today != voting_day_of_week(schedule):
            continue
        if current_time != strip_seconds(schedule.voting_time):
            continue
        if active_votings_by_schedule.get(schedule.id):
            continue
        return schedule
    return None


def compute_game_time(now, schedule):
    hour, minute = parse_time_of_day(schedule.time)
    game_day = now + timedelta(days=schedule.voting_in_advance_days)
    return game_day.replace(hour=hour, minute=minute, second=0, microsecond=0)


def game_end_time(schedule):
    """'HH:MM' at which the game ends, wrapping past midnight."""
    hour, minute = parse_time_of_day(schedule.time)
    total = (hour * 60 + minute + int(schedule.duration_minutes or 0)) % (24 * 60)
    return f'{total // 60:02d}:{total % 60:02d}'
