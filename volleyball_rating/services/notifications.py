"""Chat texts for polls and roster changes."""
from volleyball_rating.models import DayOfWeek
from volleyball_rating.services.schedule import game_end_time
from volleyball_rating.time_utils import strip_seconds, time_string

POLL_OPTIONS = ('Играю!', 'Пропускаю. Но очень хочу играть')
PLAYING_OPTION_INDEX = 0

_WEEKDAY_NAMES = {
    DayOfWeek.MONDAY: 'Понедельник',
    DayOfWeek.TUESDAY: 'Вторник',
    DayOfWeek.WEDNESDAY: 'Среда',
    DayOfWeek.THURSDAY: 'Четверг',
    DayOfWeek.FRIDAY: 'Пятница',
    DayOfWeek.SATURDAY: 'Суббота',
    DayOfWeek.SUNDAY: 'Воскресенье',
}


def mention(user):
    """@username when the player has one, otherwise their first name."""
    username = getattr(user, 'username', None)
    if username:
        return f'@{username}'
    return getattr(user, 'first_name', None) or 'Игрок'


def _full_mention(user):
    if getattr(user, 'username', None):
        return f'@{user.username} {user.first_name}'
    return mention(user)


def poll_question(schedule, location, game_time):
    weekday = _WEEKDAY_NAMES.get(str(schedule.day_of_week).upper(), schedule.day_of_week)
    place = location.name if location else '?'
    return (
        f'{weekday}, {game_time.day:02d}.{game_time.month:02d}! '
        f'Волейбол в зале {place} с {strip_seconds(schedule.time)} '
        f'до {game_end_time(schedule)}'
    )


def roster_message(voting, users):
    lines = [
        f'Игрок #{position} {_full_mention(user)}'
        for position, user in enumerate(users, start=1)
    ]
    header = f'Сегодня на игру в {time_string(voting.game_time)} приглашаются:'
    return '\n'.join([header, *lines])


def one_out_one_in(user_out, user_in):
    return f'Снялся {mention(user_out)}. В игру вступает {_full_mention(user_in)}'


def one_out(user_out):
    return f'Снялся {mention(user_out)}. Замены нет'


def one_out_warning(user_out, required, actual):
    return (
        f'Снялся {mention(user_out)}. Недостаточно игроков для начала игры! '
        f'Требуется {required}, участвуют {actual}'
    )


def one_in_warning(user_in, required, actual):
    return (
        f'В игру вступает {mention(user_in)}. Все еще недостаточно игроков для начала игры! '
        f'Требуется {required}, участвуют {actual}'
    )


def one_in_safe(user_in):
    return f'В игру вступает {mention(user_in)}. Достаточно игроков для начала игры!'


def one_in(user_in):
    return f'В игру вступает {mention(user_in)}'


def start_reply(app_url):
    """Private /start reply with the Mini App launch button."""
    return (
        'Welcome! Click the button below to launch the Mini App',
        {'inline_keyboard': [[
            {'text': '🚀 Open Mini App 🚀', 'web_app': {'url': app_url}},
        ]]},
    )


def inline_launch_results(bot_username, result_id):
    return [{
        'type': 'article',
        'id': str(result_id),
        'title': 'Launch Mini App',
        'input_message_content': {'message_text': 'Click the button below to launch the Mini App!'},
        'reply_markup': {'inline_keyboard': [[
            {'text': '🔵 Open Mini App', 'url': f'https://t.me/{bot_username}?start=miniapp'},
        ]]},
    }]
