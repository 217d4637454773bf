"""Thin Telegram Bot API client used as the messaging collaborator."""
import logging

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_URL = 'https://api.telegram.org'


class TelegramError(Exception):
    """Transport failure or an ``ok: false`` reply from the Bot API."""

    def __init__(self, method, description, status_code=None):
        super().__init__(f'{method} failed: {description}')
        self.method = method
        self.description = description
        self.status_code = status_code


class TelegramClient:
    def __init__(self, token, api_url=None, timeout=10.0, session=None):
        self.token = token or ''
        self.api_url = (api_url or DEFAULT_API_URL).rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _method_url(self, method):
        return f'{self.api_url}/bot{self.token}/{method}'

    def _call(self, method, payload=None, timeout=None):
        if not self.token:
            raise TelegramError(method, 'bot token is not configured')
        try:
            response = self.session.post(
                self._method_url(method),
                json=payload or {},
                timeout=timeout or self.timeout,
            )
        except requests.RequestException as exc:
            raise TelegramError(method, str(exc)) from exc

        try:
            data = response.json()
        except ValueError:
            raise TelegramError(method, response.text[:200], response.status_code)

        if response.status_code != 200 or not data.get('ok'):
            description = data.get('description') or f'HTTP {response.status_code}'
            raise TelegramError(method, description, response.status_code)
        return data.get('result')

    def send_poll(self, chat_id, question, options, is_anonymous=False):
        """Post a poll; returns the sent Message (``message_id``, ``poll.id``)."""
        logger.info('Sending poll to chat %s', chat_id)
        return self._call('sendPoll', {
            'chat_id': chat_id,
            'question': question,
            'options': [{'text': option} for option in options],
            'is_anonymous': is_anonymous,
        })

    def pin_chat_message(self, chat_id, message_id, disable_notification=False):
        return self._call('pinChatMessage', {
            'chat_id': chat_id,
            'message_id': message_id,
            'disable_notification': disable_notification,
        })

    def send_message(self, chat_id, text, reply_markup=None):
        payload = {'chat_id': chat_id, 'text': text}
        if reply_markup is not None:
            payload['reply_markup'] = reply_markup
        return self._call('sendMessage', payload)

    def answer_inline_query(self, inline_query_id, results, cache_time=0):
        return self._call('answerInlineQuery', {
            'inline_query_id': inline_query_id,
            'results': results,
            'cache_time': cache_time,
        })

    def get_updates(self, offset=None, timeout=30):
        payload = {'timeout': timeout, 'allowed_updates': ['message', 'poll_answer', 'inline_query']}
        if offset is not None:
            payload['offset'] = offset
        return self._call('getUpdates', payload, timeout=timeout + 5) or []

    def delete_webhook(self, drop_pending_updates=False):
        return self._call('deleteWebhook', {'drop_pending_updates': drop_pending_updates})
