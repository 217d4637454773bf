"""Tests for the Bot API client."""
import pytest
import requests
from volleyball_rating.telegram import TelegramClient, TelegramError


class _Response:
    def __init__(self, status_code=200, data=None, text=''):
        self.status_code = status_code
        self._data = data
        self.text = text

    def json(self):
        if self._data is None:
            raise ValueError('not json')
        return self._data


class _Session:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, json=None, timeout=None):
        self.requests.append((url, json, timeout))
        if self.error:
            raise self.error
        return self.response


def test_send_poll_posts_options_as_objects():
    session = _Session(_Response(data={'ok': True, 'result': {'message_id': 7, 'poll': {'id': 'p7'}}}))
    client = TelegramClient('123:abc', session=session)

    result = client.send_poll('-100', 'Game?', ['Yes', 'No'])

    assert result['poll']['id'] == 'p7'
    url, payload, _timeout = session.requests[0]
    assert url == 'https://api.telegram.org/bot123:abc/sendPoll'
    assert payload['options'] == [{'text': 'Yes'}, {'text': 'No'}]
    assert payload['is_anonymous'] is False


def test_api_error_raises():
    session = _Session(_Response(400, {'ok': False, 'description': 'Bad Request: chat not found'}))
    client = TelegramClient('123:abc', session=session)

    with pytest.raises(TelegramError) as excinfo:
        client.send_message('-100', 'hi')
    assert excinfo.value.method == 'sendMessage'
    assert excinfo.value.status_code == 400
    assert 'chat not found' in str(excinfo.value)


def test_transport_error_raises():
    client = TelegramClient('123:abc', session=_Session(error=requests.ConnectionError('down')))
    with pytest.raises(TelegramError):
        client.pin_chat_message('-100', 5)


def test_non_json_reply_raises():
    client = TelegramClient('123:abc', session=_Session(_Response(502, None, '<html>Bad Gateway</html>')))
    with pytest.raises(TelegramError):
        client.delete_webhook()


def test_missing_token_raises_without_request():
    session = _Session()
    client = TelegramClient('', session=session)
    with pytest.raises(TelegramError):
        client.send_message('-100', 'hi')
    assert session.requests == []


def test_get_updates_passes_offset():
    session = _Session(_Response(data={'ok': True, 'result': [{'update_id': 3}]}))
    client = TelegramClient('123:abc', session=session)

    assert client.get_updates(offset=3, timeout=1) == [{'update_id': 3}]
    _url, payload, timeout = session.requests[0]
    assert payload['offset'] == 3
    assert timeout == 6
