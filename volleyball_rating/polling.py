"""Long-polling update loop for local development (no public webhook)."""
import logging
import threading

from sqlalchemy.exc import SQLAlchemyError
from volleyball_rating.app import db
from volleyball_rating.services.bot_updates import dispatch_update
from volleyball_rating.telegram import TelegramError

logger = logging.getLogger(__name__)


class UpdatePoller:
    def __init__(self, app, client, poll_timeout=30, error_backoff_seconds=5.0):
        self.app = app
        self.client = client
        self.poll_timeout = poll_timeout
        self.error_backoff_seconds = error_backoff_seconds
        self.offset = None
        self._stop = threading.Event()
        self._thread = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return False
        try:
            self.client.delete_webhook(drop_pending_updates=False)
        except TelegramError as exc:
            logger.warning('Could not delete webhook before polling: %s', exc)
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name='telegram-poller', daemon=True)
        self._thread.start()
        logger.info('Bot is running in long polling mode')
        return True

    def stop(self, timeout=None):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None

    def poll_once(self):
        """Fetch one batch of updates and dispatch them; returns the count."""
        updates = self.client.get_updates(offset=self.offset, timeout=self.poll_timeout)
        for update in updates:
            self.offset = int(update.get('update_id', 0)) + 1
            with self.app.app_context():
                try:
                    dispatch_update(update, self.client, self.app.config)
                except SQLAlchemyError:
                    db.session.rollback()
                    logger.exception('Failed to store update %s', update.get('update_id'))
                except Exception:
                    logger.exception('Failed to handle update %s', update.get('update_id'))
        return len(updates)

    def _loop(self):
        while not self._stop.is_set():
            try:
                self.poll_once()
            except TelegramError as exc:
                logger.error('getUpdates failed: %s', exc)
                self._stop.wait(self.error_backoff_seconds)
            except Exception:
                logger.exception('Update polling failed')
                self._stop.wait(self.error_backoff_seconds)
