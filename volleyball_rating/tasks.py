"""Delayed fire-and-forget tasks with logged failures and shutdown cancel."""
import logging
import threading

logger = logging.getLogger(__name__)


class DelayedTaskRunner:
    def __init__(self):
        self._timers = set()
        self._lock = threading.Lock()

    @property
    def pending(self):
        with self._lock:
            return len(self._timers)

    def schedule(self, delay_seconds, fn, *args, name=None, **kwargs):
        task_name = name or getattr(fn, '__name__', 'task')
        timer = None

        def _run():
            try:
                fn(*args, **kwargs)
            except Exception:
                logger.exception('Delayed task %s failed', task_name)
            finally:
                with self._lock:
                    self._timers.discard(timer)

        timer = threading.Timer(max(0.0, float(delay_seconds)), _run)
        timer.daemon = True
        with self._lock:
            self._timers.add(timer)
        timer.start()
        return timer

    def cancel_all(self):
        with self._lock:
            timers = list(self._timers)
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        if timers:
            logger.info('Cancelled %d pending delayed task(s)', len(timers))
        return len(timers)
