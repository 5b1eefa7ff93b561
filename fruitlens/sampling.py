import logging
import threading

logger = logging.getLogger(__name__)


class SamplingLoop:
    """
    Repeating task that calls `callback` every `interval` seconds until cancelled.

    The loop runs on a daemon thread and waits on a cancellation token between
    ticks, so the next interval only starts once the previous callback has
    returned. Ticks never overlap.
    """

    def __init__(self, interval, callback, name="sampler"):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.callback = callback
        self.name = name
        self.ticks = 0
        self._token = threading.Event()
        self._thread = None

    @property
    def active(self):
        return self._thread is not None and self._thread.is_alive() and not self._token.is_set()

    def start(self):
        if self.active:
            logger.debug("%s already running", self.name)
            return
        self._token = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self._token,), name=self.name, daemon=True)
        self._thread.start()

    def cancel(self, timeout=2.0):
        self._token.set()
        thread, self._thread = self._thread, None
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.warning("%s did not stop within %.1fs", self.name, timeout)

    def _run(self, token):
        while not token.wait(self.interval):
            self.ticks += 1
            try:
                self.callback()
            except Exception:
                logger.exception("%s tick failed", self.name)
