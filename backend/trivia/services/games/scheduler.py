import threading


class TimerHandle:
    """Cancellable handle for a deferred or repeating callback."""

    def __init__(self):
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


class BackgroundScheduler:
    """Runs callbacks on Socket.IO background tasks inside an app context.

    Callbacks receive their own :class:`TimerHandle` so they can tell whether
    they were cancelled while waiting for a lock.
    """

    def __init__(self, app, socketio):
        self.app = app
        self.socketio = socketio

    def call_later(self, delay: float, callback) -> TimerHandle:
        handle = TimerHandle()

        def _worker():
            self.socketio.sleep(delay)
            if handle.cancelled:
                return
            with self.app.app_context():
                callback(handle)

        self.socketio.start_background_task(_worker)
        return handle

    def call_every(self, interval: float, callback) -> TimerHandle:
        handle = TimerHandle()

        def _worker():
            while True:
                self.socketio.sleep(interval)
                if handle.cancelled:
                    return
                with self.app.app_context():
                    callback(handle)

        self.socketio.start_background_task(_worker)
        return handle
